"""Shared fixtures: an in-memory Mongo database, the app client and signed-in users."""

import os
import sys
import tempfile
from pathlib import Path

import mongomock
import pytest
from fastapi.testclient import TestClient

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# read by config at import; the upload writer and the /uploads mount share it.
# The directory does not exist yet, the app creates it on import.
os.environ["UPLOAD_DIR"] = os.path.join(tempfile.mkdtemp(prefix="storefront-"), "uploads")

import database  # noqa: E402
from database import create_document  # noqa: E402
from schemas import Product, User  # noqa: E402
from security import create_access_token, hash_password  # noqa: E402


@pytest.fixture
def db(monkeypatch):
    """Replace the Mongo handle with a fresh in-memory database."""
    mock_db = mongomock.MongoClient()["storefront_test"]
    monkeypatch.setattr(database, "db", mock_db)
    database.ensure_indexes()
    return mock_db


@pytest.fixture
def client(db):
    from main import app

    return TestClient(app)


def make_user(name="Jane Doe", email="jane@example.com", password="secret123", is_admin=False) -> dict:
    user_id = create_document("user", User(name=name, email=email, password_hash=hash_password(password), is_admin=is_admin))
    return {"_id": user_id, "name": name, "email": email, "password": password, "is_admin": is_admin}


def make_product(name="Desk Lamp", price=100.0, category="Home & Garden", **extra) -> str:
    return create_document("product", Product(name=name, description=f"{name} description", price=price, category=category, **extra))


def bearer(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
def customer(db):
    return make_user()


@pytest.fixture
def admin(db):
    return make_user(name="Admin", email="admin@example.com", password="admin123", is_admin=True)


@pytest.fixture
def customer_headers(customer):
    return bearer(customer["_id"])


@pytest.fixture
def admin_headers(admin):
    return bearer(admin["_id"])
