"""Tests for password hashing, tokens and the authorization dependencies."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from jose import jwt

from config import JWT_ALG, JWT_SECRET
from security import (
    create_access_token,
    decode_access_token,
    hash_password,
    pwd_context,
    role_of,
    verify_password,
)
from tests.conftest import bearer, make_user


class TestPasswords:
    def test_hash_is_bcrypt_with_cost_10(self):
        hashed = hash_password("secret123")
        assert hashed.startswith("$2b$10$")
        assert pwd_context.identify(hashed) == "bcrypt"

    def test_verify_roundtrip(self):
        hashed = hash_password("secret123")
        assert verify_password("secret123", hashed)
        assert not verify_password("wrong-pass", hashed)

    def test_verify_rejects_garbage_hash(self):
        assert verify_password("secret123", "not-a-hash") is False
        assert verify_password("secret123", "") is False


class TestTokens:
    def test_token_carries_user_id_and_30_day_expiry(self):
        token = create_access_token("abc123")
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])
        assert payload["sub"] == "abc123"
        expires = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        delta = expires - datetime.now(timezone.utc)
        assert timedelta(days=29, hours=23) < delta <= timedelta(days=30)

    def test_decode_returns_subject(self):
        assert decode_access_token(create_access_token("abc123")) == "abc123"

    def test_expired_token_is_unauthorized(self):
        token = create_access_token("abc123", expires_days=-1)
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(token)
        assert exc_info.value.status_code == 401

    def test_token_signed_with_other_secret_is_unauthorized(self):
        token = jwt.encode({"sub": "abc123"}, "another-secret", algorithm=JWT_ALG)
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(token)
        assert exc_info.value.status_code == 401


def test_role_of():
    assert role_of({"is_admin": True}) == "admin"
    assert role_of({"is_admin": False}) == "customer"
    assert role_of({}) == "customer"


class TestAuthorizationMiddleware:
    """Exercised through GET /api/auth/profile (identity) and GET /api/orders (admin gate)."""

    def test_missing_header(self, client):
        resp = client.get("/api/auth/profile")
        assert resp.status_code == 401
        assert resp.json() == {"message": "Not authorized, no token"}

    def test_non_bearer_scheme(self, client, customer):
        resp = client.get("/api/auth/profile", headers={"Authorization": f"Basic {customer['_id']}"})
        assert resp.status_code == 401

    def test_malformed_token(self, client):
        resp = client.get("/api/auth/profile", headers={"Authorization": "Bearer not.a.jwt"})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Not authorized, token failed"

    def test_expired_token(self, client, customer):
        token = create_access_token(customer["_id"], expires_days=-1)
        resp = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_deleted_user(self, client, db, customer, customer_headers):
        db["user"].delete_many({})
        resp = client.get("/api/auth/profile", headers=customer_headers)
        assert resp.status_code == 401
        assert resp.json()["message"] == "User not found"

    def test_valid_token_attaches_identity(self, client, customer, customer_headers):
        resp = client.get("/api/auth/profile", headers=customer_headers)
        assert resp.status_code == 200
        assert resp.json() == {
            "id": customer["_id"],
            "name": customer["name"],
            "email": customer["email"],
            "is_admin": False,
        }

    def test_admin_gate_rejects_valid_customer_token(self, client, customer_headers):
        resp = client.get("/api/orders", headers=customer_headers)
        assert resp.status_code == 403
        assert resp.json()["message"] == "Not authorized as admin"

    def test_admin_gate_runs_after_identity(self, client):
        resp = client.get("/api/orders")
        assert resp.status_code == 401

    def test_admin_gate_admits_admin(self, client, admin_headers):
        resp = client.get("/api/orders", headers=admin_headers)
        assert resp.status_code == 200

    def test_admin_flag_read_from_database_not_token(self, client, db):
        user = make_user(email="promoted@example.com")
        headers = bearer(user["_id"])
        assert client.get("/api/orders", headers=headers).status_code == 403
        db["user"].update_one({"email": "promoted@example.com"}, {"$set": {"is_admin": True}})
        assert client.get("/api/orders", headers=headers).status_code == 200
