import logging
import os
from contextlib import asynccontextmanager
from typing import get_args

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

import database
from config import ADMIN_EMAIL, ADMIN_PASSWORD, SEED_ENABLED, UPLOAD_DIR, configure_logging
from database import create_document, get_collection
from errors import NotFound, register_exception_handlers
from schemas import Category, Product, User
from security import hash_password
import auth
import favorites
import orders
import products
import uploads
import users

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    database.ensure_indexes()
    yield


app = FastAPI(title="Storefront API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

for module in (auth, users, products, orders, uploads, favorites):
    app.include_router(module.router)

os.makedirs(UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR), name="uploads")


# Health checks
@app.get("/")
def root():
    return {"message": "Storefront API running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }
    try:
        if database.db is not None:
            response["database"] = "✅ Available"
            response["database_url"] = "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set"
            response["database_name"] = database.db.name
            response["connection_status"] = "Connected"
            response["collections"] = database.db.list_collection_names()
        else:
            response["database"] = "⚠️ Available but not initialized"
    except Exception as e:
        logger.warning("Database check failed: %s", e)
        response["database"] = f"❌ Error: {str(e)[:100]}"
    return response


# Demo data
def seed_catalog(count: int = 24) -> dict:
    from faker import Faker
    fake = Faker()
    created = {"admin": False, "products": 0}
    admin = get_collection("user").find_one({"email": ADMIN_EMAIL.lower()})
    if not admin:
        admin_id = create_document("user", User(
            name="Admin", email=ADMIN_EMAIL.lower(), password_hash=hash_password(ADMIN_PASSWORD), is_admin=True,
        ))
        created["admin"] = True
    else:
        admin_id = str(admin["_id"])
    if get_collection("product").count_documents({}) > 0:
        return created
    categories = get_args(Category)
    for _ in range(count):
        stock = fake.random_int(min=0, max=50)
        product = Product(
            name=fake.catch_phrase(),
            description=fake.paragraph(nb_sentences=3),
            price=float(fake.pydecimal(left_digits=4, right_digits=2, positive=True)),
            category=fake.random_element(categories),
            stock=stock,
            in_stock=stock > 0,
            created_by=admin_id,
        )
        create_document("product", product)
        created["products"] += 1
    logger.info("Seeded %d products (admin created: %s)", created["products"], created["admin"])
    return created


@app.post("/api/seed")
def seed():
    if not SEED_ENABLED:
        raise NotFound("Not found")
    return {"created": seed_catalog()}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
