"""
Runtime configuration for the Storefront API.

Values come from the environment (a local .env file is loaded first when present).
"""
import logging
import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "storefront")

# Auth
JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret")
JWT_ALG = "HS256"
TOKEN_EXPIRE_DAYS = int(os.getenv("TOKEN_EXPIRE_DAYS", "30"))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))

# Uploads
UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join("public", "uploads"))
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))  # 10MB

# Demo data
SEED_ENABLED = os.getenv("SEED_ENABLED", "false").lower() in ("1", "true", "yes")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@storefront.io")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_logging():
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
