import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field
from pymongo.errors import DuplicateKeyError

from database import create_document, get_collection
from errors import Conflict, Forbidden, Unauthorized
from schemas import User
from security import create_access_token, get_current_user, hash_password, public_user, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterPayload(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginPayload(BaseModel):
    email: EmailStr
    password: str


def normalize_email(email: str) -> str:
    return email.strip().lower()


def authenticate(email: str, password: str):
    """Return the user document matching the credentials, or None."""
    doc = get_collection("user").find_one({"email": normalize_email(email)})
    if not doc or not verify_password(password, doc.get("password_hash", "")):
        return None
    return doc


def register_user(name: str, email: str, password: str) -> dict:
    email = normalize_email(email)
    users = get_collection("user")
    if users.find_one({"email": email}):
        raise Conflict("User already exists")
    user = User(name=name, email=email, password_hash=hash_password(password))
    try:
        user_id = create_document("user", user)
    except DuplicateKeyError:
        # lost a race against a concurrent registration
        raise Conflict("User already exists")
    logger.info("Registered user %s", user_id)
    return {"_id": user_id, "name": user.name, "email": user.email, "is_admin": user.is_admin}


@router.post("/register", status_code=201)
def register(payload: RegisterPayload):
    doc = register_user(payload.name, payload.email, payload.password)
    return {
        "message": "User registered successfully",
        "user": public_user(doc),
        "token": create_access_token(doc["_id"]),
    }


@router.post("/login")
def login(payload: LoginPayload):
    doc = authenticate(payload.email, payload.password)
    if doc is None:
        logger.info("Failed login for %s", payload.email)
        raise Unauthorized("Invalid email or password")
    if doc.get("is_admin"):
        raise Forbidden("Admins must use the admin portal. Please visit /admin-login")
    return {
        "message": "Login successful",
        "user": public_user(doc),
        "token": create_access_token(str(doc["_id"])),
    }


@router.post("/admin-login")
def admin_login(payload: LoginPayload):
    doc = authenticate(payload.email, payload.password)
    if doc is None or not doc.get("is_admin"):
        logger.info("Failed admin login for %s", payload.email)
        raise Unauthorized("Invalid credentials or not authorized")
    return {
        "message": "Admin login successful",
        "user": public_user(doc),
        "token": create_access_token(str(doc["_id"])),
    }


@router.get("/profile")
def profile(user: dict = Depends(get_current_user)):
    return public_user(user)
