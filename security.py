"""
Password hashing, bearer tokens and the authorization dependencies.

get_current_user resolves the bearer token to a user document and tags it with
a role ("admin" or "customer"); require_admin runs strictly after it and is the
only place the admin flag is consulted for route gating.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from config import BCRYPT_ROUNDS, JWT_ALG, JWT_SECRET, TOKEN_EXPIRE_DAYS
from database import get_collection
from errors import Forbidden, Unauthorized

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)
auth_scheme = HTTPBearer(auto_error=False)

ADMIN = "admin"
CUSTOMER = "customer"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    if not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        # stored value is not a recognizable hash
        return False


def create_access_token(user_id: str, expires_days: int = TOKEN_EXPIRE_DAYS) -> str:
    expire = datetime.now(timezone.utc) + timedelta(days=expires_days)
    return jwt.encode({"sub": user_id, "exp": expire}, JWT_SECRET, algorithm=JWT_ALG)


def decode_access_token(token: str) -> str:
    """Return the user id carried by a token, or raise Unauthorized."""
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])
    except JWTError:
        raise Unauthorized("Not authorized, token failed")
    user_id = payload.get("sub")
    if not user_id:
        raise Unauthorized("Not authorized, token failed")
    return user_id


def role_of(user: dict) -> str:
    return ADMIN if user.get("is_admin") is True else CUSTOMER


def public_user(user: dict) -> dict:
    return {
        "id": str(user["_id"]),
        "name": user.get("name"),
        "email": user.get("email"),
        "is_admin": bool(user.get("is_admin", False)),
    }


async def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(auth_scheme)) -> dict:
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Not authorized, no token")
    user_id = decode_access_token(credentials.credentials)

    try:
        oid = ObjectId(user_id)
    except (InvalidId, TypeError):
        raise Unauthorized("Not authorized, token failed")
    user = get_collection("user").find_one({"_id": oid}, {"password_hash": 0})
    if not user:
        raise Unauthorized("User not found")
    user["_id"] = str(user["_id"])
    user["role"] = role_of(user)
    return user


async def require_admin(user: dict = Depends(get_current_user)) -> dict:
    if user["role"] != ADMIN:
        logger.warning("Admin gate refused user %s", user["_id"])
        raise Forbidden("Not authorized as admin")
    return user


def ensure_owner_or_admin(user: dict, owner_id: str):
    if user["role"] != ADMIN and user["_id"] != owner_id:
        raise Forbidden("Not allowed")
