import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field
from pymongo.errors import DuplicateKeyError

from auth import normalize_email
from database import get_collection, get_documents, to_object_id
from errors import BadRequest, Conflict, Forbidden, NotFound, Unauthorized
from security import ADMIN, ensure_owner_or_admin, get_current_user, hash_password, public_user, require_admin, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

MIN_PASSWORD_LENGTH = 6


class UserUpdatePayload(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    is_admin: Optional[bool] = None


class ResetPasswordPayload(BaseModel):
    email: EmailStr
    current_password: str
    password: str


def reset_password(email: str, current_password: str, new_password: str):
    """Replace a user's password after re-verifying the current one."""
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise BadRequest(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    users = get_collection("user")
    doc = users.find_one({"email": normalize_email(email)})
    if not doc:
        raise NotFound("User not found")
    if not verify_password(current_password, doc.get("password_hash", "")):
        raise Unauthorized("Current password is incorrect")
    users.update_one(
        {"_id": doc["_id"]},
        {"$set": {"password_hash": hash_password(new_password), "updated_at": datetime.now(timezone.utc)}},
    )
    logger.info("Password reset for user %s", doc["_id"])


@router.get("", dependencies=[Depends(require_admin)])
def list_users():
    users = [public_user(u) for u in get_documents("user")]
    return {"count": len(users), "users": users}


@router.post("/reset-password")
def reset_password_route(payload: ResetPasswordPayload):
    reset_password(payload.email, payload.current_password, payload.password)
    return {"message": "Password updated successfully"}


@router.delete("/me")
def delete_me(user: dict = Depends(get_current_user)):
    res = get_collection("user").delete_one({"_id": to_object_id(user["_id"])})
    if res.deleted_count == 0:
        raise NotFound("User not found")
    logger.info("User %s deleted their account", user["_id"])
    return {"message": "Account deleted successfully"}


@router.get("/{user_id}")
def get_user(user_id: str, user: dict = Depends(get_current_user)):
    ensure_owner_or_admin(user, user_id)
    doc = get_collection("user").find_one({"_id": to_object_id(user_id)})
    if not doc:
        raise NotFound("User not found")
    return public_user(doc)


@router.put("/{user_id}")
def update_user(user_id: str, payload: UserUpdatePayload, user: dict = Depends(get_current_user)):
    ensure_owner_or_admin(user, user_id)
    oid = to_object_id(user_id)
    update_doc = {k: v for k, v in payload.model_dump().items() if v is not None}
    if "is_admin" in update_doc and user["role"] != ADMIN:
        raise Forbidden("Only admins can change admin rights")
    users = get_collection("user")
    if "email" in update_doc:
        update_doc["email"] = normalize_email(update_doc["email"])
        if users.find_one({"email": update_doc["email"], "_id": {"$ne": oid}}):
            raise Conflict("Email already in use")
    update_doc["updated_at"] = datetime.now(timezone.utc)
    try:
        res = users.update_one({"_id": oid}, {"$set": update_doc})
    except DuplicateKeyError:
        raise Conflict("Email already in use")
    if res.matched_count == 0:
        raise NotFound("User not found")
    return {"message": "User updated successfully", "user": public_user(users.find_one({"_id": oid}))}


@router.delete("/{user_id}", dependencies=[Depends(require_admin)])
def delete_user(user_id: str):
    res = get_collection("user").delete_one({"_id": to_object_id(user_id)})
    if res.deleted_count == 0:
        raise NotFound("User not found")
    logger.info("Admin deleted user %s", user_id)
    return {"message": "User deleted successfully"}
