"""Per-user favorites: the server-side store behind the storefront's favorites view."""
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from pymongo.errors import DuplicateKeyError

from database import create_document, get_collection, get_documents, serialize_doc
from errors import NotFound
from orders import find_product
from schemas import Favorite
from security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/favorites", tags=["favorites"])


class FavoritePayload(BaseModel):
    product_id: str


def list_favorites(user_id: str):
    return [serialize_doc(d) for d in get_documents("favorite", {"user_id": user_id})]


def add_favorite(user_id: str, product_id: str) -> bool:
    if not find_product(product_id):
        raise NotFound("Product not found")
    try:
        create_document("favorite", Favorite(user_id=user_id, product_id=product_id))
    except DuplicateKeyError:
        # already a favorite; the unique index decides
        return False
    return True


def remove_favorite(user_id: str, product_id: str) -> bool:
    res = get_collection("favorite").delete_one({"user_id": user_id, "product_id": product_id})
    return res.deleted_count == 1


@router.get("")
def get_favorites(user: dict = Depends(get_current_user)):
    favorites = list_favorites(user["_id"])
    return {"count": len(favorites), "favorites": favorites}


@router.post("")
def post_favorite(payload: FavoritePayload, user: dict = Depends(get_current_user)):
    return {"added": add_favorite(user["_id"], payload.product_id)}


@router.delete("/{product_id}")
def delete_favorite(product_id: str, user: dict = Depends(get_current_user)):
    return {"deleted": remove_favorite(user["_id"], product_id)}
