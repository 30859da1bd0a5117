import logging
import re
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from database import create_document, get_collection, get_documents, serialize_doc, to_object_id
from errors import NotFound
from schemas import Category, Currency, PLACEHOLDER_IMAGE, Product
from security import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])


class ProductPayload(BaseModel):
    name: str = Field(..., min_length=1)
    description: str
    price: float = Field(..., ge=0)
    category: Category
    currency: Currency = "PHP"
    stock: int = Field(default=0, ge=0)
    image: Optional[str] = None
    images: List[str] = []
    in_stock: bool = True
    is_approved: bool = True


class ProductUpdatePayload(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    category: Optional[Category] = None
    currency: Optional[Currency] = None
    stock: Optional[int] = Field(default=None, ge=0)
    image: Optional[str] = None
    images: Optional[List[str]] = None
    in_stock: Optional[bool] = None
    is_approved: Optional[bool] = None


@router.get("")
def list_products(q: Optional[str] = None, category: Optional[str] = None, min_price: Optional[float] = None, max_price: Optional[float] = None):
    filter_q = {}
    if q:
        filter_q["name"] = {"$regex": re.escape(q), "$options": "i"}
    if category:
        filter_q["category"] = category
    if min_price is not None or max_price is not None:
        price_filter = {}
        if min_price is not None:
            price_filter["$gte"] = float(min_price)
        if max_price is not None:
            price_filter["$lte"] = float(max_price)
        filter_q["price"] = price_filter
    products = [serialize_doc(p) for p in get_documents("product", filter_q)]
    return {"count": len(products), "products": products}


@router.get("/{product_id}")
def get_product(product_id: str):
    doc = get_collection("product").find_one({"_id": to_object_id(product_id)})
    if not doc:
        raise NotFound("Product not found")
    return serialize_doc(doc)


@router.post("", status_code=201)
def create_product(payload: ProductPayload, admin: dict = Depends(require_admin)):
    data = payload.model_dump()
    data["image"] = data["image"] or PLACEHOLDER_IMAGE
    prod = Product(**data, created_by=admin["_id"])
    prod_id = create_document("product", prod)
    logger.info("Admin %s created product %s", admin["_id"], prod_id)
    doc = get_collection("product").find_one({"_id": to_object_id(prod_id)})
    return {"message": "Product created successfully", "product": serialize_doc(doc)}


@router.put("/{product_id}", dependencies=[Depends(require_admin)])
def update_product(product_id: str, payload: ProductUpdatePayload):
    oid = to_object_id(product_id)
    update_doc = {k: v for k, v in payload.model_dump().items() if v is not None}
    update_doc["updated_at"] = datetime.now(timezone.utc)
    products = get_collection("product")
    res = products.update_one({"_id": oid}, {"$set": update_doc})
    if res.matched_count == 0:
        raise NotFound("Product not found")
    return {"message": "Product updated successfully", "product": serialize_doc(products.find_one({"_id": oid}))}


@router.delete("/{product_id}", dependencies=[Depends(require_admin)])
def delete_product(product_id: str):
    res = get_collection("product").delete_one({"_id": to_object_id(product_id)})
    if res.deleted_count == 0:
        raise NotFound("Product not found")
    logger.info("Deleted product %s", product_id)
    return {"message": "Product deleted successfully"}
