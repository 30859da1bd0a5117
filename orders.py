"""
Order lifecycle: creation from a cart payload and admin status transitions.

Line names are copied from the product at order time so later product edits do
not rewrite order history. Stock is not decremented and status transitions are
unguarded: any order status may follow any other.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from database import create_document, get_collection, get_documents, serialize_doc, to_object_id
from errors import BadRequest, NotFound
from schemas import Currency, Order, OrderItem, OrderStatus, PaymentMethod, PaymentStatus, ShippingAddress
from security import ensure_owner_or_admin, get_current_user, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])


class CartItem(BaseModel):
    product_id: str
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0)
    currency: Currency = "PHP"


class CreateOrderPayload(BaseModel):
    order_items: List[CartItem]
    shipping_address: ShippingAddress
    payment_method: PaymentMethod = "Cash on Delivery"


class StatusPayload(BaseModel):
    order_status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None


def find_product(product_id: str) -> Optional[dict]:
    try:
        oid = ObjectId(product_id)
    except (InvalidId, TypeError):
        return None
    return get_collection("product").find_one({"_id": oid})


def build_order(user_id: str, items: List[CartItem], shipping_address: ShippingAddress, payment_method: str) -> Order:
    """Resolve every cart line against the catalog and price the order.

    Nothing is written here, so a missing product leaves no partial order behind.
    """
    if not items:
        raise BadRequest("No order items provided")
    order_items: List[OrderItem] = []
    total = 0.0
    for item in items:
        product = find_product(item.product_id)
        if not product:
            raise NotFound(f"Product not found: {item.product_id}")
        order_items.append(OrderItem(
            product_id=str(product["_id"]),
            name=product["name"],
            quantity=item.quantity,
            price=item.price,
            currency=item.currency,
        ))
        total += item.price * item.quantity
    return Order(
        user_id=user_id,
        order_items=order_items,
        shipping_address=shipping_address,
        payment_method=payment_method,
        total_price=total,
    )


def create_order(user_id: str, items: List[CartItem], shipping_address: ShippingAddress, payment_method: str = "Cash on Delivery") -> dict:
    order = build_order(user_id, items, shipping_address, payment_method)
    order_id = create_document("order", order)
    logger.info("Created order %s for user %s (total %.2f)", order_id, user_id, order.total_price)
    return serialize_doc(get_collection("order").find_one({"_id": ObjectId(order_id)}))


def update_order_status(order_id: str, order_status: Optional[str] = None, payment_status: Optional[str] = None) -> dict:
    oid = to_object_id(order_id)
    now = datetime.now(timezone.utc)
    update_doc = {"updated_at": now}
    if order_status is not None:
        update_doc["order_status"] = order_status
        if order_status == "Delivered":
            update_doc["delivered_at"] = now
    if payment_status is not None:
        update_doc["payment_status"] = payment_status
    orders = get_collection("order")
    res = orders.update_one({"_id": oid}, {"$set": update_doc})
    if res.matched_count == 0:
        raise NotFound("Order not found")
    logger.info("Order %s moved to order_status=%s payment_status=%s", order_id, order_status, payment_status)
    return serialize_doc(orders.find_one({"_id": oid}))


def attach_user(order: dict) -> dict:
    try:
        user = get_collection("user").find_one({"_id": ObjectId(order["user_id"])}, {"name": 1, "email": 1})
    except (InvalidId, TypeError):
        user = None
    order["user"] = {"_id": str(user["_id"]), "name": user.get("name"), "email": user.get("email")} if user else None
    return order


def attach_products(order: dict) -> dict:
    for item in order.get("order_items", []):
        product = find_product(item["product_id"])
        item["product"] = {
            "_id": str(product["_id"]),
            "name": product.get("name"),
            "price": product.get("price"),
            "category": product.get("category"),
        } if product else None
    return order


@router.post("", status_code=201)
def create_order_route(payload: CreateOrderPayload, user: dict = Depends(get_current_user)):
    order = create_order(user["_id"], payload.order_items, payload.shipping_address, payload.payment_method)
    return {"message": "Order created successfully", "order": order}


@router.get("", dependencies=[Depends(require_admin)])
def list_orders():
    orders = [attach_user(serialize_doc(o)) for o in get_documents("order")]
    return {"count": len(orders), "orders": orders}


@router.get("/user/{user_id}")
def list_user_orders(user_id: str, user: dict = Depends(get_current_user)):
    ensure_owner_or_admin(user, user_id)
    orders = [serialize_doc(o) for o in get_documents("order", {"user_id": user_id})]
    return {"count": len(orders), "orders": orders}


@router.get("/{order_id}")
def get_order(order_id: str, user: dict = Depends(get_current_user)):
    doc = get_collection("order").find_one({"_id": to_object_id(order_id)})
    if not doc:
        raise NotFound("Order not found")
    ensure_owner_or_admin(user, doc["user_id"])
    return attach_products(attach_user(serialize_doc(doc)))


@router.put("/{order_id}", dependencies=[Depends(require_admin)])
def update_order(order_id: str, payload: StatusPayload):
    order = update_order_status(order_id, payload.order_status, payload.payment_status)
    return {"message": "Order status updated successfully", "order": order}


@router.delete("/{order_id}", dependencies=[Depends(require_admin)])
def delete_order(order_id: str):
    res = get_collection("order").delete_one({"_id": to_object_id(order_id)})
    if res.deleted_count == 0:
        raise NotFound("Order not found")
    logger.info("Deleted order %s", order_id)
    return {"message": "Order deleted successfully"}
