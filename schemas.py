"""
Database Schemas for the Storefront API

Each Pydantic model represents a MongoDB collection. Collection name is the lowercase of the class name.
References between collections are stored as string ids.
"""
from typing import Optional, List, Literal
from pydantic import BaseModel, Field, EmailStr
from datetime import datetime

Category = Literal["Electronics", "Clothing", "Books", "Home & Garden", "Sports", "Toys", "Food", "Other"]
Currency = Literal["PHP", "USD", "EUR", "JPY"]
PaymentMethod = Literal["Cash on Delivery", "Credit Card", "PayPal", "GCash"]
PaymentStatus = Literal["Pending", "Paid", "Failed"]
OrderStatus = Literal["Processing", "Shipped", "Delivered", "Cancelled"]

PLACEHOLDER_IMAGE = "https://via.placeholder.com/300"


# Users collection
class User(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password_hash: str = Field(..., min_length=10)
    is_admin: bool = False


# Products collection
class Product(BaseModel):
    name: str = Field(..., min_length=1)
    description: str
    price: float = Field(..., ge=0)
    category: Category
    currency: Currency = "PHP"
    stock: int = Field(default=0, ge=0)
    image: str = PLACEHOLDER_IMAGE  # cover image
    images: List[str] = []
    in_stock: bool = True
    is_approved: bool = True
    created_by: Optional[str] = None


# Orders collection
class OrderItem(BaseModel):
    product_id: str
    name: str
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0)
    currency: Currency = "PHP"


class ShippingAddress(BaseModel):
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    country: str = "Philippines"


class Order(BaseModel):
    user_id: str
    order_items: List[OrderItem]
    shipping_address: ShippingAddress
    payment_method: PaymentMethod = "Cash on Delivery"
    payment_status: PaymentStatus = "Pending"
    total_price: float = Field(..., ge=0)
    order_status: OrderStatus = "Processing"
    delivered_at: Optional[datetime] = None


# Per-user favorites
class Favorite(BaseModel):
    user_id: str
    product_id: str
