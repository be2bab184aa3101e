"""
Database Schemas for JD Jewellers

Each Pydantic model represents a document in a MongoDB collection.
Collections are created automatically when inserting documents.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

Category = Literal["necklace", "earrings", "bangles", "rings"]


class Product(BaseModel):
    """Collection: products"""
    name: str = Field(..., min_length=1, max_length=120, description="Jewellery name")
    description: Optional[str] = Field(None, max_length=2000)
    price: float = Field(..., ge=0)
    currency: str = Field("INR", min_length=3, max_length=3)
    category: Category = Field(..., description="necklace | earrings | bangles | rings")
    stock: int = Field(10, ge=0)
    size: Optional[str] = Field(None, max_length=60, description="e.g. Free Size, S, M, L")
    image_url: Optional[str] = Field(None, description="Public image URL of the item")


class Banner(BaseModel):
    """Collection: banners"""
    title: str = Field(..., min_length=1, max_length=200)
    subtitle: Optional[str] = Field(None, max_length=300)
    display_order: int = Field(0, description="Ascending, lowest shown first")
    is_active: bool = Field(True)


class Suggestion(BaseModel):
    """Collection: suggestions"""
    name: str
    email: EmailStr
    message: str


class OrderItem(BaseModel):
    name: str
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)


class Order(BaseModel):
    """Collection: orders. Written once, never updated."""
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    customer_address: str
    products: List[OrderItem] = Field(default_factory=list)
    subtotal: float = Field(0, ge=0)
    shipping: float = Field(0, ge=0)
    total_amount: float = Field(0, ge=0)
    source: Literal["cart", "buy_now"] = "cart"


class Profile(BaseModel):
    """Collection: profiles"""
    user_id: str
    full_name: str
    email: EmailStr


class UserRole(BaseModel):
    """Collection: user_roles"""
    user_id: str
    role: Literal["admin", "user"] = "user"


class ProductOut(Product):
    id: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class BannerOut(Banner):
    id: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
