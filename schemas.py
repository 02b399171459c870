"""
Database Schemas for the storefront API

Each Pydantic model corresponds to a MongoDB collection (lowercased class name).
`*Update` models carry the optional fields accepted by partial updates.
"""
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]
PaymentStatus = Literal["pending", "paid", "failed"]
DiscountType = Literal["percentage", "fixed"]
ContactStatus = Literal["new", "read", "replied", "archived"]
FAQCategory = Literal["general", "shipping", "returns", "payment", "products"]


def _strip(value):
    return value.strip() if isinstance(value, str) else value


# -----------------------------
# Orders / Checkout
# -----------------------------
class Customer(BaseModel):
    email: EmailStr
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    province: str = Field(..., min_length=1)
    postal_code: Optional[str] = None
    delivery_notes: Optional[str] = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def strip_names(cls, v):
        return _strip(v)

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class OrderItem(BaseModel):
    product_id: str
    name: str
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    image: str
    color: str = ""
    size: str = ""


class Pricing(BaseModel):
    subtotal: float = Field(..., ge=0)
    delivery_charge: float = Field(..., ge=0)
    total: float = Field(..., ge=0)


class OrderCreate(BaseModel):
    customer: Customer
    items: List[OrderItem]
    pricing: Pricing


class Order(OrderCreate):
    order_number: str
    status: OrderStatus = "pending"
    payment_status: PaymentStatus = "pending"


class OrderStatusUpdate(BaseModel):
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None


# -----------------------------
# Coupons
# -----------------------------
class Coupon(BaseModel):
    code: str = Field(..., min_length=1)
    discount_type: DiscountType
    discount_value: float = Field(..., ge=0)
    min_purchase: float = Field(0, ge=0)
    max_discount: float = Field(0, ge=0)
    usage_limit: int = Field(0, ge=0)
    used_count: int = Field(0, ge=0)
    expiry_date: Optional[datetime] = None
    is_active: bool = True

    @field_validator("code", mode="before")
    @classmethod
    def upper_code(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class CouponUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1)
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[float] = Field(None, ge=0)
    min_purchase: Optional[float] = Field(None, ge=0)
    max_discount: Optional[float] = Field(None, ge=0)
    usage_limit: Optional[int] = Field(None, ge=0)
    expiry_date: Optional[datetime] = None
    is_active: Optional[bool] = None

    @field_validator("code", mode="before")
    @classmethod
    def upper_code(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class CouponValidateRequest(BaseModel):
    code: str
    order_total: float = Field(0, ge=0)


class CouponApplyRequest(BaseModel):
    code: str
    order_number: Optional[str] = None


# -----------------------------
# Catalog
# -----------------------------
class Product(BaseModel):
    product_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    category: str
    main_image: str
    images: List[str] = []
    description: str = ""
    tag: str = ""
    colors: List[str] = []
    sizes: List[str] = []
    features: List[str] = []
    specifications: Dict[str, str] = {}
    stock: int = Field(0, ge=0)
    is_active: bool = True
    product_type: str = "general"
    is_featured: bool = False
    is_hot: bool = False

    @field_validator("product_id", "name", mode="before")
    @classmethod
    def strip_fields(cls, v):
        return _strip(v)


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None
    main_image: Optional[str] = None
    images: Optional[List[str]] = None
    description: Optional[str] = None
    tag: Optional[str] = None
    colors: Optional[List[str]] = None
    sizes: Optional[List[str]] = None
    features: Optional[List[str]] = None
    specifications: Optional[Dict[str, str]] = None
    stock: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    product_type: Optional[str] = None
    is_featured: Optional[bool] = None
    is_hot: Optional[bool] = None


class Category(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    image: str
    display_order: int = 1
    is_active: bool = True
    is_featured: bool = False
    product_type: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return _strip(v)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    image: Optional[str] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    product_type: Optional[str] = None


class HeroImage(BaseModel):
    title: str = ""
    subtitle: str = ""
    image: str
    link: str = ""
    order: int = 0
    is_active: bool = True


class HeroImageUpdate(BaseModel):
    title: Optional[str] = None
    subtitle: Optional[str] = None
    image: Optional[str] = None
    link: Optional[str] = None
    order: Optional[int] = None
    is_active: Optional[bool] = None


# -----------------------------
# Contacts / Newsletter
# -----------------------------
class Contact(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    subject: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)

    @field_validator("name", "subject", mode="before")
    @classmethod
    def strip_fields(cls, v):
        return _strip(v)

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class ContactStatusUpdate(BaseModel):
    status: ContactStatus


class ContactReply(BaseModel):
    reply_message: str = Field(..., min_length=1)


class NewsletterRequest(BaseModel):
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def lower_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


# -----------------------------
# Site settings
# -----------------------------
class ContactInfo(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    whatsapp: Optional[str] = None
    address: Optional[str] = None
    tiktok: Optional[str] = None
    instagram: Optional[str] = None


class FAQ(BaseModel):
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)
    category: FAQCategory = "general"
    order: int = 0


class FAQUpdate(BaseModel):
    question: Optional[str] = Field(None, min_length=1)
    answer: Optional[str] = Field(None, min_length=1)
    category: Optional[FAQCategory] = None
    order: Optional[int] = None


class AppearanceSettings(BaseModel):
    site_name: Optional[str] = None
    brand_emoji: Optional[str] = None
    tagline: Optional[str] = None
    show_newsletter: Optional[bool] = None
    show_social_media: Optional[bool] = None


class GeneralSettings(BaseModel):
    currency: Optional[str] = None
    currency_symbol: Optional[str] = None
    shipping_fee: Optional[float] = Field(None, ge=0)
    free_shipping_threshold: Optional[float] = Field(None, ge=0)
    tax_rate: Optional[float] = Field(None, ge=0)
    order_prefix: Optional[str] = None
    enable_cod: Optional[bool] = None
    enable_online_payment: Optional[bool] = None


APPEARANCE_DEFAULTS = {
    "site_name": "Classic Carrry",
    "brand_emoji": "✨",
    "tagline": "Premium Lifestyle Products",
    "show_newsletter": True,
    "show_social_media": True,
}

GENERAL_DEFAULTS = {
    "currency": "PKR",
    "currency_symbol": "Rs",
    "shipping_fee": 200,
    "free_shipping_threshold": 5000,
    "tax_rate": 0,
    "order_prefix": "CC",
    "enable_cod": True,
    "enable_online_payment": False,
}

# Note: the schema viewer can inspect these on /schema
