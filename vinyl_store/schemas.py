from datetime import datetime
from typing import Annotated, Dict, Generic, List, Optional, Set, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from .models import OrderStatus

T = TypeVar("T")


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ResponseJSON(BaseModel, Generic[T]):
    status: str
    data: Optional[T] = None


# ── Orders ───────────────────────────────────────


class OrderItem(CamelModel):
    vinyl_id: str = Field(..., min_length=1, examples=["vinyl-1"])
    quantity: int = Field(1, ge=1, examples=[2])
    title: Optional[str] = None
    artist: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    cover_path: Optional[str] = None


class OrderCreate(CamelModel):
    user_id: str = Field(..., min_length=1)
    items: List[OrderItem] = Field(default_factory=list)
    payment_id: Optional[str] = None
    is_payment_confirmed: Optional[bool] = None
    order_status: Optional[OrderStatus] = None


class OrderUpdate(CamelModel):
    user_id: Optional[str] = None
    items: Optional[List[OrderItem]] = None
    payment_id: Optional[str] = None
    order_status: Optional[OrderStatus] = None
    is_payment_confirmed: Optional[bool] = None


class OrderRead(CamelModel):
    id: str
    user_id: str
    items: List[OrderItem]
    qt: int
    payment_id: Optional[str] = None
    order_status: OrderStatus
    is_payment_confirmed: bool
    created_at: datetime
    updated_at: Optional[datetime] = None


class CheckoutRequest(CamelModel):
    user_id: str = Field(..., min_length=1, description="userId is required")
    payment_id: str = Field(..., min_length=1, description="paymentId is required")


class CartItemQuantity(BaseModel):
    quantity: int = Field(1, ge=1)


# vinyl id -> quantity, as sent to PUT/POST /api/cart/{user_id}
CartItems = Dict[str, Annotated[int, Field(ge=1)]]


# ── Vinyls ───────────────────────────────────────


class VinylCreate(CamelModel):
    title: str = Field(..., min_length=1)
    artist: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    stock: int = Field(..., ge=0)
    cover_path: str = Field(..., min_length=1)
    gallery: List[str] = Field(default_factory=list)
    is_principal: Optional[bool] = None


class VinylUpdate(CamelModel):
    title: Optional[str] = None
    artist: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    cover_path: Optional[str] = None
    gallery: Optional[List[str]] = None
    is_principal: Optional[bool] = None


class VinylRead(CamelModel):
    id: str
    title: str
    artist: str
    price: float
    stock: int
    cover_path: Optional[str] = None
    gallery: List[str] = Field(default_factory=list)
    is_principal: bool = False
    created_at: datetime
    updated_at: datetime


# ── Users & auth ─────────────────────────────────


class UserCreate(CamelModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=24)
    roles: Optional[Set[str]] = None


class UserUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    roles: Optional[Set[str]] = None
    password: Optional[str] = Field(None, min_length=6, max_length=24)
    email_verified: Optional[bool] = None


class UserRead(CamelModel):
    id: str
    name: str
    email: str
    roles: List[str] = Field(default_factory=list)
    email_verified: bool = False


class UserPublic(CamelModel):
    id: str
    email: str
    name: str
    roles: List[str] = Field(default_factory=list)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    token: str
    type: str = "Bearer"
    user: UserPublic


class ChangePasswordRequest(CamelModel):
    token: Optional[str] = None
    new_password: Optional[str] = None
