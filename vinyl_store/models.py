import enum
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, Numeric, String

from .database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"
    CANCELED = "CANCELED"


class Role(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class Order(Base):
    __tablename__ = "orders"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    # Line items are embedded in the order record: list of
    # {vinyl_id, quantity, title, artist, price, cover_path}
    items = Column(JSON, nullable=False, default=list)
    qt = Column(Integer, nullable=False, default=0)
    payment_id = Column(String, unique=True, index=True, nullable=True)
    order_status = Column(String, nullable=False, default=OrderStatus.PENDING.value)
    is_payment_confirmed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)


class Vinyl(Base):
    __tablename__ = "vinyls"

    id = Column(String, primary_key=True, index=True)
    title = Column(String, nullable=False)
    artist = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    cover_path = Column(String, nullable=True)
    gallery = Column(JSON, nullable=False, default=list)
    is_principal = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)
    roles = Column(JSON, nullable=False, default=list)
    email_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class EmailVerificationToken(Base):
    """Single-use token for email verification and password reset links."""

    __tablename__ = "email_verification_tokens"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    token = Column(String, unique=True, index=True, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
