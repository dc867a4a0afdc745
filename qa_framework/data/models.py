"""
Data models for test fixture records.

Records are immutable once created. Field names are snake_case in Python
and camelCase in fixture files.
"""

from datetime import date, datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class FixtureRecord(BaseModel):
    """Base for all generated or loaded records."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_fixture(self) -> dict:
        """Serialize using the camelCase field names of fixture files."""
        return self.model_dump(mode="json", by_alias=True)


class Address(FixtureRecord):
    street: str
    city: str
    state: str
    zip_code: str
    country: str


class UserRecord(FixtureRecord):
    """A user account with contact and profile details."""

    id: str = Field(..., description="Unique user identifier")
    first_name: str
    last_name: str
    email: str
    username: str
    password: str
    phone: str = ""
    address: Address
    date_of_birth: date
    company: str = ""
    job_title: str = ""
    avatar: str = ""
    website: str = ""
    bio: str = ""

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        if "@" not in v:
            raise ValueError("Email must contain '@'")
        return v


class Dimensions(FixtureRecord):
    length: float
    width: float
    height: float
    weight: float


class ProductRecord(FixtureRecord):
    """A catalogue product."""

    id: str
    name: str
    description: str = ""
    price: float = Field(..., ge=0)
    category: str
    brand: str = ""
    sku: str
    in_stock: bool
    stock_quantity: int = Field(..., ge=0)
    rating: float = Field(..., ge=1, le=5)
    images: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    dimensions: Dimensions


class OrderItem(FixtureRecord):
    product_id: str
    product_name: str
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    total: float = Field(..., ge=0)


class ShippingAddress(Address):
    name: str


class OrderRecord(FixtureRecord):
    """A customer order; ``total`` is subtotal plus tax plus shipping."""

    id: str
    order_number: str
    customer_id: str
    status: str
    order_date: datetime
    items: List[OrderItem]
    subtotal: float
    tax: float
    shipping: float
    total: float
    shipping_address: ShippingAddress
    payment_method: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        valid_statuses = ["pending", "processing", "shipped", "delivered", "cancelled"]
        if v not in valid_statuses:
            raise ValueError(f"Status must be one of: {valid_statuses}")
        return v

    @field_validator("items")
    @classmethod
    def validate_items(cls, v):
        if not v:
            raise ValueError("An order needs at least one item")
        return v
