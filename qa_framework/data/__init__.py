"""Test data: fixture loading and fake record generation."""

from .manager import TestDataManager
from .models import (
    Address,
    Dimensions,
    FixtureRecord,
    OrderItem,
    OrderRecord,
    ProductRecord,
    ShippingAddress,
    UserRecord,
)

__all__ = [
    "TestDataManager",
    "FixtureRecord",
    "Address",
    "UserRecord",
    "Dimensions",
    "ProductRecord",
    "OrderItem",
    "ShippingAddress",
    "OrderRecord",
]
