"""Test factories for creating test data."""

from tests.factories.database import FakeDatabase
from tests.factories.records import (
    Address,
    Customer,
    Invoice,
    Order,
    OrderStatus,
    RecordFactory,
    Shipment,
)

__all__ = [
    "Address",
    "Customer",
    "FakeDatabase",
    "Invoice",
    "Order",
    "OrderStatus",
    "RecordFactory",
    "Shipment",
]
