"""Order and order line models.

These models mirror the shapes exchanged with the order-persistence API.
An order's ``items`` array is the serialized form of an order line set.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_serializer, field_validator

from cafe_ordering_service.models.menu_models import ItemId


class OrderStatusEnum(str, Enum):
    """Enumeration of order status values."""

    PENDING = "pending"
    PAID = "paid"


class OrderLine(BaseModel):
    """One entry of an order: a menu item snapshot, a quantity and a note.

    Lines persisted by older clients may omit ``quantity`` and ``note``, or
    store a quantity of zero; such lines count as one unit with an empty
    note. Prices stay ``Decimal`` in memory and are written to JSON as
    numbers, the type the order-persistence API stores.
    """

    item_id: ItemId = Field(..., description="Menu item this line refers to")
    name: str = Field(..., description="Item name at the time it was added")
    price: Decimal = Field(..., description="Unit price snapshot", ge=0)
    category: str | None = Field(None, description="Item category snapshot")
    image_url: str | None = Field(None, description="Item image snapshot")
    quantity: int = Field(default=1, description="Number of units", ge=1)
    note: str = Field(default="", description="Free-text customization note")

    @field_validator("quantity", mode="before")
    @classmethod
    def default_missing_quantity(cls, v: Any) -> Any:
        """Treat a null, zero or negative quantity as a single unit."""
        if v is None:
            return 1
        try:
            if int(v) < 1:
                return 1
        except (TypeError, ValueError):
            # Leave non-numeric values to the int validator
            return v
        return v

    @field_validator("note", mode="before")
    @classmethod
    def default_missing_note(cls, v: Any) -> Any:
        """Treat a null note as empty."""
        return "" if v is None else v

    @field_serializer("price", when_used="json")
    def serialize_price(self, price: Decimal) -> int | float:
        """Whole amounts as int, others as float."""
        if price == price.to_integral_value():
            return int(price)
        return float(price)


class Order(BaseModel):
    """Order as stored by the order-persistence API."""

    id: ItemId = Field(..., description="Order identifier assigned by the backend")
    table_id: int = Field(..., description="Table the order belongs to")
    items: list[OrderLine] = Field(default_factory=list, description="Ordered lines")
    notes: str | None = Field(None, description="Order-level note")
    status: OrderStatusEnum = Field(default=OrderStatusEnum.PENDING, description="Order status")
    created_at: datetime | None = Field(None, description="Creation timestamp (UTC)")

    @property
    def is_editable(self) -> bool:
        """Only pending orders can be changed."""
        return self.status == OrderStatusEnum.PENDING


class OrderCreateRequest(BaseModel):
    """Body of an order-create call."""

    table_id: int
    items: list[dict[str, Any]]
    notes: str | None = None


class OrderUpdateRequest(BaseModel):
    """Body of an order-update call."""

    items: list[dict[str, Any]]
    notes: str | None = None
