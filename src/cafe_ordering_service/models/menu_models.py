"""Menu data models.

These models represent menu items as served by the backend menu catalog.
The catalog is read-only from the point of view of this service.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

ItemId = int | str


class MenuItem(BaseModel):
    """Menu item model."""

    model_config = ConfigDict(json_encoders={Decimal: str})

    id: ItemId = Field(..., description="Unique identifier for the menu item")
    name: str = Field(..., description="Item name")
    category: str | None = Field(None, description="Category the item is listed under")
    price: Decimal = Field(..., description="Item price", ge=0)
    image_url: str | None = Field(None, description="URL to item image")
    is_available: bool = Field(default=True, description="Whether item is currently available")
