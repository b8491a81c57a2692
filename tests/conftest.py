"""Shared pytest fixtures and configuration for all tests."""

import os
from decimal import Decimal

import pytest

# Keep src/main.py from building the real application on import
os.environ.setdefault("ENVIRONMENT", "test")

from cafe_ordering_service.models.menu_models import MenuItem  # noqa: E402


@pytest.fixture
def mock_menu_items() -> list[dict]:
    """Fixture providing the menu catalog as served by the backend."""
    return [
        {
            "id": 1,
            "name": "Coffee",
            "category": "Beverages",
            "price": 50,
            "image_url": "https://example.com/coffee.jpg",
            "is_available": True,
        },
        {
            "id": 2,
            "name": "Masala Tea",
            "category": "Beverages",
            "price": 30,
            "image_url": None,
            "is_available": True,
        },
        {
            "id": 3,
            "name": "Paneer Sandwich",
            "category": "Snacks",
            "price": 120.5,
            "image_url": None,
            "is_available": False,
        },
    ]


@pytest.fixture
def coffee() -> MenuItem:
    """Fixture providing a single menu item priced 50."""
    return MenuItem(id=1, name="Coffee", category="Beverages", price=Decimal("50"))


@pytest.fixture
def tea() -> MenuItem:
    """Fixture providing a single menu item priced 30."""
    return MenuItem(id=2, name="Masala Tea", category="Beverages", price=Decimal("30"))


@pytest.fixture
def sandwich() -> MenuItem:
    """Fixture providing an unavailable menu item."""
    return MenuItem(
        id=3,
        name="Paneer Sandwich",
        category="Snacks",
        price=Decimal("120.50"),
        is_available=False,
    )


@pytest.fixture
def mock_order() -> dict:
    """Fixture providing a pending order as returned by the order API."""
    return {
        "id": 101,
        "table_id": 7,
        "items": [
            {
                "item_id": 1,
                "name": "Coffee",
                "price": 50,
                "category": "Beverages",
                "image_url": None,
                "quantity": 1,
                "note": "less sugar",
            },
            {
                "item_id": 2,
                "name": "Masala Tea",
                "price": 30,
                "category": "Beverages",
                "image_url": None,
                "quantity": 2,
                "note": "",
            },
        ],
        "notes": "window seat",
        "status": "pending",
        "created_at": "2025-01-15T10:30:00Z",
    }
