"""Client for reading the menu catalog from the backend API."""

import logging
from decimal import Decimal

import httpx
from pydantic import ValidationError

from cafe_ordering_service.models.menu_models import ItemId, MenuItem
from cafe_ordering_service.observability import traced

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "All"


class MenuServiceClient:
    """HTTP client for fetching the menu catalog.

    The catalog is served as a JSON array of menu items. Besides fetching,
    this client offers the filtering the ordering views need: category tabs
    and the waiter console's name search.
    """

    def __init__(self, base_url: str, api_key: str | None = None, timeout: float = 30.0) -> None:
        """Initialize the menu client.

        Args:
            base_url: Base URL of the backend API (e.g., "https://cafe.example.com")
            api_key: Optional API key sent as X-API-Key
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        return headers

    @traced("menu.get_menu_items", service_name="ordering-svc")
    async def get_menu_items(self) -> list[MenuItem] | None:
        """Fetch the full menu catalog.

        Returns:
            List of MenuItem objects, empty list if the menu is empty, or None on failure
        """
        url = f"{self.base_url}/api/menu"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, headers=self._headers())
                response.raise_for_status()
                data = response.json()

                items = []
                for item_data in data or []:
                    item_data["price"] = Decimal(str(item_data["price"]))
                    items.append(MenuItem(**item_data))

                return items

        except (httpx.HTTPStatusError, httpx.RequestError) as e:
            logger.error(f"Failed to fetch menu: {e}")  # pragma: no cover
            return None
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed menu response: {e}")  # pragma: no cover
            return None

    async def get_categories(self) -> list[str] | None:
        """Fetch the category tabs for the menu.

        Returns:
            ["All", ...categories in first-seen order], or None on failure
        """
        items = await self.get_menu_items()
        if items is None:
            return None
        return list_categories(items)

    async def search_menu(
        self,
        category: str = ALL_CATEGORIES,
        query: str = "",
        available_only: bool = False,
    ) -> list[MenuItem] | None:
        """Fetch the menu and filter it by category and name.

        Args:
            category: Category to keep, "All" for every category
            query: Case-insensitive substring to match against item names
            available_only: Drop items flagged unavailable

        Returns:
            Matching items, or None on failure
        """
        items = await self.get_menu_items()
        if items is None:
            return None
        return filter_menu(items, category=category, query=query, available_only=available_only)


def find_item(items: list[MenuItem], item_id: ItemId) -> MenuItem | None:
    """Find an item by id, matching ids by their string form."""
    for item in items:
        if str(item.id) == str(item_id):
            return item
    return None


def list_categories(items: list[MenuItem]) -> list[str]:
    """Category tabs: "All" followed by each distinct category once."""
    categories = [ALL_CATEGORIES]
    for item in items:
        if item.category and item.category not in categories:
            categories.append(item.category)
    return categories


def filter_menu(
    items: list[MenuItem],
    category: str = ALL_CATEGORIES,
    query: str = "",
    available_only: bool = False,
) -> list[MenuItem]:
    """Filter menu items by category tab, name substring and availability."""
    query_lower = query.strip().lower()
    return [
        item
        for item in items
        if (category == ALL_CATEGORIES or item.category == category)
        and query_lower in item.name.lower()
        and (item.is_available or not available_only)
    ]
