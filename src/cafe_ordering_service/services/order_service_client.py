"""Client for the order-persistence API.

Every method performs exactly one HTTP call. Failures raise
OrderServiceError carrying a human-readable message; retrying is left to
the caller.
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from cafe_ordering_service.models.order_models import (
    Order,
    OrderCreateRequest,
    OrderStatusEnum,
    OrderUpdateRequest,
)
from cafe_ordering_service.observability import traced
from cafe_ordering_service.services.errors import OrderServiceError

logger = logging.getLogger(__name__)


class OrderServiceClient:
    """HTTP client for creating, reading and updating orders."""

    def __init__(self, base_url: str, api_key: str | None = None, timeout: float = 30.0) -> None:
        """Initialize the order client.

        Args:
            base_url: Base URL of the backend API
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

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Raises:
            OrderServiceError: On transport errors, non-2xx responses or
                bodies that are not JSON
        """
        url = f"{self.base_url}{path}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method, url, json=json, params=params, headers=self._headers()
                )
        except httpx.RequestError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise OrderServiceError(str(e) or type(e).__name__) from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.is_success:
            message = f"HTTP {response.status_code}"
            if isinstance(data, dict) and data.get("error"):
                message = str(data["error"])
            logger.error(f"{method} {path} returned {response.status_code}: {message}")
            raise OrderServiceError(message, status_code=response.status_code)

        if data is None:
            raise OrderServiceError("Malformed response from order service", response.status_code)

        return data

    @staticmethod
    def _parse_order(data: Any) -> Order:
        if not isinstance(data, dict) or not data.get("id"):
            raise OrderServiceError("Order service response is missing an order id")
        try:
            return Order.model_validate(data)
        except ValidationError as e:
            raise OrderServiceError(f"Malformed order in response: {e}") from e

    @traced("orders.create", service_name="ordering-svc")
    async def create_order(self, request: OrderCreateRequest) -> Order:
        """Create an order.

        Args:
            request: Table, items payload and optional note

        Returns:
            The created order including its assigned id
        """
        data = await self._request("POST", "/api/orders", json=request.model_dump())
        return self._parse_order(data)

    @traced("orders.update", service_name="ordering-svc")
    async def update_order(self, order_id: int | str, request: OrderUpdateRequest) -> Order:
        """Replace the items and note of an existing order.

        Args:
            order_id: The order to update
            request: Full items payload and optional note

        Returns:
            The updated order
        """
        data = await self._request("PATCH", f"/api/orders/{order_id}", json=request.model_dump())
        return self._parse_order(data)

    @traced("orders.get", service_name="ordering-svc")
    async def get_order(self, order_id: int | str) -> Order:
        """Read one order, used to seed an edit session."""
        data = await self._request("GET", f"/api/orders/{order_id}")
        return self._parse_order(data)

    @traced("orders.list", service_name="ordering-svc")
    async def list_orders(self, status: OrderStatusEnum | None = OrderStatusEnum.PENDING) -> list[Order]:
        """List orders, pending ones by default."""
        params = {"status": status.value} if status is not None else None
        data = await self._request("GET", "/api/orders", params=params)
        return self._parse_orders(data)

    @traced("orders.list_all", service_name="ordering-svc")
    async def list_all_orders(self) -> list[Order]:
        """List every order through the admin endpoint."""
        data = await self._request("GET", "/api/admin/orders")
        # The admin endpoint wraps its rows in {"data": [...]}
        if isinstance(data, dict):
            data = data.get("data", [])
        return self._parse_orders(data)

    @traced("orders.mark_paid", service_name="ordering-svc")
    async def mark_paid(self, order_id: int | str) -> Order | None:
        """Mark an order paid.

        Returns:
            The updated order when the backend echoes it, None otherwise
        """
        data = await self._request("PATCH", f"/api/orders/{order_id}/pay")
        if isinstance(data, dict) and data.get("id"):
            return self._parse_order(data)
        return None

    @staticmethod
    def _parse_orders(data: Any) -> list[Order]:
        if not isinstance(data, list):
            raise OrderServiceError("Expected a list of orders from order service")
        try:
            return [Order.model_validate(row) for row in data]
        except ValidationError as e:
            raise OrderServiceError(f"Malformed order in response: {e}") from e
