"""Unit tests for OrderServiceClient."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from cafe_ordering_service.models.order_models import (
    OrderCreateRequest,
    OrderStatusEnum,
    OrderUpdateRequest,
)
from cafe_ordering_service.services.errors import OrderServiceError
from cafe_ordering_service.services.order_service_client import OrderServiceClient


def _response(status_code: int, body: object) -> MagicMock:
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.is_success = 200 <= status_code < 300
    mock_response.json.return_value = body
    return mock_response


@pytest.mark.unit
class TestOrderServiceClient:
    """Test suite for OrderServiceClient."""

    @pytest.fixture
    def client(self) -> OrderServiceClient:
        """Create an OrderServiceClient with test configuration."""
        return OrderServiceClient(base_url="https://cafe.test.com", api_key="test-api-key")

    @pytest.mark.asyncio
    async def test_create_order_success(self, client: OrderServiceClient, mock_order: dict) -> None:
        """Test creating an order posts the payload and parses the reply."""
        mock_request = AsyncMock(return_value=_response(201, mock_order))
        request = OrderCreateRequest(table_id=7, items=[{"item_id": 1}], notes="window seat")

        with patch("httpx.AsyncClient.request", mock_request):
            order = await client.create_order(request)

        assert order.id == 101
        assert order.table_id == 7
        assert order.items[1].quantity == 2
        assert order.items[0].price == Decimal("50")

        args = mock_request.call_args
        assert args.args == ("POST", "https://cafe.test.com/api/orders")
        assert args.kwargs["json"] == {
            "table_id": 7,
            "items": [{"item_id": 1}],
            "notes": "window seat",
        }
        assert args.kwargs["headers"]["X-API-Key"] == "test-api-key"

    @pytest.mark.asyncio
    async def test_update_order_uses_patch(self, client: OrderServiceClient, mock_order: dict) -> None:
        """Test that updates go to the order's own URL."""
        mock_request = AsyncMock(return_value=_response(200, mock_order))

        with patch("httpx.AsyncClient.request", mock_request):
            await client.update_order(101, OrderUpdateRequest(items=[]))

        assert mock_request.call_args.args == ("PATCH", "https://cafe.test.com/api/orders/101")
        assert mock_request.call_args.kwargs["json"] == {"items": [], "notes": None}

    @pytest.mark.asyncio
    async def test_error_field_becomes_message(self, client: OrderServiceClient) -> None:
        """Test that the backend's error text is surfaced."""
        with patch(
            "httpx.AsyncClient.request",
            new_callable=AsyncMock,
            return_value=_response(400, {"error": "Table 40 does not exist"}),
        ):
            with pytest.raises(OrderServiceError) as exc_info:
                await client.create_order(OrderCreateRequest(table_id=40, items=[]))

        assert exc_info.value.message == "Table 40 does not exist"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_status_code_message_without_error_field(self, client: OrderServiceClient) -> None:
        """Test the fallback message for bodies without an error field."""
        response = _response(503, None)
        response.json.side_effect = ValueError("no json")

        with patch("httpx.AsyncClient.request", new_callable=AsyncMock, return_value=response):
            with pytest.raises(OrderServiceError, match="HTTP 503"):
                await client.get_order(5)

    @pytest.mark.asyncio
    async def test_missing_order_id_is_failure(self, client: OrderServiceClient) -> None:
        """Test that a 2xx reply without an id counts as a failure."""
        with patch(
            "httpx.AsyncClient.request",
            new_callable=AsyncMock,
            return_value=_response(200, {"status": "ok"}),
        ):
            with pytest.raises(OrderServiceError, match="missing an order id"):
                await client.create_order(OrderCreateRequest(table_id=1, items=[]))

    @pytest.mark.asyncio
    async def test_network_error(self, client: OrderServiceClient) -> None:
        """Test that transport errors raise OrderServiceError without a status."""
        with patch(
            "httpx.AsyncClient.request",
            new_callable=AsyncMock,
            side_effect=httpx.ConnectError("Connection refused", request=MagicMock()),
        ):
            with pytest.raises(OrderServiceError) as exc_info:
                await client.get_order(101)

        assert exc_info.value.status_code is None
        assert "Connection refused" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_list_orders_filters_pending(self, client: OrderServiceClient, mock_order: dict) -> None:
        """Test the pending order listing."""
        mock_request = AsyncMock(return_value=_response(200, [mock_order]))

        with patch("httpx.AsyncClient.request", mock_request):
            orders = await client.list_orders()

        assert len(orders) == 1
        assert orders[0].status == OrderStatusEnum.PENDING
        assert mock_request.call_args.kwargs["params"] == {"status": "pending"}

    @pytest.mark.asyncio
    async def test_list_orders_rejects_non_list(self, client: OrderServiceClient) -> None:
        with patch(
            "httpx.AsyncClient.request",
            new_callable=AsyncMock,
            return_value=_response(200, {"orders": []}),
        ):
            with pytest.raises(OrderServiceError):
                await client.list_orders()

    @pytest.mark.asyncio
    async def test_list_all_orders_unwraps_data(self, client: OrderServiceClient, mock_order: dict) -> None:
        """Test that the admin listing unwraps its data envelope."""
        mock_request = AsyncMock(return_value=_response(200, {"data": [mock_order]}))

        with patch("httpx.AsyncClient.request", mock_request):
            orders = await client.list_all_orders()

        assert [order.id for order in orders] == [101]
        assert mock_request.call_args.args == ("GET", "https://cafe.test.com/api/admin/orders")

    @pytest.mark.asyncio
    async def test_mark_paid(self, client: OrderServiceClient, mock_order: dict) -> None:
        """Test marking an order paid."""
        paid = {**mock_order, "status": "paid"}
        mock_request = AsyncMock(return_value=_response(200, paid))

        with patch("httpx.AsyncClient.request", mock_request):
            order = await client.mark_paid(101)

        assert order is not None
        assert order.status == OrderStatusEnum.PAID
        assert order.is_editable is False
        assert mock_request.call_args.args == ("PATCH", "https://cafe.test.com/api/orders/101/pay")

    @pytest.mark.asyncio
    async def test_mark_paid_without_echo(self, client: OrderServiceClient) -> None:
        """Test a pay endpoint that only acknowledges."""
        with patch(
            "httpx.AsyncClient.request",
            new_callable=AsyncMock,
            return_value=_response(200, {"success": True}),
        ):
            assert await client.mark_paid(101) is None

    @pytest.mark.asyncio
    async def test_list_orders_with_zero_quantity_line(
        self, client: OrderServiceClient, mock_order: dict
    ) -> None:
        """Test that a legacy zero-quantity line does not break the pending list."""
        legacy = {**mock_order, "items": [{**mock_order["items"][0], "quantity": 0}]}

        with patch(
            "httpx.AsyncClient.request",
            new_callable=AsyncMock,
            return_value=_response(200, [legacy]),
        ):
            orders = await client.list_orders()

        assert orders[0].items[0].quantity == 1
