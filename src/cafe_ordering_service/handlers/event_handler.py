"""Handler for realtime order change notifications.

The backend pushes row changes of the orders table as
``{"eventType": "UPDATE", "table": "orders", "new": {...row...}}``.
Only status changes matter here; they are routed to the sessions that
track the order.
"""

import logging
from typing import Any

from pydantic import BaseModel, ValidationError

from cafe_ordering_service.models.order_models import OrderStatusEnum
from cafe_ordering_service.services.ordering_service import OrderingService

logger = logging.getLogger(__name__)


class OrderStatusChangedEvent(BaseModel):
    """Status change of one order.

    Attributes:
        order_id: The order whose row changed
        status: New status of the order
        table_id: Table of the order, when present in the row
    """

    order_id: int | str
    status: OrderStatusEnum
    table_id: int | None = None


def parse_order_change(payload: dict[str, Any]) -> OrderStatusChangedEvent | None:
    """Parse a realtime change payload into an OrderStatusChangedEvent.

    Args:
        payload: Raw change notification

    Returns:
        OrderStatusChangedEvent if the payload is an orders update with an
        id and status, None otherwise
    """
    if payload.get("table", "orders") != "orders":
        logger.warning(f"Ignoring change notification for table {payload.get('table')}")
        return None

    row = payload.get("new")
    if not isinstance(row, dict) or not row.get("id"):
        logger.warning("Invalid order change payload: missing row or id")
        return None

    try:
        return OrderStatusChangedEvent(
            order_id=row["id"],
            status=row.get("status"),
            table_id=row.get("table_id"),
        )
    except ValidationError as e:
        logger.error(f"Failed to parse order change: {e}")  # pragma: no cover
        return None


class OrderEventHandler:
    """Routes order status changes to the ordering sessions tracking them."""

    def __init__(self, ordering_service: OrderingService) -> None:
        """Initialize the event handler.

        Args:
            ordering_service: Service owning the live sessions
        """
        self.ordering_service = ordering_service

    def handle_status_changed(self, event: OrderStatusChangedEvent) -> int:
        """Apply a status change.

        Returns:
            Number of sessions that were tracking the order
        """
        notified = self.ordering_service.handle_status_change(event.order_id, event.status)
        logger.info(
            f"Order {event.order_id} is now {event.status.value}; {notified} session(s) notified"
        )
        return notified

    def handle_notification(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Entry point for raw change notifications.

        Args:
            payload: Raw notification body

        Returns:
            Dictionary with statusCode and body
        """
        event = parse_order_change(payload)
        if event is None:
            return {"statusCode": 400, "body": "Invalid order change payload"}

        notified = self.handle_status_changed(event)
        return {
            "statusCode": 200,
            "body": f"Order {event.order_id} status {event.status.value} delivered to {notified} session(s)",
        }
