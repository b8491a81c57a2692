"""CSV export of orders for the admin dashboard."""

import csv
import io
import logging

from cafe_ordering_service.cart.line_set import OrderLineSet
from cafe_ordering_service.models.order_models import Order
from cafe_ordering_service.services.order_service_client import OrderServiceClient
from cafe_ordering_service.utils.formatting import format_ist, round_currency

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "order_id",
    "table_id",
    "status",
    "created_at_ist",
    "items",
    "item_count",
    "total",
    "notes",
]


def summarize_items(order: Order) -> str:
    """Render an order's lines as ``Name x2; Other x1``."""
    return "; ".join(f"{line.name} x{line.quantity}" for line in order.items)


def order_to_row(order: Order) -> dict[str, str]:
    """Flatten an order into one CSV row.

    Totals go through the same line set arithmetic the carts use.
    """
    line_set = OrderLineSet(order.items)
    return {
        "order_id": str(order.id),
        "table_id": str(order.table_id),
        "status": order.status.value,
        "created_at_ist": format_ist(order.created_at) if order.created_at else "",
        "items": summarize_items(order),
        "item_count": str(line_set.compute_item_count()),
        "total": str(round_currency(line_set.compute_total())),
        "notes": order.notes or "",
    }


def orders_to_csv(orders: list[Order]) -> str:
    """Write orders as CSV text with a header row."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    for order in orders:
        writer.writerow(order_to_row(order))
    return buffer.getvalue()


class ExportService:
    """Service producing order exports from the backend's order list."""

    def __init__(self, order_client: OrderServiceClient) -> None:
        """Initialize the ExportService.

        Args:
            order_client: Client used to list every order
        """
        self.order_client = order_client

    async def export_orders_csv(self) -> str:
        """Fetch all orders and render them as CSV.

        Raises:
            OrderServiceError: If the order list cannot be fetched
        """
        orders = await self.order_client.list_all_orders()
        logger.info(f"Exporting {len(orders)} orders")
        return orders_to_csv(orders)
