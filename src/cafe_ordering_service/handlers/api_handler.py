"""FastAPI application for the ordering API."""

import logging
from decimal import Decimal
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from cafe_ordering_service.auth.api_dependencies import require_admin_key
from cafe_ordering_service.auth.api_key_validator import APIKeyValidator
from cafe_ordering_service.cart.line_set import QuantityPolicy
from cafe_ordering_service.handlers.event_handler import OrderEventHandler
from cafe_ordering_service.models.menu_models import MenuItem
from cafe_ordering_service.models.order_models import Order, OrderLine, OrderStatusEnum
from cafe_ordering_service.services.errors import (
    EmptyCartError,
    InvalidTableError,
    OrderingError,
    OrderNotEditableError,
    OrderServiceError,
    SessionClosedError,
    SessionNotFoundError,
    SubmissionInProgressError,
)
from cafe_ordering_service.services.export_service import ExportService
from cafe_ordering_service.services.menu_service_client import (
    ALL_CATEGORIES,
    MenuServiceClient,
    find_item,
)
from cafe_ordering_service.services.ordering_service import (
    OrderingService,
    OrderingSession,
    SessionKind,
)
from cafe_ordering_service.utils.formatting import format_currency

logger = logging.getLogger(__name__)

MENU_UNAVAILABLE = "Failed to load menu. Please try again."

_ERROR_STATUS: dict[type[OrderingError], int] = {
    SessionNotFoundError: 404,
    EmptyCartError: 400,
    InvalidTableError: 400,
    SessionClosedError: 400,
    OrderNotEditableError: 409,
    SubmissionInProgressError: 409,
}


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


class StartSessionRequest(BaseModel):
    """Request to open a cart for a view."""

    kind: SessionKind
    table_id: int | None = None


class AddItemRequest(BaseModel):
    """Request to add a menu item to a cart."""

    item_id: int | str
    quantity: int = Field(default=1, description="Units to add")
    note: str = ""


class AdjustQuantityRequest(BaseModel):
    """Request to change a line's quantity."""

    delta: int


class NoteRequest(BaseModel):
    """Request to set a line's note."""

    note: str = ""


class SessionDetailsRequest(BaseModel):
    """Request to set the table or order note of a session."""

    table_id: int | None = None
    notes: str | None = None


class SessionResponse(BaseModel):
    """Snapshot of a session and its cart."""

    session_id: str
    kind: SessionKind
    policy: QuantityPolicy
    table_id: int | None
    notes: str
    lines: list[OrderLine]
    item_count: int
    total: Decimal
    total_display: str
    editing_order_id: int | str | None
    active_order_id: int | str | None
    active_order_status: str | None
    closed: bool

    @classmethod
    def from_session(cls, session: OrderingSession) -> "SessionResponse":
        line_set = session.line_set
        total = line_set.compute_total()
        return cls(
            session_id=session.session_id,
            kind=session.kind,
            policy=session.policy,
            table_id=session.table_id,
            notes=session.notes,
            lines=line_set.lines,
            item_count=line_set.compute_item_count(),
            total=total,
            total_display=format_currency(total),
            editing_order_id=session.editing_order_id,
            active_order_id=session.active_order_id,
            active_order_status=(
                session.active_order_status.value if session.active_order_status else None
            ),
            closed=session.closed,
        )


class SubmitResponse(BaseModel):
    """Response model for a successful submission."""

    success: bool
    attempts: int
    order: Order | None
    session: SessionResponse


def create_app(
    ordering_service: OrderingService,
    menu_client: MenuServiceClient,
    export_service: ExportService,
    api_keys: list[str],
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        ordering_service: Service owning the ordering sessions
        menu_client: Client for the menu catalog
        export_service: Service producing order exports
        api_keys: List of valid API keys for admin endpoints

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Cafe Table Ordering API",
        description="Carts and order submission for table, waiter and admin ordering views",
        version="1.0.0",
    )

    app.state.ordering_service = ordering_service
    app.state.menu_client = menu_client
    app.state.export_service = export_service
    app.state.event_handler = OrderEventHandler(ordering_service=ordering_service)
    app.state.api_key_validator = APIKeyValidator(api_keys=api_keys)

    @app.exception_handler(OrderingError)
    async def ordering_error_handler(_request: Request, exc: OrderingError) -> JSONResponse:
        status_code = _ERROR_STATUS.get(type(exc), 400)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    validate_api_key = require_admin_key(app.state.api_key_validator)

    def load_session(session_id: str) -> OrderingSession:
        session: OrderingSession = app.state.ordering_service.get_session(session_id)
        return session

    async def fetch_menu() -> list[MenuItem]:
        items: list[MenuItem] | None = await app.state.menu_client.get_menu_items()
        if items is None:
            raise HTTPException(status_code=502, detail=MENU_UNAVAILABLE)
        return items

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy")

    @app.get("/menu", response_model=list[MenuItem], tags=["Menu"])
    async def get_menu(
        category: str = ALL_CATEGORIES,
        search: str = "",
        available_only: bool = False,
    ) -> list[MenuItem]:
        """Menu items filtered by category tab and name search."""
        items: list[MenuItem] | None = await app.state.menu_client.search_menu(
            category=category, query=search, available_only=available_only
        )
        if items is None:
            raise HTTPException(status_code=502, detail=MENU_UNAVAILABLE)
        return items

    @app.get("/menu/categories", response_model=list[str], tags=["Menu"])
    async def get_categories() -> list[str]:
        """Category tabs, starting with "All"."""
        categories: list[str] | None = await app.state.menu_client.get_categories()
        if categories is None:
            raise HTTPException(status_code=502, detail=MENU_UNAVAILABLE)
        return categories

    @app.post("/sessions", response_model=SessionResponse, status_code=201, tags=["Cart"])
    async def start_session(body: StartSessionRequest) -> SessionResponse:
        """Open an empty cart for a customer table, the waiter console or admin."""
        session = app.state.ordering_service.start_session(body.kind, body.table_id)
        return SessionResponse.from_session(session)

    @app.get("/sessions/{session_id}", response_model=SessionResponse, tags=["Cart"])
    async def get_session(session_id: str) -> SessionResponse:
        return SessionResponse.from_session(load_session(session_id))

    @app.delete("/sessions/{session_id}", status_code=204, tags=["Cart"])
    async def end_session(session_id: str) -> Response:
        """Discard a session and its cart."""
        if not app.state.ordering_service.end_session(session_id):
            raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
        return Response(status_code=204)

    @app.post("/sessions/{session_id}/items", response_model=SessionResponse, tags=["Cart"])
    async def add_item(session_id: str, body: AddItemRequest) -> SessionResponse:
        """Add a menu item to the cart, or bump its quantity."""
        session = load_session(session_id)
        menu_item = find_item(await fetch_menu(), body.item_id)
        if menu_item is None:
            raise HTTPException(status_code=404, detail=f"Menu item {body.item_id} not found")
        if not menu_item.is_available:
            raise HTTPException(status_code=409, detail=f"{menu_item.name} is not available")

        app.state.ordering_service.add_item(session, menu_item, body.quantity, body.note)
        return SessionResponse.from_session(session)

    @app.delete("/sessions/{session_id}/items", response_model=SessionResponse, tags=["Cart"])
    async def cancel_cart(session_id: str) -> SessionResponse:
        """Empty the cart and drop any edit in progress."""
        session = load_session(session_id)
        app.state.ordering_service.cancel_cart(session)
        return SessionResponse.from_session(session)

    @app.patch(
        "/sessions/{session_id}/items/{item_id}", response_model=SessionResponse, tags=["Cart"]
    )
    async def adjust_quantity(
        session_id: str, item_id: str, body: AdjustQuantityRequest
    ) -> SessionResponse:
        """Change a line's quantity using the session's decrement policy."""
        session = load_session(session_id)
        app.state.ordering_service.adjust_quantity(session, item_id, body.delta)
        return SessionResponse.from_session(session)

    @app.put(
        "/sessions/{session_id}/items/{item_id}/note",
        response_model=SessionResponse,
        tags=["Cart"],
    )
    async def set_note(session_id: str, item_id: str, body: NoteRequest) -> SessionResponse:
        session = load_session(session_id)
        session.line_set.set_note(item_id, body.note)
        return SessionResponse.from_session(session)

    @app.delete(
        "/sessions/{session_id}/items/{item_id}", response_model=SessionResponse, tags=["Cart"]
    )
    async def remove_item(session_id: str, item_id: str) -> SessionResponse:
        session = load_session(session_id)
        session.line_set.remove_item(item_id)
        return SessionResponse.from_session(session)

    @app.put("/sessions/{session_id}/details", response_model=SessionResponse, tags=["Cart"])
    async def set_details(session_id: str, body: SessionDetailsRequest) -> SessionResponse:
        """Set the table number and order note."""
        session = load_session(session_id)
        app.state.ordering_service.set_details(session, table_id=body.table_id, notes=body.notes)
        return SessionResponse.from_session(session)

    @app.post(
        "/sessions/{session_id}/edit/{order_id}", response_model=SessionResponse, tags=["Cart"]
    )
    async def begin_edit(session_id: str, order_id: str) -> SessionResponse:
        """Replace the cart with the items of a persisted order for editing."""
        session = load_session(session_id)
        result = await app.state.ordering_service.begin_edit(session, order_id)
        if not result.success:
            raise HTTPException(status_code=502, detail=result.error_message)
        return SessionResponse.from_session(session)

    @app.post("/sessions/{session_id}/submit", response_model=SubmitResponse, tags=["Cart"])
    async def submit(session_id: str) -> SubmitResponse:
        """Place the cart as a new order, or save it over the edited order.

        Returns:
            The acknowledged order and the now empty session

        Raises:
            HTTPException: 502 with the failure message when every attempt failed
        """
        session = load_session(session_id)
        result = await app.state.ordering_service.submit(session)
        if not result.success:
            raise HTTPException(status_code=502, detail=result.error_message)

        return SubmitResponse(
            success=True,
            attempts=result.attempts,
            order=result.order,
            session=SessionResponse.from_session(session),
        )

    @app.get("/orders", response_model=list[Order], tags=["Orders"])
    async def list_pending_orders(table_id: int | None = None) -> list[Order]:
        """Pending orders for the waiter console, optionally for one table."""
        try:
            orders: list[Order] = await app.state.ordering_service.order_client.list_orders()
        except OrderServiceError as e:
            raise HTTPException(
                status_code=502, detail=f"Failed to load pending orders: {e.message}"
            ) from e

        if table_id is not None:
            orders = [order for order in orders if order.table_id == table_id]
        return orders

    @app.post("/events/order-status", tags=["Events"])
    async def order_status_event(payload: dict[str, Any]) -> JSONResponse:
        """Intake for realtime order change notifications."""
        result = app.state.event_handler.handle_notification(payload)
        return JSONResponse(status_code=result["statusCode"], content={"detail": result["body"]})

    @app.patch("/admin/orders/{order_id}/pay", tags=["Admin"])
    async def mark_paid(order_id: str, _api_key: str = Depends(validate_api_key)) -> dict[str, Any]:
        """Mark an order paid and close the sessions tracking it."""
        try:
            await app.state.ordering_service.order_client.mark_paid(order_id)
        except OrderServiceError as e:
            status_code = 404 if e.status_code == 404 else 502
            raise HTTPException(status_code=status_code, detail=e.message) from e

        logger.info(f"Order {order_id} marked paid")
        notified = app.state.ordering_service.handle_status_change(order_id, OrderStatusEnum.PAID)
        return {"order_id": order_id, "status": "paid", "sessions_notified": notified}

    @app.get("/admin/orders/export", tags=["Admin"])
    async def export_orders(_api_key: str = Depends(validate_api_key)) -> Response:
        """Download every order as CSV."""
        try:
            content = await app.state.export_service.export_orders_csv()
        except OrderServiceError as e:
            raise HTTPException(status_code=502, detail=f"Failed to export orders: {e.message}") from e

        return Response(
            content=content,
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="orders.csv"'},
        )

    return app
