"""Ordering sessions and order submission.

An ordering session owns one cart (an OrderLineSet) for one view: a
customer at a table, a waiter taking or editing an order, or an admin
editing an order. Sessions are never shared; the store only maps ids to
sessions so the HTTP layer can find them again.
"""

import asyncio
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

from cafe_ordering_service.cart.line_set import OrderLineSet, QuantityPolicy
from cafe_ordering_service.models.menu_models import ItemId, MenuItem
from cafe_ordering_service.models.order_models import (
    Order,
    OrderCreateRequest,
    OrderStatusEnum,
    OrderUpdateRequest,
)
from cafe_ordering_service.observability.metrics import (
    record_status_event,
    record_submission_duration,
    record_submission_failure,
    record_submission_success,
)
from cafe_ordering_service.services.errors import (
    EmptyCartError,
    InvalidTableError,
    OrderNotEditableError,
    OrderServiceError,
    SessionClosedError,
    SessionNotFoundError,
    SubmissionInProgressError,
)
from cafe_ordering_service.services.order_service_client import OrderServiceClient

logger = logging.getLogger(__name__)


class SessionKind(str, Enum):
    """Which view an ordering session belongs to."""

    CUSTOMER = "customer"
    WAITER = "waiter"
    ADMIN = "admin"


_POLICIES = {
    SessionKind.CUSTOMER: QuantityPolicy.AUTO_REMOVE,
    SessionKind.WAITER: QuantityPolicy.CLAMPED,
    SessionKind.ADMIN: QuantityPolicy.CLAMPED,
}


@dataclass
class OrderingSession:
    """State owned by a single ordering view.

    Attributes:
        session_id: Opaque identifier handed to the client
        kind: The view this session belongs to
        table_id: Table the order is for; fixed by the QR code for customers
        notes: Order-level note
        line_set: The cart
        editing_order_id: Set while the cart edits a persisted order
        active_order_id: Customer's last placed order, appended to on resubmit
        active_order_status: Last known status of the active order
        closed: True once the active order was paid
        submitting: True while a submission is waiting on the backend
    """

    session_id: str
    kind: SessionKind
    table_id: int | None = None
    notes: str = ""
    line_set: OrderLineSet = field(default_factory=OrderLineSet)
    editing_order_id: int | str | None = None
    active_order_id: int | str | None = None
    active_order_status: OrderStatusEnum | None = None
    closed: bool = False
    submitting: bool = False

    @property
    def policy(self) -> QuantityPolicy:
        """Decrement policy for this session's view."""
        return _POLICIES[self.kind]

    @property
    def is_editing(self) -> bool:
        return self.editing_order_id is not None

    def reset_cart(self) -> None:
        """Discard the cart and any edit state."""
        self.line_set.clear()
        self.notes = ""
        self.editing_order_id = None


@dataclass
class SubmissionResult:
    """Result of submitting a session's cart.

    Attributes:
        success: Whether the backend acknowledged the order
        order: The created or updated order on success
        attempts: Number of calls made to the backend
        error_message: Failure message for display, None on success
    """

    success: bool
    order: Order | None = None
    attempts: int = 0
    error_message: str | None = None


class SessionStore:
    """In-memory registry of ordering sessions."""

    def __init__(self) -> None:
        self._sessions: dict[str, OrderingSession] = {}

    def add(self, session: OrderingSession) -> None:
        self._sessions[session.session_id] = session

    def get(self, session_id: str) -> OrderingSession:
        """Return a session.

        Raises:
            SessionNotFoundError: If the id is unknown
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return session

    def discard(self, session_id: str) -> bool:
        """Forget a session. Returns False if it did not exist."""
        return self._sessions.pop(session_id, None) is not None

    def tracking(self, order_id: int | str) -> list[OrderingSession]:
        """Sessions whose active or edited order is ``order_id``."""
        key = str(order_id)
        return [
            s
            for s in self._sessions.values()
            if str(s.active_order_id) == key or str(s.editing_order_id) == key
        ]

    def __len__(self) -> int:
        return len(self._sessions)


class OrderingService:
    """Service coordinating ordering sessions with the order-persistence API.

    Cart mutations are synchronous and local. Submission and edit seeding
    go to the backend with a bounded number of attempts and a linearly
    growing delay between them.
    """

    def __init__(
        self,
        order_client: OrderServiceClient,
        session_store: SessionStore | None = None,
        max_table_number: int = 30,
        max_attempts: int = 3,
        retry_delay_seconds: float = 1.0,
    ) -> None:
        """Initialize the OrderingService.

        Args:
            order_client: Client for the order-persistence API
            session_store: Registry of live sessions
            max_table_number: Highest valid table number
            max_attempts: Backend calls made before giving up
            retry_delay_seconds: Base delay; attempt n waits n times this
        """
        self.order_client = order_client
        self.session_store = session_store if session_store is not None else SessionStore()
        self.max_table_number = max_table_number
        self.max_attempts = max_attempts
        self.retry_delay_seconds = retry_delay_seconds

    def start_session(self, kind: SessionKind, table_id: int | None = None) -> OrderingSession:
        """Create an empty cart session.

        Raises:
            InvalidTableError: If a customer session has no table or a table is out of range
        """
        if kind == SessionKind.CUSTOMER and table_id is None:
            raise InvalidTableError("A table is required for customer orders")
        if table_id is not None:
            self.validate_table(table_id)

        session = OrderingSession(session_id=uuid.uuid4().hex, kind=kind, table_id=table_id)
        self.session_store.add(session)
        logger.info(f"Started {kind.value} session {session.session_id} for table {table_id}")
        return session

    def get_session(self, session_id: str) -> OrderingSession:
        return self.session_store.get(session_id)

    def end_session(self, session_id: str) -> bool:
        """Discard a session and its cart."""
        return self.session_store.discard(session_id)

    def validate_table(self, table_id: int) -> None:
        if not 1 <= table_id <= self.max_table_number:
            raise InvalidTableError(f"Table number must be between 1 and {self.max_table_number}.")

    def set_details(
        self,
        session: OrderingSession,
        table_id: int | None = None,
        notes: str | None = None,
    ) -> None:
        """Update the table and order note of a session.

        Customers cannot move their order to another table.
        """
        if table_id is not None and table_id != session.table_id:
            if session.kind == SessionKind.CUSTOMER:
                raise InvalidTableError("Customers cannot change their table")
            self.validate_table(table_id)
            session.table_id = table_id
        if notes is not None:
            session.notes = notes

    def add_item(
        self,
        session: OrderingSession,
        menu_item: MenuItem,
        quantity: int = 1,
        note: str = "",
    ) -> None:
        self._ensure_open(session)
        session.line_set.add_item(menu_item, quantity, note)

    def adjust_quantity(self, session: OrderingSession, item_id: ItemId, delta: int) -> None:
        """Adjust a line under the session's own decrement policy."""
        session.line_set.adjust_quantity(item_id, delta, session.policy)

    async def begin_edit(self, session: OrderingSession, order_id: int | str) -> SubmissionResult:
        """Seed the cart from a persisted order so it can be edited.

        The current cart is replaced, not merged.

        Returns:
            SubmissionResult with the loaded order, or the read failure

        Raises:
            OrderNotEditableError: If the order is no longer pending
            SubmissionInProgressError: If the cart is being submitted
        """
        self._ensure_open(session)
        self._ensure_idle(session)
        result = await self._with_retry(lambda: self.order_client.get_order(order_id), "load order")
        if not result.success or result.order is None:
            return result

        order = result.order
        if not order.is_editable:
            raise OrderNotEditableError(f"Order {order.id} is {order.status.value} and cannot be edited")
        if session.kind == SessionKind.CUSTOMER and session.table_id != order.table_id:
            raise OrderNotEditableError(f"Order {order.id} belongs to another table")

        session.line_set.merge_from(order.items)
        session.table_id = order.table_id
        session.notes = order.notes or ""
        session.editing_order_id = order.id
        logger.info(f"Session {session.session_id} editing order {order.id} ({len(order.items)} lines)")
        return result

    async def submit(self, session: OrderingSession) -> SubmissionResult:
        """Send the session's cart to the backend.

        A snapshot of the cart is sent. Only the snapshot's lines are taken
        out of the cart once the backend acknowledges the order, so items
        added while the request was retrying stay for the next submit. A
        failed submission leaves the session exactly as it was.

        Raises:
            SubmissionInProgressError: If this session is already submitting
            EmptyCartError: If the cart has no lines
            InvalidTableError: If the session has no table
            SessionClosedError: If the customer's order was already paid
        """
        self._ensure_idle(session)
        if session.line_set.is_empty:
            raise EmptyCartError()
        if session.table_id is None:
            raise InvalidTableError("Please enter a table number.")
        self._ensure_open(session)

        snapshot = session.line_set.copy()
        items = snapshot.to_payload()
        notes = session.notes or None
        target_id = session.editing_order_id

        session.submitting = True
        try:
            if target_id is not None:
                update = OrderUpdateRequest(items=items, notes=notes)
                action = "update order"
                result = await self._with_retry(
                    lambda: self.order_client.update_order(target_id, update), action
                )
            else:
                create = OrderCreateRequest(table_id=session.table_id, items=items, notes=notes)
                action = "place order"
                result = await self._with_retry(lambda: self.order_client.create_order(create), action)
        finally:
            session.submitting = False

        if not result.success:
            record_submission_failure(session.kind.value, action)
            return result

        record_submission_success(session.kind.value, action, result.attempts)
        order = result.order
        if session.kind == SessionKind.CUSTOMER and order is not None:
            session.active_order_id = order.id
            session.active_order_status = order.status

        session.line_set.discard_submitted(snapshot)
        if session.notes == (notes or ""):
            session.notes = ""
        session.editing_order_id = None
        if not session.line_set.is_empty:
            logger.info(f"Session {session.session_id} kept {len(session.line_set)} line(s) added during submit")
        logger.info(f"Session {session.session_id}: {action} succeeded for order {order.id if order else None}")
        return result

    def cancel_cart(self, session: OrderingSession) -> None:
        """Discard the cart and any edit in progress, keeping the session."""
        self._ensure_idle(session)
        session.reset_cart()

    def handle_status_change(self, order_id: int | str, status: OrderStatusEnum) -> int:
        """Apply a pushed order status change to the sessions tracking it.

        Unsubmitted carts are never touched. A paid order closes the
        customer sessions it belongs to; staff sessions editing it only
        get a warning logged.

        Returns:
            Number of sessions notified
        """
        sessions = self.session_store.tracking(order_id)
        for session in sessions:
            if str(session.active_order_id) == str(order_id):
                session.active_order_status = status
                if status == OrderStatusEnum.PAID:
                    session.closed = True
            if str(session.editing_order_id) == str(order_id) and status == OrderStatusEnum.PAID:
                logger.warning(f"Order {order_id} was paid while session {session.session_id} was editing it")

        record_status_event(status.value, len(sessions))
        return len(sessions)

    def _ensure_open(self, session: OrderingSession) -> None:
        if session.closed:
            raise SessionClosedError("This order has been paid. Please ask staff for a new order.")

    def _ensure_idle(self, session: OrderingSession) -> None:
        if session.submitting:
            raise SubmissionInProgressError("This order is already being sent. Please wait.")

    async def _with_retry(
        self,
        call: Callable[[], Awaitable[Order]],
        action: str,
    ) -> SubmissionResult:
        """Run a backend call up to ``max_attempts`` times.

        Waits ``retry_delay_seconds * attempt`` between attempts.
        """
        started = time.monotonic()
        last_error = "Unknown error"

        for attempt in range(1, self.max_attempts + 1):
            try:
                order = await call()
                record_submission_duration(action, time.monotonic() - started)
                return SubmissionResult(success=True, order=order, attempts=attempt)
            except OrderServiceError as e:
                last_error = e.message
                logger.warning(f"{action} attempt {attempt}/{self.max_attempts} failed: {e.message}")

            if attempt < self.max_attempts:
                await asyncio.sleep(self.retry_delay_seconds * attempt)

        record_submission_duration(action, time.monotonic() - started)
        error_msg = f"Failed to {action} after {self.max_attempts} attempts: {last_error}"
        logger.error(error_msg)
        return SubmissionResult(
            success=False,
            attempts=self.max_attempts,
            error_message=error_msg,
        )
