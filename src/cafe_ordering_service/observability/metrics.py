"""Custom metrics for the ordering service."""

from opentelemetry import metrics

# Get meter for ordering service
meter = metrics.get_meter("ordering-svc")

submission_success_counter = meter.create_counter(
    name="order_submission_success_total",
    description="Total number of acknowledged order submissions by session kind",
    unit="1",
)

submission_failure_counter = meter.create_counter(
    name="order_submission_failure_total",
    description="Total number of order submissions that exhausted their attempts",
    unit="1",
)

submission_attempts_histogram = meter.create_histogram(
    name="order_submission_attempts",
    description="Backend calls needed for a successful submission",
    unit="1",
)

submission_duration_histogram = meter.create_histogram(
    name="order_submission_duration_seconds",
    description="Duration of order backend calls including retries",
    unit="s",
)

status_event_counter = meter.create_counter(
    name="order_status_events_total",
    description="Order status notifications received",
    unit="1",
)


def record_submission_success(session_kind: str, action: str, attempts: int) -> None:
    """Record an acknowledged submission.

    Args:
        session_kind: Which view submitted (customer, waiter, admin)
        action: "place order" or "update order"
        attempts: Backend calls it took
    """
    attributes = {"session_kind": session_kind, "action": action}
    submission_success_counter.add(1, attributes)
    submission_attempts_histogram.record(attempts, attributes)


def record_submission_failure(session_kind: str, action: str) -> None:
    """Record a submission that gave up after all attempts."""
    submission_failure_counter.add(1, {"session_kind": session_kind, "action": action})


def record_submission_duration(action: str, duration_seconds: float) -> None:
    """Record how long a backend call took, retries included."""
    submission_duration_histogram.record(duration_seconds, {"action": action})


def record_status_event(status: str, sessions_notified: int) -> None:
    """Record a pushed order status change.

    Args:
        status: The new order status
        sessions_notified: Sessions that were tracking the order
    """
    status_event_counter.add(1, {"status": status, "matched": sessions_notified > 0})
