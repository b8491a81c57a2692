"""Display formatting for prices and timestamps."""

from datetime import UTC, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal

IST = timezone(timedelta(hours=5, minutes=30), name="IST")
CURRENCY_SYMBOL = "₹"


def round_currency(amount: Decimal | int | float) -> Decimal:
    """Round an amount to two decimal places, half up."""
    return Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def format_currency(amount: Decimal | int | float, symbol: str = CURRENCY_SYMBOL) -> str:
    """Render an amount for display, e.g. ``₹110.00``."""
    return f"{symbol}{round_currency(amount)}"


def to_ist(value: datetime) -> datetime:
    """Convert a timestamp to IST. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(IST)


def format_ist(value: datetime) -> str:
    """Render a timestamp as ``dd/mm/yyyy, hh:mm AM`` in IST."""
    return to_ist(value).strftime("%d/%m/%Y, %I:%M %p")
