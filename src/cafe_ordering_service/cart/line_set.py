"""Order line set: the in-progress cart of one ordering session.

A line set is an ordered collection of order lines, unique by item id.
Customer carts, the waiter console and the admin edit view all mutate
their carts through this module; the only difference between them is the
decrement policy they pass to ``adjust_quantity``.
"""

from collections.abc import Iterable, Iterator
from decimal import Decimal
from enum import Enum
from typing import Any

from cafe_ordering_service.models.menu_models import ItemId, MenuItem
from cafe_ordering_service.models.order_models import OrderLine


class QuantityPolicy(str, Enum):
    """How a quantity decrement below one is treated."""

    CLAMPED = "clamped"
    AUTO_REMOVE = "auto_remove"


class OrderLineSet:
    """Mutable, ordered collection of order lines keyed by item id.

    Operations on unknown item ids are no-ops; nothing here raises for
    ordinary input.
    """

    def __init__(self, lines: Iterable[OrderLine | dict[str, Any]] | None = None) -> None:
        self._lines: list[OrderLine] = []
        if lines is not None:
            self.merge_from(lines)

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[OrderLine]:
        return iter(self.lines)

    def __contains__(self, item_id: object) -> bool:
        return self._index_of(item_id) is not None  # type: ignore[arg-type]

    @property
    def lines(self) -> list[OrderLine]:
        """Copies of the current lines, in insertion order."""
        return [line.model_copy() for line in self._lines]

    @property
    def is_empty(self) -> bool:
        """Whether the set has no lines. Empty sets cannot be submitted."""
        return not self._lines

    def get(self, item_id: ItemId) -> OrderLine | None:
        """Return a copy of the line for ``item_id``, or None."""
        index = self._index_of(item_id)
        if index is None:
            return None
        return self._lines[index].model_copy()

    def add_item(self, menu_item: MenuItem, quantity_delta: int = 1, note: str = "") -> None:
        """Add a menu item, or bump the quantity of its existing line.

        A new line snapshots the item's name, price, category and image.
        An existing line keeps its snapshot and note; only the quantity
        changes, and it never drops below one.
        """
        index = self._index_of(menu_item.id)
        if index is None:
            self._lines.append(
                OrderLine(
                    item_id=menu_item.id,
                    name=menu_item.name,
                    price=menu_item.price,
                    category=menu_item.category,
                    image_url=menu_item.image_url,
                    quantity=max(1, quantity_delta),
                    note=note or "",
                )
            )
            return

        existing = self._lines[index]
        self._lines[index] = existing.model_copy(
            update={"quantity": max(1, existing.quantity + quantity_delta)}
        )

    def adjust_quantity(
        self,
        item_id: ItemId,
        delta: int,
        policy: QuantityPolicy = QuantityPolicy.CLAMPED,
    ) -> None:
        """Change a line's quantity by ``delta``.

        With ``CLAMPED`` the quantity floors at one and the line stays.
        With ``AUTO_REMOVE`` a result of zero or less deletes the line.
        """
        index = self._index_of(item_id)
        if index is None:
            return

        line = self._lines[index]
        new_quantity = line.quantity + delta

        if policy == QuantityPolicy.AUTO_REMOVE:
            if new_quantity <= 0:
                del self._lines[index]
                return
        else:
            new_quantity = max(1, new_quantity)

        self._lines[index] = line.model_copy(update={"quantity": new_quantity})

    def remove_item(self, item_id: ItemId) -> None:
        """Delete the line for ``item_id`` if present."""
        index = self._index_of(item_id)
        if index is not None:
            del self._lines[index]

    def set_note(self, item_id: ItemId, note: str) -> None:
        """Overwrite the note of the line for ``item_id`` if present."""
        index = self._index_of(item_id)
        if index is None:
            return
        self._lines[index] = self._lines[index].model_copy(update={"note": note or ""})

    def merge_from(self, existing_items: Iterable[OrderLine | dict[str, Any]]) -> None:
        """Replace every line with a copy of a persisted items array.

        This is a full replace, not a reconciliation with the current
        contents. Repeated item ids in the persisted array are folded into
        the first occurrence with their quantities summed.
        """
        lines: list[OrderLine] = []
        positions: dict[Any, int] = {}

        for raw in existing_items:
            if isinstance(raw, OrderLine):
                line = raw.model_copy()
            else:
                line = OrderLine.model_validate(raw)

            key = self._key(line.item_id)
            if key in positions:
                first = lines[positions[key]]
                lines[positions[key]] = first.model_copy(
                    update={"quantity": first.quantity + line.quantity}
                )
                continue

            positions[key] = len(lines)
            lines.append(line)

        self._lines = lines

    def clear(self) -> None:
        """Drop all lines."""
        self._lines = []

    def discard_submitted(self, submitted: "OrderLineSet") -> None:
        """Take the lines of an acknowledged submission out of this set.

        ``submitted`` is the snapshot that was sent. Units added to a line
        after the snapshot was taken stay in the cart; lines added after it
        are untouched.
        """
        for sent in submitted._lines:
            index = self._index_of(sent.item_id)
            if index is None:
                continue
            line = self._lines[index]
            remaining = line.quantity - sent.quantity
            if remaining <= 0:
                del self._lines[index]
            else:
                self._lines[index] = line.model_copy(update={"quantity": remaining})

    def compute_total(self) -> Decimal:
        """Sum of price times quantity over all lines, unrounded."""
        return sum(
            (line.price * max(1, line.quantity) for line in self._lines),
            Decimal("0"),
        )

    def compute_item_count(self) -> int:
        """Total number of units across lines (the cart badge count)."""
        return sum(max(1, line.quantity) for line in self._lines)

    def to_payload(self) -> list[dict[str, Any]]:
        """Serialize lines into the ``items`` array of an order request.

        Returns:
            list: JSON-ready dicts with item_id, name, price, category,
            image_url, quantity and note; note is never null
        """
        return [line.model_dump(mode="json") for line in self._lines]

    def copy(self) -> "OrderLineSet":
        """Independent copy of this set."""
        return OrderLineSet(self._lines)

    @staticmethod
    def _key(item_id: ItemId) -> str:
        # Persisted ids can come back as strings of the same value
        return str(item_id)

    def _index_of(self, item_id: ItemId) -> int | None:
        key = self._key(item_id)
        for index, line in enumerate(self._lines):
            if self._key(line.item_id) == key:
                return index
        return None
