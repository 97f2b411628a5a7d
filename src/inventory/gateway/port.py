"""Inventory gateway port (abstract interface).

Reserves ("deducts") and releases ("undeducts") stock for one line item of
an order. Both operations are idempotent per line item per order: a second
deduct of the same item is a no-op, and undeducting an item that was never
deducted does nothing.
"""

from abc import ABC, abstractmethod
from typing import Protocol

from shared.errors import ProcessingError


class InventoryLine(Protocol):
    """The parts of an order line item the inventory service needs."""

    id: str
    order_id: str
    artwork_id: str
    edition_set_id: str | None
    quantity: int


class InsufficientInventoryError(ProcessingError):
    def __init__(self, artwork_id, edition_set_id=None):
        super().__init__("insufficient_inventory", artwork_id=artwork_id, edition_set_id=edition_set_id)


class InventoryGateway(ABC):
    """Abstract inventory service interface."""

    @abstractmethod
    def deduct(self, line_item: InventoryLine) -> None:
        """Reserve stock for the line item. Raises when stock is unavailable."""
        ...

    @abstractmethod
    def undeduct(self, line_item: InventoryLine) -> None:
        """Release stock previously reserved for the line item."""
        ...
