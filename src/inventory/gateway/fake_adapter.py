"""Configurable fake inventory service.

Stock is unlimited unless set with ``set_stock``. Individual artworks can be
marked as failing to simulate a sold-out piece or a transport error.
"""

from inventory.gateway.port import InsufficientInventoryError, InventoryGateway, InventoryLine


class FakeInventoryGateway(InventoryGateway):
    def __init__(self) -> None:
        self.stock: dict[tuple[str, str | None], int] = {}
        self.deducted: dict[tuple[str, str], InventoryLine] = {}
        self.failing: dict[str, Exception] = {}
        self.calls: list[dict] = []

    def set_stock(self, artwork_id: str, quantity: int, edition_set_id: str | None = None) -> None:
        self.stock[(artwork_id, edition_set_id)] = quantity

    def fail_for(self, artwork_id: str, error: Exception | None = None) -> None:
        """Make every deduct of ``artwork_id`` raise ``error`` (sold out by default)."""
        self.failing[artwork_id] = error or InsufficientInventoryError(artwork_id)

    def deduct(self, line_item: InventoryLine) -> None:
        self.calls.append({"method": "deduct", "line_item_id": str(line_item.id), "artwork_id": line_item.artwork_id})

        if line_item.artwork_id in self.failing:
            raise self.failing[line_item.artwork_id]

        key = (str(line_item.order_id), str(line_item.id))
        if key in self.deducted:
            return

        stock_key = (line_item.artwork_id, line_item.edition_set_id)
        if stock_key in self.stock:
            if self.stock[stock_key] < line_item.quantity:
                raise InsufficientInventoryError(line_item.artwork_id, line_item.edition_set_id)
            self.stock[stock_key] -= line_item.quantity

        self.deducted[key] = line_item

    def undeduct(self, line_item: InventoryLine) -> None:
        self.calls.append({"method": "undeduct", "line_item_id": str(line_item.id), "artwork_id": line_item.artwork_id})

        key = (str(line_item.order_id), str(line_item.id))
        if self.deducted.pop(key, None) is None:
            return

        stock_key = (line_item.artwork_id, line_item.edition_set_id)
        if stock_key in self.stock:
            self.stock[stock_key] += line_item.quantity

    def calls_for(self, method: str) -> list[dict]:
        return [c for c in self.calls if c["method"] == method]

    def is_deducted(self, line_item: InventoryLine) -> bool:
        return (str(line_item.order_id), str(line_item.id)) in self.deducted
