"""Inventory gateway factory.

Uses FakeInventoryGateway by default. In production, configure via the
INVENTORY_GATEWAY environment variable.
"""

import os

from inventory.gateway.port import InventoryGateway

_current_gateway: InventoryGateway | None = None


def get_gateway() -> InventoryGateway:
    """Return the configured inventory gateway (singleton)."""
    global _current_gateway
    if _current_gateway is None:
        adapter = os.environ.get("INVENTORY_GATEWAY", "fake")
        if adapter == "fake":
            from inventory.gateway.fake_adapter import FakeInventoryGateway

            _current_gateway = FakeInventoryGateway()
        else:
            raise ValueError(f"Unknown inventory gateway: {adapter}")
    return _current_gateway


def set_gateway(gateway: InventoryGateway) -> None:
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset the gateway singleton (useful for testing)."""
    global _current_gateway
    _current_gateway = None
