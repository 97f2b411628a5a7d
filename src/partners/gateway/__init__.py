"""External party gateway factory.

Provides get_gateway() / set_gateway() to swap implementations. The
adapter is picked from the PARTNER_GATEWAY environment variable and
defaults to FakePartyGateway.
"""

import os

from partners.gateway.port import ExternalPartyGateway

_current_gateway: ExternalPartyGateway | None = None


def get_gateway() -> ExternalPartyGateway:
    """Return the current external party gateway."""
    global _current_gateway
    if _current_gateway is None:
        adapter = os.environ.get("PARTNER_GATEWAY", "fake")
        if adapter == "fake":
            from partners.gateway.fake_adapter import FakePartyGateway

            _current_gateway = FakePartyGateway()
        else:
            raise ValueError(f"Unknown partner gateway: {adapter}")
    return _current_gateway


def set_gateway(gateway: ExternalPartyGateway) -> None:
    """Override the active gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
