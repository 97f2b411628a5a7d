"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement.
A declined card is not an exception: ``charge`` returns a ChargeResult with
``success=False`` and the gateway's failure code. Adapters raise only for
invalid requests (ValidationError / ProcessingError) or transport failures.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from partners.gateway.port import CreditCard, MerchantAccount

HOLD = "hold"
CAPTURE = "capture"
REFUND = "refund"


@dataclass(frozen=True)
class ChargeParams:
    """Everything the gateway needs to charge the buyer on the seller's behalf."""

    credit_card: CreditCard
    buyer_amount: int
    seller_amount: int
    merchant_account: MerchantAccount
    currency_code: str
    description: str
    metadata: dict = field(default_factory=dict)
    capture: bool = False
    charge_id: str | None = None  # the hold being captured


@dataclass(frozen=True)
class ChargeResult:
    """Result of a charge, capture or refund attempt."""

    success: bool
    transaction_type: str
    amount_cents: int
    external_id: str | None = None
    gateway_status: str | None = None
    failure_code: str | None = None
    failure_message: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def charge(self, params: ChargeParams) -> ChargeResult:
        """Place a hold (capture=False) or a captured charge on the buyer's card."""
        ...

    @abstractmethod
    def refund(self, external_id: str, amount_cents: int) -> ChargeResult:
        """Refund (or release the hold of) a previous charge."""
        ...
