"""Order aggregate: the core of the ordering domain.

An Order is negotiated (buy now or make offer), committed through the
CommitCoordinator and then either fulfilled or canceled. It exclusively
owns its line items and its append-only transaction history; the current
offer of a negotiation is referenced by id only.

State Machine (see ordering.order.state_machine):
    PENDING → SUBMITTED → APPROVED → FULFILLED
    PENDING → CANCELED (abandoned)
    SUBMITTED → CANCELED (rejected, seller lapsed)
    APPROVED → REFUNDED

All amounts are integers in minor currency units.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from payments.gateway.port import ChargeResult
from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from ordering.domain import ordering


def utc_now() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderState(Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    CANCELED = "canceled"
    FULFILLED = "fulfilled"
    REFUNDED = "refunded"


TERMINAL_STATES = {OrderState.CANCELED, OrderState.FULFILLED, OrderState.REFUNDED}


class OrderMode(Enum):
    BUY = "buy"
    OFFER = "offer"


class FulfillmentType(Enum):
    SHIP = "ship"
    PICKUP = "pickup"


class StateReason(Enum):
    EXPIRED_UNCONFIRMED = "expired_unconfirmed"
    SELLER_LAPSED = "seller_lapsed"
    SELLER_REJECTED = "seller_rejected"
    BUYER_REJECTED = "buyer_rejected"


class TransactionStatus(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class LineItem:
    """One artwork (or edition) on the order.

    ``artwork_version_id`` is the version snapshot taken when the item was
    added; a commit fails if the artwork has changed since.
    """

    artwork_id: Identifier(required=True)
    edition_set_id: Identifier()
    artwork_version_id: Identifier(required=True)
    quantity: Integer(default=1, min_value=1)
    list_price_cents: Integer(required=True, min_value=0)
    commission_fee_cents: Integer()

    @property
    def total_list_price_cents(self) -> int:
        return self.list_price_cents * self.quantity


@ordering.entity(part_of="Order")
class Transaction:
    """A record of one payment gateway interaction. Never mutated once attached."""

    external_id: String(max_length=255)
    transaction_type: String(required=True, max_length=20)
    status: String(choices=TransactionStatus, required=True)
    failure_code: String(max_length=100)
    failure_message: Text()
    amount_cents: Integer(default=0)
    created_at: DateTime(default=utc_now)

    @classmethod
    def from_charge_result(cls, result: ChargeResult):
        return cls(
            external_id=result.external_id,
            transaction_type=result.transaction_type,
            status=(TransactionStatus.SUCCEEDED if result.success else TransactionStatus.FAILED).value,
            failure_code=result.failure_code,
            failure_message=result.failure_message,
            amount_cents=result.amount_cents,
        )

    @property
    def failed(self) -> bool:
        return self.status == TransactionStatus.FAILED.value


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    code: String(max_length=20)
    mode: String(choices=OrderMode, default=OrderMode.BUY.value)
    state: String(choices=OrderState, default=OrderState.PENDING.value)
    state_reason: String(max_length=50)
    state_updated_at: DateTime()
    state_expires_at: DateTime()

    buyer_id: Identifier()
    buyer_type: String(max_length=50)
    buyer_phone_number: String(max_length=50)
    seller_id: Identifier()
    seller_type: String(max_length=50)

    currency_code: String(max_length=3, default="USD")
    items_total_cents: Integer(min_value=0)
    shipping_total_cents: Integer(min_value=0)
    tax_total_cents: Integer(min_value=0)
    commission_fee_cents: Integer()
    commission_rate: Float()
    transaction_fee_cents: Integer()
    buyer_total_cents: Integer()
    seller_total_cents: Integer()
    total_list_price_cents: Integer()

    credit_card_id: Identifier()
    external_charge_id: String(max_length=255)

    fulfillment_type: String(choices=FulfillmentType)
    shipping_name: String(max_length=255)
    shipping_address_line1: String(max_length=255)
    shipping_address_line2: String(max_length=255)
    shipping_city: String(max_length=100)
    shipping_region: String(max_length=100)
    shipping_country: String(max_length=100)
    shipping_postal_code: String(max_length=20)

    last_offer_id: Identifier()

    line_items: HasMany(LineItem)
    transactions: HasMany(Transaction)

    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def only_canceled_orders_carry_a_reason(self):
        if self.state_reason is not None and self.state != OrderState.CANCELED.value:
            raise ValidationError({"state_reason": ["Only a canceled order records a state reason"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, line_items_data, state_expires_at=None, **attributes):
        """Create a new pending order.

        Args:
            line_items_data: List of dicts with artwork_id, edition_set_id,
                artwork_version_id, quantity, list_price_cents.
            state_expires_at: When the pending order should be abandoned.
            attributes: Any other Order field (buyer, seller, shipping...).
        """
        now = utc_now()
        attributes.setdefault("code", uuid4().hex[:9].upper())
        order = cls(
            state=OrderState.PENDING.value,
            state_updated_at=now,
            state_expires_at=state_expires_at,
            created_at=now,
            updated_at=now,
            **attributes,
        )
        for data in line_items_data:
            order.add_line_items(LineItem(**data))
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def version(self) -> int:
        """Optimistic-concurrency version: -1 until first persisted."""
        return self._version

    @property
    def is_offer(self) -> bool:
        return self.mode == OrderMode.OFFER.value

    @property
    def is_terminal(self) -> bool:
        return OrderState(self.state) in TERMINAL_STATES

    @property
    def shipping_info_complete(self) -> bool:
        if self.fulfillment_type == FulfillmentType.PICKUP.value:
            return True
        if self.fulfillment_type != FulfillmentType.SHIP.value:
            return False
        return all(
            [
                self.shipping_name,
                self.shipping_address_line1,
                self.shipping_city,
                self.shipping_country,
                self.shipping_postal_code,
            ]
        )

    @property
    def can_commit(self) -> bool:
        """True when the order carries everything a commit needs."""
        return bool(
            self.buyer_id
            and self.seller_id
            and self.credit_card_id
            and self.line_items
            and self.shipping_info_complete
        )

    @property
    def last_successful_charge(self) -> Transaction | None:
        charges = [
            t
            for t in self.transactions
            if not t.failed and t.transaction_type in ("hold", "capture") and t.external_id
        ]
        return charges[-1] if charges else None

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def transition_to(self, new_state: OrderState, reason=None, expires_at=None, now=None):
        """Move to ``new_state``. Validation belongs to the state machine."""
        now = now or utc_now()
        with atomic_change(self):
            self.state = new_state.value
            self.state_reason = reason
            self.state_updated_at = now
            self.state_expires_at = expires_at
            self.updated_at = now

    def add_transaction(self, transaction: Transaction):
        self.add_transactions(transaction)
        self.updated_at = utc_now()
