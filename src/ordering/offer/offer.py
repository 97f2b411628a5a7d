"""Offer: one bid in a make-offer negotiation.

Offers belong to the negotiation, not to the order: an Order only records
the id of its most recent offer (``last_offer_id``) and that reference is
checked whenever an offer is accepted or rejected.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain
from shared.errors import OfferNotFoundError

from ordering.domain import ordering
from ordering.order.order import utc_now


class OfferState(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Participant(Enum):
    BUYER = "buyer"
    SELLER = "seller"


@ordering.aggregate
class Offer:
    order_id: Identifier(required=True)
    from_participant: String(choices=Participant, required=True)
    from_id: Identifier()
    amount_cents: Integer(required=True, min_value=0)
    state: String(choices=OfferState, default=OfferState.PENDING.value)
    expires_at: DateTime()
    created_at: DateTime(default=utc_now)

    def awaiting_response_from(self, participant: str) -> bool:
        """True when ``participant`` is the party this offer was made to."""
        return self.from_participant != participant

    def is_expired(self, as_of: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        as_of = as_of or utc_now()
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        return as_of >= expires_at


@ordering.repository(part_of=Offer)
class OfferRepository:
    def get(self, identifier):
        try:
            return super().get(identifier)
        except ObjectNotFoundError as exc:
            if isinstance(exc, OfferNotFoundError):
                raise
            raise OfferNotFoundError(identifier) from exc


def get_offer_repository() -> OfferRepository:
    return current_domain.repository_for(Offer)
