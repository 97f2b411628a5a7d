"""Responding to offers: accept or reject the counterparty's latest offer.

Only the order's last offer can be answered, only by the participant it
was made to, and only until the offer expires. Accepting sets the order's
items total to the offer amount and approves the order through the commit
saga (the buyer's hold is captured); rejecting cancels the submitted order.
"""

import structlog
from shared.errors import ValidationError

from ordering.offer.offer import Offer, OfferRepository, OfferState, Participant, get_offer_repository
from ordering.order.commit import CommitCoordinator
from ordering.order.lifecycle import OrderLifecycle
from ordering.order.order import Order, OrderState, StateReason
from ordering.order.repository import OrderRepository, get_repository
from ordering.order.state_machine import OrderAction

logger = structlog.get_logger(__name__)

_REJECT_REASONS = {
    Participant.SELLER.value: StateReason.SELLER_REJECTED.value,
    Participant.BUYER.value: StateReason.BUYER_REJECTED.value,
}


class OfferResponder:
    def __init__(
        self,
        offers: OfferRepository | None = None,
        repository: OrderRepository | None = None,
        coordinator: CommitCoordinator | None = None,
        lifecycle: OrderLifecycle | None = None,
    ):
        self.offers = offers or get_offer_repository()
        self.repository = repository or get_repository()
        self.coordinator = coordinator or CommitCoordinator(repository=self.repository)
        self.lifecycle = lifecycle or OrderLifecycle(repository=self.repository)

    def accept_offer(self, offer_id: str, participant: str, user_id: str | None) -> Order:
        offer, order = self._load(offer_id, participant)
        if not offer.awaiting_response_from(participant):
            raise ValidationError("cannot_accept_offer", offer_id=str(offer.id))
        if offer.is_expired():
            raise ValidationError("offer_expired", offer_id=str(offer.id), expires_at=str(offer.expires_at))

        with self.repository.lock(order.id):
            order = self.repository.get(order.id)
            previous_items_total = order.items_total_cents
            self._set_items_total(order, offer.amount_cents)
            try:
                order = self.coordinator.commit(order, OrderAction.APPROVE, user_id)
            except Exception:
                self._set_items_total(self.repository.get(order.id), previous_items_total)
                raise

        offer.state = OfferState.ACCEPTED.value
        self.offers.add(offer)
        logger.info(
            "Offer accepted",
            offer_id=str(offer.id),
            order_id=str(order.id),
            participant=participant,
            amount_cents=offer.amount_cents,
        )
        return order

    def reject_offer(self, offer_id: str, participant: str, user_id: str | None, reason: str | None = None) -> Order:
        offer, order = self._load(offer_id, participant)
        if not offer.awaiting_response_from(participant):
            raise ValidationError("cannot_reject_offer", offer_id=str(offer.id))

        order = self.lifecycle.reject(order.id, user_id, reason=reason or _REJECT_REASONS[participant])
        offer.state = OfferState.REJECTED.value
        self.offers.add(offer)
        logger.info("Offer rejected", offer_id=str(offer.id), order_id=str(order.id), participant=participant)
        return order

    def _load(self, offer_id: str, participant: str) -> tuple[Offer, Order]:
        if participant not in _REJECT_REASONS:
            raise ValidationError("unknown_participant", participant=str(participant))

        offer = self.offers.get(offer_id)
        order = self.repository.get(offer.order_id)
        if order.state != OrderState.SUBMITTED.value:
            raise ValidationError("invalid_state", state=order.state)
        if order.last_offer_id != offer.id:
            raise ValidationError("not_last_offer", offer_id=str(offer.id))
        return offer, order

    def _set_items_total(self, order: Order, items_total_cents: int | None):
        order.items_total_cents = items_total_cents
        self.repository.add(order)
