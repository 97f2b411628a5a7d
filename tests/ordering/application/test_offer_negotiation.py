"""Tests for accepting and rejecting offers on make-offer orders."""

from datetime import UTC, datetime, timedelta

import pytest
from ordering.offer.negotiation import OfferResponder
from ordering.offer.offer import Offer, OfferState
from ordering.order.order import OrderState
from ordering.order.state_machine import OrderAction
from shared.errors import ProcessingError, ValidationError


@pytest.fixture
def responder(offers, repository, coordinator, lifecycle):
    return OfferResponder(offers=offers, repository=repository, coordinator=coordinator, lifecycle=lifecycle)


def _counter(offers, repository, order, amount_cents, **attributes):
    """Make a seller counteroffer the last offer of ``order``."""
    counter = offers.add(Offer(order_id=order.id, from_participant="seller", amount_cents=amount_cents, **attributes))
    stored = repository.get(order.id)
    stored.last_offer_id = counter.id
    repository.add(stored)
    return counter


@pytest.fixture
def negotiation(coordinator, make_order, offers, repository):
    """A submitted offer order whose last offer came from the buyer."""
    order = make_order(mode="offer", items_total_cents=15000)
    offer = offers.add(Offer(order_id=order.id, from_participant="buyer", from_id="buyer-1", amount_cents=15000))

    stored = repository.get(order.id)
    stored.last_offer_id = offer.id
    repository.add(stored)

    order = coordinator.commit(stored, OrderAction.SUBMIT, "user-1")
    return order, offer


class TestAcceptOffer:
    def test_seller_accepts_buyer_offer(self, responder, negotiation, offers, payment_gateway):
        order, offer = negotiation
        result = responder.accept_offer(offer.id, "seller", "seller-user")

        assert result.state == OrderState.APPROVED.value
        assert offers.get(offer.id).state == OfferState.ACCEPTED.value
        capture = payment_gateway.calls_for("charge")[-1]["params"]
        assert capture.capture is True
        assert capture.buyer_amount == 17500

    def test_offer_totals_use_offer_amount(self, negotiation):
        order, _ = negotiation
        assert order.items_total_cents == 15000
        assert order.commission_fee_cents == 1500
        assert order.buyer_total_cents == 17500

    def test_buyer_cannot_accept_own_offer(self, responder, negotiation, repository):
        order, offer = negotiation
        with pytest.raises(ValidationError) as exc:
            responder.accept_offer(offer.id, "buyer", "user-1")
        assert exc.value.code == "cannot_accept_offer"
        assert repository.get(order.id).state == OrderState.SUBMITTED.value

    def test_only_last_offer_can_be_accepted(self, responder, negotiation, offers):
        order, _ = negotiation
        older = offers.add(Offer(order_id=order.id, from_participant="buyer", amount_cents=12000))
        with pytest.raises(ValidationError) as exc:
            responder.accept_offer(older.id, "seller", "seller-user")
        assert exc.value.code == "not_last_offer"

    def test_order_must_be_submitted(self, responder, negotiation, lifecycle):
        order, offer = negotiation
        lifecycle.seller_lapse(order.id)
        with pytest.raises(ValidationError) as exc:
            responder.accept_offer(offer.id, "seller", "seller-user")
        assert exc.value.code == "invalid_state"

    def test_unknown_offer(self, responder):
        with pytest.raises(ValidationError) as exc:
            responder.accept_offer("missing", "seller", "seller-user")
        assert exc.value.code == "not_found"

    def test_unknown_participant(self, responder, negotiation):
        _, offer = negotiation
        with pytest.raises(ValidationError) as exc:
            responder.accept_offer(offer.id, "gallery-intern", "someone")
        assert exc.value.code == "unknown_participant"

    def test_buyer_accepts_seller_counteroffer(self, responder, negotiation, offers, repository, payment_gateway):
        order, _ = negotiation
        counter = _counter(offers, repository, order, 17000)

        result = responder.accept_offer(counter.id, "buyer", "user-1")

        assert result.state == OrderState.APPROVED.value
        assert result.items_total_cents == 17000
        assert result.commission_fee_cents == 1700
        assert repository.get(order.id).items_total_cents == 17000
        capture = payment_gateway.calls_for("charge")[-1]["params"]
        assert capture.capture is True
        assert capture.buyer_amount == 19500

    def test_failed_capture_keeps_previous_items_total(self, responder, negotiation, offers, repository):
        order, _ = negotiation
        counter = _counter(offers, repository, order, 17000)
        responder.coordinator.payment_gateway.configure(should_succeed=False)

        with pytest.raises(ProcessingError) as exc:
            responder.accept_offer(counter.id, "buyer", "user-1")
        assert exc.value.code == "capture_failed"

        stored = repository.get(order.id)
        assert stored.state == OrderState.SUBMITTED.value
        assert stored.items_total_cents == 15000
        assert offers.get(counter.id).state == OfferState.PENDING.value

    def test_expired_offer_cannot_be_accepted(self, responder, negotiation, offers, repository, payment_gateway):
        order, _ = negotiation
        counter = _counter(offers, repository, order, 17000, expires_at=datetime.now(UTC) - timedelta(minutes=1))
        charges = len(payment_gateway.calls_for("charge"))

        with pytest.raises(ValidationError) as exc:
            responder.accept_offer(counter.id, "buyer", "user-1")
        assert exc.value.code == "offer_expired"

        stored = repository.get(order.id)
        assert stored.state == OrderState.SUBMITTED.value
        assert stored.items_total_cents == 15000
        assert len(payment_gateway.calls_for("charge")) == charges

    def test_unexpired_offer_can_be_accepted(self, responder, negotiation, offers, repository):
        order, _ = negotiation
        counter = _counter(offers, repository, order, 16000, expires_at=datetime.now(UTC) + timedelta(hours=1))
        result = responder.accept_offer(counter.id, "buyer", "user-1")
        assert result.items_total_cents == 16000


class TestRejectOffer:
    def test_seller_rejects_buyer_offer(self, responder, negotiation, offers, payment_gateway):
        order, offer = negotiation
        result = responder.reject_offer(offer.id, "seller", "seller-user")

        assert result.state == OrderState.CANCELED.value
        assert result.state_reason == "seller_rejected"
        assert offers.get(offer.id).state == OfferState.REJECTED.value
        assert len(payment_gateway.calls_for("refund")) == 1

    def test_buyer_rejects_seller_counteroffer(self, responder, negotiation, offers, repository):
        order, _ = negotiation
        counter = _counter(offers, repository, order, 17000)

        result = responder.reject_offer(counter.id, "buyer", "user-1")
        assert result.state_reason == "buyer_rejected"

    def test_cannot_reject_own_offer(self, responder, negotiation):
        _, offer = negotiation
        with pytest.raises(ValidationError) as exc:
            responder.reject_offer(offer.id, "buyer", "user-1")
        assert exc.value.code == "cannot_reject_offer"
