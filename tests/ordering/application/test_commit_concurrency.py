"""Tests for concurrent commits of the same order."""

import threading

import pytest
from ordering.domain import ordering
from ordering.order.order import OrderState
from ordering.order.state_machine import OrderAction
from shared.errors import ExpectedVersionError, ValidationError


def _run_concurrently(count, target):
    barrier = threading.Barrier(count)
    results = []
    errors = []

    def worker():
        barrier.wait()
        with ordering.domain_context():
            try:
                results.append(target())
            except Exception as exc:
                errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)
    return results, errors


class TestConcurrentCommits:
    def test_only_one_submit_wins(self, coordinator, make_order, payment_gateway, repository, metrics):
        order = make_order()

        results, errors = _run_concurrently(5, lambda: coordinator.commit(order, OrderAction.SUBMIT, "user-1"))

        assert len(results) == 1
        assert len(errors) == 4
        assert all(isinstance(e, ValidationError) and e.code == "invalid_state" for e in errors)
        assert len(payment_gateway.calls_for("charge")) == 1
        assert metrics.count("order.submit") == 1

        stored = repository.get(order.id)
        assert stored.state == OrderState.SUBMITTED.value
        assert len(stored.transactions) == 1

    def test_submit_and_abandon_race(self, coordinator, lifecycle, make_order, repository):
        order = make_order()

        def submit():
            return coordinator.commit(order, OrderAction.SUBMIT, "user-1")

        def abandon():
            return lifecycle.abandon(order.id)

        barrier = threading.Barrier(2)
        outcomes = {}

        def run(name, target):
            barrier.wait()
            with ordering.domain_context():
                try:
                    outcomes[name] = target()
                except ValidationError as exc:
                    outcomes[name] = exc

        threads = [threading.Thread(target=run, args=args) for args in (("submit", submit), ("abandon", abandon))]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        failures = [o for o in outcomes.values() if isinstance(o, ValidationError)]
        assert len(failures) == 1
        assert failures[0].code == "invalid_state"
        assert repository.get(order.id).state in (OrderState.SUBMITTED.value, OrderState.CANCELED.value)


class TestOptimisticVersion:
    def test_stale_write_is_refused(self, make_order, repository):
        order = make_order()
        first = repository.get(order.id)
        second = repository.get(order.id)

        first.buyer_phone_number = "555-0100"
        repository.add(first)

        second.buyer_phone_number = "555-0199"
        with pytest.raises(ExpectedVersionError) as exc:
            repository.add(second)
        assert exc.value.code == "stale_order_version"
        assert repository.get(order.id).buyer_phone_number == "555-0100"

    def test_add_bumps_version(self, make_order, repository):
        order = make_order()
        version = repository.get(order.id).version
        stored = repository.get(order.id)
        stored.buyer_phone_number = "555-0100"
        repository.add(stored)
        assert repository.get(order.id).version == version + 1

    def test_get_returns_copy(self, make_order, repository):
        order = make_order()
        copy = repository.get(order.id)
        copy.state = OrderState.CANCELED.value
        assert repository.get(order.id).state == OrderState.PENDING.value
