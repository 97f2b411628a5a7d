"""Order state machine: pure validation and transition logic.

Every action an order accepts is enumerated in ``OrderAction`` and mapped
to the states it may start from and the state it leads to. Nothing here
performs I/O or mutates an order; callers apply the returned state.
"""

from datetime import datetime, timedelta
from enum import Enum

from shared.errors import ValidationError

from ordering.order.order import Order, OrderState


class OrderAction(Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    ABANDON = "abandon"
    SELLER_LAPSE = "seller_lapse"
    REJECT = "reject"
    FULFILL = "fulfill"
    REFUND = "refund"


# Actions the CommitCoordinator runs (inventory + payment saga)
COMMITTABLE_ACTIONS = {OrderAction.SUBMIT, OrderAction.APPROVE}

# action → (allowed source states, target state)
_TRANSITIONS = {
    OrderAction.SUBMIT: ({OrderState.PENDING}, OrderState.SUBMITTED),
    OrderAction.APPROVE: ({OrderState.SUBMITTED}, OrderState.APPROVED),
    OrderAction.ABANDON: ({OrderState.PENDING}, OrderState.CANCELED),
    OrderAction.SELLER_LAPSE: ({OrderState.SUBMITTED}, OrderState.CANCELED),
    OrderAction.REJECT: ({OrderState.SUBMITTED}, OrderState.CANCELED),
    OrderAction.FULFILL: ({OrderState.APPROVED}, OrderState.FULFILLED),
    OrderAction.REFUND: ({OrderState.APPROVED}, OrderState.REFUNDED),
}


def parse_action(action) -> OrderAction:
    """Coerce a string or OrderAction into an OrderAction.

    Unknown names raise ``ValidationError("unknown_action")``.
    """
    if isinstance(action, OrderAction):
        return action
    try:
        return OrderAction(action)
    except ValueError:
        raise ValidationError("unknown_action", action=str(action)) from None


class OrderStateMachine:
    """Answers "may this order take this action, and where does it end up?"."""

    def __init__(self, state_expirations: dict[str, timedelta] | None = None):
        self.state_expirations = state_expirations or {}

    @staticmethod
    def can_transition(current_state, action) -> bool:
        sources, _ = _TRANSITIONS[parse_action(action)]
        return OrderState(current_state) in sources

    def apply(self, order: Order, action) -> OrderState:
        """Return the state ``order`` would move to on ``action``.

        Raises ValidationError("invalid_state") when the current state does
        not allow the action.
        """
        action = parse_action(action)
        sources, target = _TRANSITIONS[action]
        if OrderState(order.state) not in sources:
            raise ValidationError("invalid_state", state=order.state, action=action.value)
        return target

    def expires_at(self, state: OrderState, now: datetime) -> datetime | None:
        """When an order entering ``state`` at ``now`` should expire (None for no expiry)."""
        duration = self.state_expirations.get(state.value)
        return now + duration if duration is not None else None
