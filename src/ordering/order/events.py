"""Domain events for the Order aggregate.

Builds the ``OrderEvent`` contract (src/shared/events/ordering.py) from an
order as it was persisted after an action, and posts it on the commerce
topic. Posting is fire-and-forget: a failing publisher is logged and the
action still succeeds.
"""

from datetime import UTC, datetime

import structlog
from shared.events.ordering import TOPIC, LineItemDetail, OrderEvent, OrderEventProperties
from shared.publisher.port import EventPublisher

from ordering.order.order import LineItem, Order

logger = structlog.get_logger(__name__)

PROPERTIES_ATTRS = tuple(name for name in OrderEventProperties.model_fields if name != "line_items")


def line_item_detail(line_item: LineItem) -> LineItemDetail:
    return LineItemDetail(
        price_cents=line_item.list_price_cents,
        list_price_cents=line_item.list_price_cents,
        artwork_id=line_item.artwork_id,
        edition_set_id=line_item.edition_set_id,
        quantity=line_item.quantity,
        commission_fee_cents=line_item.commission_fee_cents,
    )


def build_order_event(order: Order, action: str, user_id: str | None) -> OrderEvent:
    properties = {name: getattr(order, name) for name in PROPERTIES_ATTRS}
    properties["line_items"] = tuple(line_item_detail(li) for li in order.line_items)
    return OrderEvent(
        subject=str(order.id),
        verb=action,
        user=user_id,
        properties=OrderEventProperties(**properties),
        occurred_at=datetime.now(UTC),
    )


def post_order_event(publisher: EventPublisher, order: Order, action: str, user_id: str | None) -> OrderEvent | None:
    event = build_order_event(order, action, user_id)
    try:
        publisher.publish(TOPIC, event)
    except Exception as exc:
        logger.error("Failed to publish order event", order_id=str(order.id), action=action, error=str(exc))
        return None
    return event
