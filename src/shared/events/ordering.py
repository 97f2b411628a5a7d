"""Cross-context event contract for Ordering events.

Every committed order action is published as an ``OrderEvent`` on the
``commerce`` topic. Consumers (notifications, analytics, the seller
dashboard) read the ``properties`` snapshot rather than reloading the order,
so the snapshot carries every attribute that is immutable once the action
has happened, plus the derived line item details.

The builder lives in src/ordering/order/events.py.
"""

from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, ConfigDict

TOPIC = "commerce"


class LineItemDetail(BaseModel):
    """Per line item pricing at the moment the action succeeded."""

    model_config = ConfigDict(frozen=True)

    price_cents: int
    list_price_cents: int
    artwork_id: str
    edition_set_id: str | None = None
    quantity: int
    commission_fee_cents: int | None = None


class OrderEventProperties(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: str
    buyer_id: str | None = None
    buyer_type: str | None = None
    buyer_phone_number: str | None = None
    buyer_total_cents: int | None = None
    code: str | None = None
    commission_fee_cents: int | None = None
    created_at: datetime | None = None
    currency_code: str
    fulfillment_type: str | None = None
    items_total_cents: int | None = None
    seller_id: str | None = None
    seller_total_cents: int | None = None
    seller_type: str | None = None
    shipping_address_line1: str | None = None
    shipping_address_line2: str | None = None
    shipping_city: str | None = None
    shipping_country: str | None = None
    shipping_name: str | None = None
    shipping_postal_code: str | None = None
    shipping_region: str | None = None
    shipping_total_cents: int | None = None
    state: str
    state_reason: str | None = None
    state_expires_at: datetime | None = None
    tax_total_cents: int | None = None
    transaction_fee_cents: int | None = None
    updated_at: datetime | None = None
    total_list_price_cents: int | None = None
    line_items: tuple[LineItemDetail, ...] = ()


class OrderEvent(BaseModel):
    """An order action performed by a user (or by the system when ``user`` is None)."""

    model_config = ConfigDict(frozen=True)

    version: ClassVar[str] = "v1"

    subject: str  # order id
    verb: str  # the action, e.g. "submit"
    user: str | None = None
    properties: OrderEventProperties
    occurred_at: datetime
