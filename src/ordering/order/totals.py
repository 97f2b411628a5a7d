"""Order totals: recompute fees and payouts from a commission rate.

Recomputation is idempotent: every derived total is rebuilt from the line
items (or the accepted offer amount) and the rate, never adjusted in place.
"""

from decimal import ROUND_HALF_UP, Decimal

from ordering.order.order import Order

# Card processing fee charged to the seller: 2.9% + 30 cents
TRANSACTION_FEE_RATE = Decimal("0.029")
TRANSACTION_FEE_FIXED_CENTS = 30


def _round_cents(amount: Decimal) -> int:
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def transaction_fee_cents(buyer_total_cents: int) -> int:
    if buyer_total_cents <= 0:
        return 0
    return _round_cents(Decimal(buyer_total_cents) * TRANSACTION_FEE_RATE + TRANSACTION_FEE_FIXED_CENTS)


class OrderTotalUpdater:
    """Rebuild an order's financial totals for a commission rate."""

    def __init__(self, order: Order, commission_rate: float):
        self.order = order
        self.rate = Decimal(str(commission_rate))

    def update_totals(self) -> Order:
        order = self.order
        order.total_list_price_cents = sum(li.total_list_price_cents for li in order.line_items)

        if order.is_offer:
            # items_total holds the offer amount; spread commission by list price
            items_total = order.items_total_cents or 0
            order.commission_fee_cents = _round_cents(Decimal(items_total) * self.rate)
            self._distribute_commission(order.commission_fee_cents)
        else:
            items_total = order.total_list_price_cents
            for li in order.line_items:
                li.commission_fee_cents = _round_cents(Decimal(li.total_list_price_cents) * self.rate)
            order.commission_fee_cents = sum(li.commission_fee_cents for li in order.line_items)

        order.items_total_cents = items_total
        order.commission_rate = float(self.rate)
        order.buyer_total_cents = items_total + (order.shipping_total_cents or 0) + (order.tax_total_cents or 0)
        order.transaction_fee_cents = transaction_fee_cents(order.buyer_total_cents)
        order.seller_total_cents = order.buyer_total_cents - order.commission_fee_cents - order.transaction_fee_cents
        return order

    def _distribute_commission(self, commission_cents: int):
        items = self.order.line_items
        list_total = sum(li.total_list_price_cents for li in items)
        remaining = commission_cents
        for index, li in enumerate(items):
            if index == len(items) - 1:
                share = remaining
            elif list_total == 0:
                share = 0
            else:
                share = _round_cents(Decimal(commission_cents) * li.total_list_price_cents / list_total)
            li.commission_fee_cents = share
            remaining -= share
