"""Typed errors shared by every context.

Two kinds are surfaced to callers:

- ValidationError: the caller's input or the order's state is not acceptable.
  Never retried automatically.
- ProcessingError: an external system or a stale snapshot got in the way
  (e.g. an artwork changed version, a charge was declined).

Both carry a machine-readable ``code`` and optional structured ``data``
(e.g. ``credit_card_id``, ``partner_id``) that an outer API layer can render.

They sit on top of Protean's exceptions, so framework code that catches
``protean.exceptions.ValidationError``, ``ObjectNotFoundError`` or
``ExpectedVersionError`` handles them too.
"""

from protean.exceptions import ExpectedVersionError as VersionConflictError
from protean.exceptions import ObjectNotFoundError, ProteanExceptionWithMessage
from protean.exceptions import ValidationError as DomainValidationError


class ExchangeError(ProteanExceptionWithMessage):
    """Base class for all typed errors raised by the exchange."""

    type = "exchange"

    def __init__(self, code, **data):
        self.code = code
        self.data = data
        super().__init__({self.type: [code]})

    def __str__(self):
        return f"{self.type}: {self.code}"

    def __repr__(self):
        return f"{type(self).__name__}(code={self.code!r}, data={self.data!r})"

    def to_dict(self) -> dict:
        return {"type": self.type, "code": self.code, "data": dict(self.data)}


class ValidationError(ExchangeError, DomainValidationError):
    type = "validation"


class ProcessingError(ExchangeError):
    type = "processing"


class OrderNotFoundError(ValidationError, ObjectNotFoundError):
    def __init__(self, order_id):
        super().__init__("not_found", order_id=str(order_id))


class OfferNotFoundError(ValidationError, ObjectNotFoundError):
    def __init__(self, offer_id):
        super().__init__("not_found", offer_id=str(offer_id))


class ExpectedVersionError(ProcessingError, VersionConflictError):
    """Raised when an order was written by someone else since it was read."""

    def __init__(self, order_id, expected, actual=None):
        super().__init__("stale_order_version", order_id=str(order_id), expected=expected, actual=actual)
