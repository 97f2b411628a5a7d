"""Configurable fake payment gateway for development and testing.

This adapter simulates a real payment gateway without any external calls.
It can be configured at runtime to succeed, decline, or raise, making it
useful for automated tests with predictable outcomes and for development
without real gateway credentials.
"""

from uuid import uuid4

from payments.gateway.port import CAPTURE, HOLD, REFUND, ChargeParams, ChargeResult, PaymentGateway


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_code: str = "card_declined"
        self.failure_message: str = "Your card was declined."
        self.error: Exception | None = None
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool = True,
        failure_code: str = "card_declined",
        failure_message: str = "Your card was declined.",
        error: Exception | None = None,
    ) -> None:
        """Configure gateway behavior at runtime.

        ``error`` makes the next calls raise instead of returning a result.
        """
        self.should_succeed = should_succeed
        self.failure_code = failure_code
        self.failure_message = failure_message
        self.error = error

    def charge(self, params: ChargeParams) -> ChargeResult:
        self.calls.append({"method": "charge", "params": params})
        if self.error is not None:
            raise self.error

        transaction_type = CAPTURE if params.capture else HOLD
        if self.should_succeed:
            return ChargeResult(
                success=True,
                transaction_type=transaction_type,
                amount_cents=params.buyer_amount,
                external_id=f"ch_{uuid4().hex[:12]}",
                gateway_status="succeeded",
            )
        return ChargeResult(
            success=False,
            transaction_type=transaction_type,
            amount_cents=params.buyer_amount,
            external_id=f"ch_{uuid4().hex[:12]}",
            gateway_status="failed",
            failure_code=self.failure_code,
            failure_message=self.failure_message,
        )

    def refund(self, external_id: str, amount_cents: int) -> ChargeResult:
        self.calls.append({"method": "refund", "external_id": external_id, "amount_cents": amount_cents})
        if self.error is not None:
            raise self.error

        if self.should_succeed:
            return ChargeResult(
                success=True,
                transaction_type=REFUND,
                amount_cents=amount_cents,
                external_id=f"re_{uuid4().hex[:12]}",
                gateway_status="succeeded",
            )
        return ChargeResult(
            success=False,
            transaction_type=REFUND,
            amount_cents=amount_cents,
            gateway_status="failed",
            failure_code=self.failure_code,
            failure_message=self.failure_message,
        )

    def calls_for(self, method: str) -> list[dict]:
        return [c for c in self.calls if c["method"] == method]
