"""Payment settlement for orders.

Two ways to settle an order:
- Gateway flow: create a provider order, let the client collect payment,
  then verify the HMAC-SHA256 signature the gateway hands back.
- Direct charge: for non-gateway methods, charge through the provider
  and settle on success.

Both are pure with respect to storage. They return a SettlementResult
holding the new order state and its events; when the attempt failed the
result also carries the error code to raise once the failed state has
been persisted.
"""

import datetime as dt
import hashlib
import hmac
import os
import uuid
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from stayhub.models import (
    BookingError,
    ChargeResult,
    DomainEvent,
    ErrorCode,
    Order,
    OrderPaymentStatus,
    OrderStatus,
    PaymentDetails,
    PaymentFailed,
    PaymentMethod,
    PaymentSettled,
    ProviderOrder,
)
from stayhub.utils.logging import get_logger, log_booking_operation

from .ssm_service import get_ssm_service

logger = get_logger(__name__)


class PaymentProvider(Protocol):
    """The narrow interface the engine needs from a payment gateway."""

    def create_order(self, amount: int, currency: str, receipt: str) -> ProviderOrder:
        """Create a gateway order for an amount in minor currency units."""
        ...

    def charge(self, order: Order) -> ChargeResult:
        """Charge an order directly."""
        ...


class MockPaymentProvider:
    """Payment provider that never leaves the process.

    Charges succeed unless constructed with succeed=False. Used in local
    development and tests; production deployments inject a real gateway
    client.
    """

    def __init__(self, succeed: bool = True) -> None:
        self.succeed = succeed

    def create_order(self, amount: int, currency: str, receipt: str) -> ProviderOrder:
        return ProviderOrder(
            provider_order_id=f"order_{uuid.uuid4().hex[:14]}",
            amount=amount,
            currency=currency,
            receipt=receipt,
        )

    def charge(self, order: Order) -> ChargeResult:
        if not self.succeed:
            return ChargeResult(succeeded=False, error_message="Card declined")
        return ChargeResult(
            succeeded=True,
            transaction_id=f"TXN-{uuid.uuid4().hex[:12].upper()}",
            payment_intent_id=f"PI-{uuid.uuid4().hex[:12].upper()}",
        )


class SettlementResult(BaseModel):
    """New order state after a settlement attempt."""

    model_config = ConfigDict(frozen=True)

    order: Order
    events: list[DomainEvent]
    error_code: ErrorCode | None = None

    @property
    def succeeded(self) -> bool:
        return self.error_code is None


class PaymentService:
    """Service for the order payment state machine.

    pending -> paid, pending -> failed, failed -> paid (retry) and
    paid -> refunded. The last one happens only through order
    cancellation.
    """

    SECRET_PARAMETER = "payments/key_secret"
    MINOR_UNITS = 100

    def __init__(
        self,
        provider: PaymentProvider | None = None,
        signing_secret: str | None = None,
        currency: str | None = None,
    ) -> None:
        """Initialize payment service.

        Args:
            provider: Payment provider (defaults to MockPaymentProvider)
            signing_secret: Gateway signing secret. Read from SSM on first
                use when omitted.
            currency: ISO currency code (defaults to PAYMENT_CURRENCY or INR)
        """
        self.provider = provider or MockPaymentProvider()
        self._signing_secret = signing_secret
        self.currency = currency or os.environ.get("PAYMENT_CURRENCY", "INR")

    @property
    def signing_secret(self) -> str:
        if self._signing_secret is None:
            ssm = get_ssm_service()
            self._signing_secret = ssm.get_parameter(ssm.parameter_path(self.SECRET_PARAMETER))
        return self._signing_secret

    def compute_signature(self, provider_order_id: str, provider_payment_id: str) -> str:
        """Hex HMAC-SHA256 of "<order_id>|<payment_id>" under the signing secret."""
        message = f"{provider_order_id}|{provider_payment_id}"
        return hmac.new(
            self.signing_secret.encode(),
            message.encode(),
            hashlib.sha256,
        ).hexdigest()

    def create_provider_order(self, order: Order) -> ProviderOrder:
        """Create the gateway order a client pays against.

        Raises:
            BookingError: PAYMENT_ALREADY_PROCESSED or INVALID_TRANSITION
        """
        self._ensure_settleable(order)
        provider_order = self.provider.create_order(
            amount=order.total_amount * self.MINOR_UNITS,
            currency=self.currency,
            receipt=order.order_number,
        )
        log_booking_operation(
            logger,
            "create_provider_order",
            order_id=order.order_id,
            amount=order.total_amount,
            provider_order_id=provider_order.provider_order_id,
        )
        return provider_order

    def verify_payment(
        self,
        order: Order,
        provider_order_id: str,
        provider_payment_id: str,
        signature: str,
    ) -> SettlementResult:
        """Verify a gateway signature and settle the order.

        Args:
            order: Order being paid
            provider_order_id: Gateway order ID
            provider_payment_id: Gateway payment ID
            signature: Hex signature returned by the gateway

        Returns:
            SettlementResult. On mismatch the order is marked failed and
            error_code is SIGNATURE_MISMATCH.

        Raises:
            BookingError: PAYMENT_ALREADY_PROCESSED or INVALID_TRANSITION
        """
        self._ensure_settleable(order)

        expected = self.compute_signature(provider_order_id, provider_payment_id)
        if not hmac.compare_digest(expected, signature):
            return self._fail(order, ErrorCode.SIGNATURE_MISMATCH, "signature mismatch")

        return self._settle(
            order,
            transaction_id=provider_payment_id,
            payment_intent_id=provider_order_id,
        )

    def process_payment(self, order: Order) -> SettlementResult:
        """Charge a non-gateway order directly through the provider.

        Raises:
            BookingError: USE_GATEWAY_FLOW, PAYMENT_ALREADY_PROCESSED or
                INVALID_TRANSITION
        """
        if order.payment_method == PaymentMethod.RAZORPAY:
            raise BookingError(
                code=ErrorCode.USE_GATEWAY_FLOW,
                details={"order_id": order.order_id},
            )
        self._ensure_settleable(order)

        result = self.provider.charge(order)
        if not result.succeeded or not result.transaction_id:
            return self._fail(order, ErrorCode.PAYMENT_FAILED, result.error_message or "declined")

        return self._settle(
            order,
            transaction_id=result.transaction_id,
            payment_intent_id=result.payment_intent_id or result.transaction_id,
        )

    def _ensure_settleable(self, order: Order) -> None:
        if order.order_status == OrderStatus.CANCELLED:
            raise BookingError(
                code=ErrorCode.INVALID_TRANSITION,
                details={"order_id": order.order_id, "order_status": order.order_status.value},
            )
        if order.payment_status in (OrderPaymentStatus.PAID, OrderPaymentStatus.REFUNDED):
            raise BookingError(
                code=ErrorCode.PAYMENT_ALREADY_PROCESSED,
                details={"order_id": order.order_id, "payment_status": order.payment_status.value},
            )

    def _settle(
        self,
        order: Order,
        transaction_id: str,
        payment_intent_id: str,
    ) -> SettlementResult:
        now = dt.datetime.now(dt.UTC)
        settled = order.model_copy(
            update={
                "payment_status": OrderPaymentStatus.PAID,
                "order_status": OrderStatus.CONFIRMED,
                "payment_details": PaymentDetails(
                    transaction_id=transaction_id,
                    payment_intent_id=payment_intent_id,
                    paid_at=now,
                    method=order.payment_method,
                ),
                "updated_at": now,
            }
        )
        log_booking_operation(
            logger,
            "settle_payment",
            user_id=order.user_id,
            order_id=order.order_id,
            amount=order.total_amount,
            status=OrderPaymentStatus.PAID.value,
            transaction_id=transaction_id,
        )
        event = PaymentSettled(
            order_id=order.order_id,
            user_id=order.user_id,
            booking_ids=order.booking_ids,
            transaction_id=transaction_id,
        )
        return SettlementResult(order=settled, events=[event])

    def _fail(self, order: Order, code: ErrorCode, reason: str) -> SettlementResult:
        failed = order.model_copy(
            update={
                "payment_status": OrderPaymentStatus.FAILED,
                "updated_at": dt.datetime.now(dt.UTC),
            }
        )
        log_booking_operation(
            logger,
            "settle_payment",
            user_id=order.user_id,
            order_id=order.order_id,
            status=OrderPaymentStatus.FAILED.value,
            error=reason,
        )
        event = PaymentFailed(order_id=order.order_id, user_id=order.user_id, reason=reason)
        return SettlementResult(order=failed, events=[event], error_code=code)
