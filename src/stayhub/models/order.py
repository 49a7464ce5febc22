"""Order models for checkout snapshots."""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from .enums import OrderPaymentStatus, OrderStatus, PaymentMethod
from .stay import PricedStay


class Address(BaseModel):
    """Postal address captured at checkout."""

    model_config = ConfigDict(frozen=True)

    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)


class OrderItem(PricedStay):
    """A cart line copied by value into an order."""

    item_id: str = Field(..., description="ID of the cart line this was copied from")


class PaymentDetails(BaseModel):
    """Provider references recorded when an order is paid."""

    model_config = ConfigDict(frozen=True)

    transaction_id: str
    payment_intent_id: str
    paid_at: dt.datetime
    method: PaymentMethod


class Order(BaseModel):
    """Immutable checkout snapshot tracked for payment and fulfillment."""

    model_config = ConfigDict(frozen=True)

    order_id: str = Field(..., description="Unique order ID")
    order_number: str = Field(..., description="Human-readable number, e.g. ORD-543210-4821")
    user_id: str = Field(..., description="Ordering user")
    items: list[OrderItem] = Field(..., min_length=1)
    total_items: int = Field(..., ge=1)
    subtotal: int = Field(..., ge=0)
    total_fees: int = Field(..., ge=0, description="Cleaning plus service fees")
    total_taxes: int = Field(..., ge=0)
    total_amount: int = Field(..., ge=0)
    payment_method: PaymentMethod
    payment_status: OrderPaymentStatus = OrderPaymentStatus.PENDING
    order_status: OrderStatus = OrderStatus.PENDING
    shipping_address: Address
    billing_address: Address
    payment_details: PaymentDetails | None = None
    booking_ids: list[str] = Field(default_factory=list)
    created_at: dt.datetime
    updated_at: dt.datetime


class ProviderOrder(BaseModel):
    """Gateway-side order created before the client collects payment."""

    model_config = ConfigDict(frozen=True)

    provider_order_id: str
    amount: int = Field(..., ge=0, description="Amount in minor currency units")
    currency: str
    receipt: str


class ChargeResult(BaseModel):
    """Outcome of a direct charge through the payment provider."""

    model_config = ConfigDict(strict=True, frozen=True)

    succeeded: bool
    transaction_id: str | None = None
    payment_intent_id: str | None = None
    error_message: str | None = None
