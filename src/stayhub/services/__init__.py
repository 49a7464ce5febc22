"""Engine and persistence services for the Stayhub marketplace."""

from .availability import AvailabilityService, intervals_overlap
from .cart import CartService
from .checkout import CheckoutResult, CheckoutService, generate_order_number
from .dynamodb import DynamoDBService, get_dynamodb_service, reset_dynamodb_service
from .event_bus import EventBus
from .handlers import MarketplaceEventHandlers
from .lifecycle import LifecycleService, booking_payment_status_for
from .marketplace import MarketplaceService, exclusive_writes_enabled
from .payment_service import (
    MockPaymentProvider,
    PaymentProvider,
    PaymentService,
    SettlementResult,
)
from .pricing import PricingService
from .ratings import RatingService
from .repositories import (
    BookingRepository,
    CartRepository,
    OrderRepository,
    PropertyCatalog,
    ReviewRepository,
)
from .ssm_service import SSMService, SSMServiceError, get_ssm_service

__all__ = [
    # Engine
    "AvailabilityService",
    "CartService",
    "CheckoutResult",
    "CheckoutService",
    "LifecycleService",
    "PricingService",
    "RatingService",
    "booking_payment_status_for",
    "generate_order_number",
    "intervals_overlap",
    # Payments
    "MockPaymentProvider",
    "PaymentProvider",
    "PaymentService",
    "SettlementResult",
    # Events
    "EventBus",
    "MarketplaceEventHandlers",
    # Persistence
    "BookingRepository",
    "CartRepository",
    "DynamoDBService",
    "OrderRepository",
    "PropertyCatalog",
    "ReviewRepository",
    "get_dynamodb_service",
    "reset_dynamodb_service",
    # Configuration
    "SSMService",
    "SSMServiceError",
    "get_ssm_service",
    # Application
    "MarketplaceService",
    "exclusive_writes_enabled",
]
