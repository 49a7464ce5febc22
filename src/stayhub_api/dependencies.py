"""FastAPI dependency providers for the marketplace service and caller identity.

Services are created lazily and cached with @lru_cache so a Lambda
container reuses its boto3 clients across invocations.

Caller identity is resolved by the API gateway in front of this app. It
forwards the authenticated user ID in the x-user-id header and marks
administrative callers with x-user-role: admin.

Service Dependency Graph:
    DynamoDBService (singleton via get_dynamodb_service)
        └── MarketplaceService
                └── PaymentService (provider + SSM signing secret)

Testing:
    Use reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from fastapi import Header

from stayhub.models import ActorRole, BookingError, ErrorCode
from stayhub.services.dynamodb import get_dynamodb_service
from stayhub.services.marketplace import MarketplaceService
from stayhub.services.payment_service import PaymentService


@lru_cache
def get_payment_service() -> PaymentService:
    """Get cached PaymentService instance backed by the default provider."""
    return PaymentService()


@lru_cache
def get_marketplace_service() -> MarketplaceService:
    """Get cached MarketplaceService instance.

    Returns:
        MarketplaceService configured with DynamoDB and PaymentService.
    """
    return MarketplaceService(
        db=get_dynamodb_service(),
        payments=get_payment_service(),
    )


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Return the authenticated caller's user ID.

    Raises:
        BookingError: AUTH_REQUIRED when the gateway sent no identity
    """
    if not x_user_id:
        raise BookingError(code=ErrorCode.AUTH_REQUIRED)
    return x_user_id


def get_is_admin(x_user_role: str | None = Header(default=None)) -> bool:
    """Whether the gateway marked the caller as an administrator."""
    return (x_user_role or "").lower() == ActorRole.ADMIN.value


def reset_services() -> None:
    """Clear all cached service instances.

    Call this in test fixtures to ensure clean state between tests.
    Also resets the underlying DynamoDB singleton.
    """
    from stayhub.services.dynamodb import reset_dynamodb_service

    get_payment_service.cache_clear()
    get_marketplace_service.cache_clear()

    reset_dynamodb_service()
