"""Pytest configuration and fixtures for Stayhub tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto (every marketplace table and GSI)
- Sample properties, stays and addresses
- Engine services and a MarketplaceService wired to the mock tables
"""

import datetime as dt
import os
from collections.abc import Callable
from typing import Any, Generator

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-stayhub")
os.environ.setdefault("ENVIRONMENT", "test")

if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from stayhub.models import (  # noqa: E402
    Address,
    GuestCounts,
    PropertySnapshot,
    StayRequest,
)
from stayhub.services import (  # noqa: E402
    AvailabilityService,
    CartService,
    CheckoutService,
    LifecycleService,
    PricingService,
)

TABLE_PREFIX = os.environ["DYNAMODB_TABLE_PREFIX"]
TEST_SECRET = "test_key_secret"

HOST_ID = "host-1"
GUEST_ID = "guest-1"
OTHER_GUEST_ID = "guest-2"
PROPERTY_ID = "PROP-001"
SECOND_PROPERTY_ID = "PROP-002"


# === Singleton Reset ===


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Reset cached services before and after each test.

    Tests using mock_aws then get fresh boto3 clients inside the mock
    context rather than reusing ones from a previous test.
    """
    from stayhub.services.dynamodb import reset_dynamodb_service
    from stayhub.services.ssm_service import SSMService, get_ssm_service
    from stayhub_api.dependencies import reset_services

    reset_services()
    reset_dynamodb_service()
    get_ssm_service.cache_clear()
    SSMService._cache.clear()
    yield
    reset_services()
    reset_dynamodb_service()
    get_ssm_service.cache_clear()
    SSMService._cache.clear()


# === DynamoDB Fixtures ===


def _gsi(attribute: str) -> dict[str, Any]:
    return {
        "IndexName": f"{attribute}-index",
        "KeySchema": [{"AttributeName": attribute, "KeyType": "HASH"}],
        "Projection": {"ProjectionType": "ALL"},
    }


TABLE_DEFINITIONS: list[dict[str, Any]] = [
    {
        "TableName": f"{TABLE_PREFIX}-properties",
        "KeySchema": [{"AttributeName": "property_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [{"AttributeName": "property_id", "AttributeType": "S"}],
    },
    {
        "TableName": f"{TABLE_PREFIX}-reviews",
        "KeySchema": [{"AttributeName": "review_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": "review_id", "AttributeType": "S"},
            {"AttributeName": "property_id", "AttributeType": "S"},
        ],
        "GlobalSecondaryIndexes": [_gsi("property_id")],
    },
    {
        "TableName": f"{TABLE_PREFIX}-carts",
        "KeySchema": [{"AttributeName": "user_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [{"AttributeName": "user_id", "AttributeType": "S"}],
    },
    {
        "TableName": f"{TABLE_PREFIX}-orders",
        "KeySchema": [{"AttributeName": "order_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": "order_id", "AttributeType": "S"},
            {"AttributeName": "user_id", "AttributeType": "S"},
        ],
        "GlobalSecondaryIndexes": [_gsi("user_id")],
    },
    {
        "TableName": f"{TABLE_PREFIX}-order-numbers",
        "KeySchema": [{"AttributeName": "order_number", "KeyType": "HASH"}],
        "AttributeDefinitions": [{"AttributeName": "order_number", "AttributeType": "S"}],
    },
    {
        "TableName": f"{TABLE_PREFIX}-bookings",
        "KeySchema": [{"AttributeName": "booking_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": "booking_id", "AttributeType": "S"},
            {"AttributeName": "property_id", "AttributeType": "S"},
            {"AttributeName": "guest_id", "AttributeType": "S"},
            {"AttributeName": "host_id", "AttributeType": "S"},
            {"AttributeName": "order_id", "AttributeType": "S"},
        ],
        "GlobalSecondaryIndexes": [
            _gsi("property_id"),
            _gsi("guest_id"),
            _gsi("host_id"),
            _gsi("order_id"),
        ],
    },
    {
        "TableName": f"{TABLE_PREFIX}-booking-nights",
        "KeySchema": [
            {"AttributeName": "property_id", "KeyType": "HASH"},
            {"AttributeName": "night", "KeyType": "RANGE"},
        ],
        "AttributeDefinitions": [
            {"AttributeName": "property_id", "AttributeType": "S"},
            {"AttributeName": "night", "AttributeType": "S"},
        ],
    },
]


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto."""
    if not os.environ.get("AWS_PROFILE"):
        os.environ["AWS_ACCESS_KEY_ID"] = "testing"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
        os.environ["AWS_SECURITY_TOKEN"] = "testing"
        os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"


@pytest.fixture
def mock_tables(aws_credentials: None) -> Generator[Any, None, None]:
    """Create every marketplace table inside a moto context."""
    with mock_aws():
        client = boto3.client("dynamodb", region_name="eu-west-1")
        for definition in TABLE_DEFINITIONS:
            client.create_table(BillingMode="PAY_PER_REQUEST", **definition)
        yield client


@pytest.fixture
def db(mock_tables: Any) -> Any:
    """DynamoDBService bound to the mock tables."""
    from stayhub.services.dynamodb import DynamoDBService

    return DynamoDBService()


@pytest.fixture
def seeded_catalog(
    db: Any, sample_property: PropertySnapshot, second_property: PropertySnapshot
) -> Any:
    """PropertyCatalog holding the two sample properties."""
    from stayhub.services.repositories import PropertyCatalog

    catalog = PropertyCatalog(db)
    catalog.save(sample_property)
    catalog.save(second_property)
    return catalog


@pytest.fixture
def marketplace(db: Any, seeded_catalog: Any) -> Any:
    """MarketplaceService with the default (non-exclusive) write path."""
    from stayhub.services.marketplace import MarketplaceService
    from stayhub.services.payment_service import PaymentService

    return MarketplaceService(
        db=db,
        payments=PaymentService(signing_secret=TEST_SECRET),
        exclusive_writes=False,
    )


@pytest.fixture
def exclusive_marketplace(db: Any, seeded_catalog: Any) -> Any:
    """MarketplaceService that locks booked nights."""
    from stayhub.services.marketplace import MarketplaceService
    from stayhub.services.payment_service import PaymentService

    return MarketplaceService(
        db=db,
        payments=PaymentService(signing_secret=TEST_SECRET),
        exclusive_writes=True,
    )


# === Sample Data Fixtures ===


@pytest.fixture
def sample_property() -> PropertySnapshot:
    """Active property: 100 per night, up to 4 guests."""
    return PropertySnapshot(
        property_id=PROPERTY_ID,
        host_id=HOST_ID,
        title="Sea view apartment",
        price_per_night=100,
        max_guests=4,
    )


@pytest.fixture
def second_property() -> PropertySnapshot:
    return PropertySnapshot(
        property_id=SECOND_PROPERTY_ID,
        host_id=HOST_ID,
        title="Hill cabin",
        price_per_night=250,
        max_guests=2,
    )


@pytest.fixture
def make_stay() -> Callable[..., StayRequest]:
    """Factory for StayRequest with sensible defaults."""

    def _make(
        check_in: str = "2025-06-01",
        check_out: str = "2025-06-04",
        property_id: str = PROPERTY_ID,
        adults: int = 2,
        children: int = 0,
        infants: int = 0,
        special_requests: str | None = None,
    ) -> StayRequest:
        return StayRequest(
            property_id=property_id,
            check_in=check_in,
            check_out=check_out,
            guests=GuestCounts(adults=adults, children=children, infants=infants),
            special_requests=special_requests,
        )

    return _make


@pytest.fixture
def sample_address() -> Address:
    return Address(
        street="12 MG Road",
        city="Bengaluru",
        state="KA",
        zip_code="560001",
        country="IN",
    )


@pytest.fixture
def address_payload() -> dict[str, str]:
    return {
        "street": "12 MG Road",
        "city": "Bengaluru",
        "state": "KA",
        "zip_code": "560001",
        "country": "IN",
    }


# === Engine Service Fixtures ===


@pytest.fixture
def pricing() -> PricingService:
    return PricingService()


@pytest.fixture
def availability(pricing: PricingService) -> AvailabilityService:
    return AvailabilityService(pricing)


@pytest.fixture
def cart_service(pricing: PricingService, availability: AvailabilityService) -> CartService:
    return CartService(pricing, availability)


@pytest.fixture
def checkout(availability: AvailabilityService, cart_service: CartService) -> CheckoutService:
    return CheckoutService(availability, cart_service)


@pytest.fixture
def lifecycle(pricing: PricingService, availability: AvailabilityService) -> LifecycleService:
    return LifecycleService(pricing, availability)


@pytest.fixture
def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


# === API Fixtures ===


@pytest.fixture
def api_client(marketplace: Any) -> Generator[Any, None, None]:
    """TestClient whose marketplace dependency uses the mock tables."""
    from fastapi.testclient import TestClient

    from stayhub_api.dependencies import get_marketplace_service
    from stayhub_api.main import app

    app.dependency_overrides[get_marketplace_service] = lambda: marketplace
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def guest_headers() -> dict[str, str]:
    return {"x-user-id": GUEST_ID}


@pytest.fixture
def host_headers() -> dict[str, str]:
    return {"x-user-id": HOST_ID}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"x-user-id": "admin-1", "x-user-role": "admin"}
