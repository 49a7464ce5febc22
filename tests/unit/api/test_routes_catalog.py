"""Unit tests for health, availability and pricing routes.

Tests for:
- GET /api/health and /api/ping
- GET /api/availability - Full admissibility check
- POST /api/pricing/quote - Price breakdown at the current nightly rate
"""

from typing import Any

from fastapi.testclient import TestClient
from starlette.status import (
    HTTP_200_OK,
    HTTP_201_CREATED,
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_422_UNPROCESSABLE_ENTITY,
)


def _availability(client: TestClient, **params: Any) -> Any:
    query = {
        "property_id": "PROP-001",
        "check_in": "2025-06-01",
        "check_out": "2025-06-04",
        "adults": 2,
        **params,
    }
    return client.get("/api/availability", params=query)


class TestHealth:
    """Tests for the health endpoints."""

    def test_health(self, api_client: TestClient) -> None:
        response = api_client.get("/api/health")
        assert response.status_code == HTTP_200_OK
        assert response.json()["status"] == "ok"

    def test_ping(self, api_client: TestClient) -> None:
        response = api_client.get("/api/ping")
        assert response.status_code == HTTP_200_OK
        assert response.json()["service"] == "stayhub-api"

    def test_correlation_id_echoed(self, api_client: TestClient) -> None:
        response = api_client.get("/api/health", headers={"x-correlation-id": "corr-123"})
        assert response.headers["x-correlation-id"] == "corr-123"


class TestAvailability:
    """Tests for GET /api/availability."""

    def test_free_dates(self, api_client: TestClient) -> None:
        response = _availability(api_client)

        assert response.status_code == HTTP_200_OK
        data = response.json()
        assert data["ok"] is True
        assert data["nights"] == 3
        assert data["check_in"] == "2025-06-01T00:00:00"

    def test_partial_day_rounds_up(self, api_client: TestClient) -> None:
        response = _availability(
            api_client, check_in="2025-06-01T15:00:00", check_out="2025-06-03T11:00:00"
        )
        assert response.json()["nights"] == 2

    def test_unknown_property(self, api_client: TestClient) -> None:
        response = _availability(api_client, property_id="PROP-MISSING")
        assert response.status_code == HTTP_404_NOT_FOUND

    def test_over_capacity(self, api_client: TestClient) -> None:
        response = _availability(api_client, property_id="PROP-002", adults=2, children=1)
        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "ERR_STAY_002"

    def test_booked_dates_conflict(
        self, api_client: TestClient, guest_headers: dict[str, str]
    ) -> None:
        booked = api_client.post(
            "/api/bookings",
            json={
                "property_id": "PROP-001",
                "check_in": "2025-06-02",
                "check_out": "2025-06-05",
                "guests": {"adults": 1},
            },
            headers=guest_headers,
        )
        assert booked.status_code == HTTP_201_CREATED

        response = _availability(api_client)

        assert response.status_code == HTTP_409_CONFLICT
        assert response.json()["error_code"] == "ERR_STAY_004"

    def test_missing_adults_defaults_to_one(self, api_client: TestClient) -> None:
        response = api_client.get(
            "/api/availability",
            params={"property_id": "PROP-001", "check_in": "2025-06-01", "check_out": "2025-06-02"},
        )
        assert response.status_code == HTTP_200_OK

    def test_zero_adults_rejected(self, api_client: TestClient) -> None:
        response = _availability(api_client, adults=0)
        assert response.status_code == HTTP_422_UNPROCESSABLE_ENTITY


class TestPriceQuote:
    """Tests for POST /api/pricing/quote."""

    def test_quote(self, api_client: TestClient) -> None:
        response = api_client.post(
            "/api/pricing/quote",
            json={"property_id": "PROP-001", "check_in": "2025-06-01", "check_out": "2025-06-04"},
        )

        assert response.status_code == HTTP_200_OK
        assert response.json() == {
            "price_per_night": 100,
            "nights": 3,
            "subtotal": 300,
            "cleaning_fee": 30,
            "service_fee": 45,
            "taxes": 24,
            "total": 399,
        }

    def test_quote_uses_property_price(self, api_client: TestClient) -> None:
        response = api_client.post(
            "/api/pricing/quote",
            json={"property_id": "PROP-002", "check_in": "2025-06-01", "check_out": "2025-06-03"},
        )
        assert response.json()["total"] == 665

    def test_reversed_range(self, api_client: TestClient) -> None:
        response = api_client.post(
            "/api/pricing/quote",
            json={"property_id": "PROP-001", "check_in": "2025-06-04", "check_out": "2025-06-01"},
        )
        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "ERR_STAY_001"
