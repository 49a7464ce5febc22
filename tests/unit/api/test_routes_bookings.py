"""Unit tests for booking API routes.

Tests for:
- POST /api/bookings - Direct booking requests
- GET /api/bookings, /api/bookings/host, /api/bookings/{booking_id}
- PUT /api/bookings/{booking_id}/status - Host confirmation, cancellation
- PUT /api/bookings/{booking_id}/complete - Admin completion
- DELETE /api/bookings/{booking_id} - Guest deletion of pending bookings
"""

from typing import Any

import pytest
from fastapi.testclient import TestClient
from starlette.status import (
    HTTP_200_OK,
    HTTP_201_CREATED,
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
)

STAY = {
    "property_id": "PROP-001",
    "check_in": "2025-06-01",
    "check_out": "2025-06-04",
    "guests": {"adults": 2},
    "special_requests": "Early check-in please",
}

STRANGER = {"x-user-id": "guest-9"}


def _request(client: TestClient, headers: dict[str, str], **overrides: Any) -> Any:
    return client.post("/api/bookings", json={**STAY, **overrides}, headers=headers)


@pytest.fixture
def booking(api_client: TestClient, guest_headers: dict[str, str]) -> dict[str, Any]:
    response = _request(api_client, guest_headers)
    assert response.status_code == HTTP_201_CREATED
    return response.json()


def _set_status(
    client: TestClient, booking_id: str, status: str, headers: dict[str, str]
) -> Any:
    return client.put(
        f"/api/bookings/{booking_id}/status", json={"status": status}, headers=headers
    )


# === Requesting ===


class TestRequestBooking:
    """Tests for POST /api/bookings."""

    def test_creates_pending_booking(self, booking: dict[str, Any]) -> None:
        assert booking["status"] == "pending"
        assert booking["payment_status"] == "pending"
        assert booking["guest_id"] == "guest-1"
        assert booking["host_id"] == "host-1"
        assert booking["order_id"] is None
        assert booking["pricing"]["total"] == 399
        assert booking["special_requests"] == "Early check-in please"
        assert booking["cancellation_policy"] == "moderate"

    def test_host_cannot_book_own_property(
        self, api_client: TestClient, host_headers: dict[str, str]
    ) -> None:
        response = _request(api_client, host_headers)
        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "ERR_STAY_005"

    def test_overlap_conflicts(
        self, api_client: TestClient, booking: dict[str, Any]
    ) -> None:
        response = _request(
            api_client, {"x-user-id": "guest-2"}, check_in="2025-06-03", check_out="2025-06-06"
        )
        assert response.status_code == HTTP_409_CONFLICT
        assert response.json()["error_code"] == "ERR_STAY_004"

    def test_turnover_day_allowed(
        self, api_client: TestClient, booking: dict[str, Any]
    ) -> None:
        response = _request(
            api_client, {"x-user-id": "guest-2"}, check_in="2025-06-04", check_out="2025-06-06"
        )
        assert response.status_code == HTTP_201_CREATED

    def test_unknown_property(self, api_client: TestClient, guest_headers: dict[str, str]) -> None:
        response = _request(api_client, guest_headers, property_id="PROP-MISSING")
        assert response.status_code == HTTP_404_NOT_FOUND


# === Reading ===


class TestReadBookings:
    """Tests for booking listings and lookup."""

    def test_guest_listing(
        self, api_client: TestClient, guest_headers: dict[str, str], booking: dict[str, Any]
    ) -> None:
        data = api_client.get("/api/bookings", headers=guest_headers).json()
        assert data["count"] == 1
        assert data["bookings"][0]["booking_id"] == booking["booking_id"]

    def test_host_listing(
        self, api_client: TestClient, host_headers: dict[str, str], booking: dict[str, Any]
    ) -> None:
        data = api_client.get("/api/bookings/host", headers=host_headers).json()
        assert [b["booking_id"] for b in data["bookings"]] == [booking["booking_id"]]

    def test_host_sees_booking(
        self, api_client: TestClient, host_headers: dict[str, str], booking: dict[str, Any]
    ) -> None:
        response = api_client.get(f"/api/bookings/{booking['booking_id']}", headers=host_headers)
        assert response.status_code == HTTP_200_OK

    def test_stranger_forbidden(self, api_client: TestClient, booking: dict[str, Any]) -> None:
        response = api_client.get(f"/api/bookings/{booking['booking_id']}", headers=STRANGER)
        assert response.status_code == HTTP_403_FORBIDDEN

    def test_unknown_booking(self, api_client: TestClient, guest_headers: dict[str, str]) -> None:
        response = api_client.get("/api/bookings/BKG-MISSING", headers=guest_headers)
        assert response.status_code == HTTP_404_NOT_FOUND
        assert response.json()["error_code"] == "ERR_ACCESS_003"


# === Status changes ===


class TestBookingStatus:
    """Tests for PUT /api/bookings/{booking_id}/status and /complete."""

    def test_host_confirms(
        self, api_client: TestClient, host_headers: dict[str, str], booking: dict[str, Any]
    ) -> None:
        response = _set_status(api_client, booking["booking_id"], "confirmed", host_headers)
        assert response.status_code == HTTP_200_OK
        assert response.json()["status"] == "confirmed"

    def test_guest_cannot_confirm(
        self, api_client: TestClient, guest_headers: dict[str, str], booking: dict[str, Any]
    ) -> None:
        response = _set_status(api_client, booking["booking_id"], "confirmed", guest_headers)
        assert response.status_code == HTTP_403_FORBIDDEN
        assert response.json()["error_code"] == "ERR_ACCESS_004"

    def test_guest_cancels(
        self, api_client: TestClient, guest_headers: dict[str, str], booking: dict[str, Any]
    ) -> None:
        response = _set_status(api_client, booking["booking_id"], "cancelled", guest_headers)
        assert response.status_code == HTTP_200_OK
        assert response.json()["status"] == "cancelled"

    def test_cancelled_dates_become_free(
        self, api_client: TestClient, guest_headers: dict[str, str], booking: dict[str, Any]
    ) -> None:
        _set_status(api_client, booking["booking_id"], "cancelled", guest_headers)
        response = _request(api_client, {"x-user-id": "guest-2"})
        assert response.status_code == HTTP_201_CREATED

    def test_status_pending_rejected(
        self, api_client: TestClient, host_headers: dict[str, str], booking: dict[str, Any]
    ) -> None:
        response = _set_status(api_client, booking["booking_id"], "pending", host_headers)
        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "ERR_STATE_001"

    def test_admin_completes_confirmed(
        self,
        api_client: TestClient,
        host_headers: dict[str, str],
        admin_headers: dict[str, str],
        booking: dict[str, Any],
    ) -> None:
        _set_status(api_client, booking["booking_id"], "confirmed", host_headers)

        response = api_client.put(
            f"/api/bookings/{booking['booking_id']}/complete", headers=admin_headers
        )

        assert response.status_code == HTTP_200_OK
        assert response.json()["status"] == "completed"

    def test_host_cannot_complete(
        self, api_client: TestClient, host_headers: dict[str, str], booking: dict[str, Any]
    ) -> None:
        _set_status(api_client, booking["booking_id"], "confirmed", host_headers)

        response = api_client.put(
            f"/api/bookings/{booking['booking_id']}/complete", headers=host_headers
        )

        assert response.status_code == HTTP_403_FORBIDDEN

    def test_completed_cannot_be_cancelled(
        self,
        api_client: TestClient,
        guest_headers: dict[str, str],
        host_headers: dict[str, str],
        admin_headers: dict[str, str],
        booking: dict[str, Any],
    ) -> None:
        _set_status(api_client, booking["booking_id"], "confirmed", host_headers)
        api_client.put(f"/api/bookings/{booking['booking_id']}/complete", headers=admin_headers)

        response = _set_status(api_client, booking["booking_id"], "cancelled", guest_headers)

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "ERR_STATE_002"


# === Deletion ===


class TestDeleteBooking:
    """Tests for DELETE /api/bookings/{booking_id}."""

    def test_guest_deletes_pending(
        self, api_client: TestClient, guest_headers: dict[str, str], booking: dict[str, Any]
    ) -> None:
        response = api_client.delete(f"/api/bookings/{booking['booking_id']}", headers=guest_headers)

        assert response.status_code == HTTP_200_OK
        assert response.json()["success"] is True
        missing = api_client.get(f"/api/bookings/{booking['booking_id']}", headers=guest_headers)
        assert missing.status_code == HTTP_404_NOT_FOUND

    def test_host_cannot_delete(
        self, api_client: TestClient, host_headers: dict[str, str], booking: dict[str, Any]
    ) -> None:
        response = api_client.delete(f"/api/bookings/{booking['booking_id']}", headers=host_headers)
        assert response.status_code == HTTP_403_FORBIDDEN

    def test_confirmed_cannot_be_deleted(
        self,
        api_client: TestClient,
        guest_headers: dict[str, str],
        host_headers: dict[str, str],
        booking: dict[str, Any],
    ) -> None:
        _set_status(api_client, booking["booking_id"], "confirmed", host_headers)

        response = api_client.delete(f"/api/bookings/{booking['booking_id']}", headers=guest_headers)

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "ERR_STATE_001"
