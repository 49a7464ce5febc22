"""Availability service for stay admissibility checks.

Decides whether a stay can be booked against a property's current state
and its existing reservations. Overlap uses half-open intervals
[check_in, check_out): a stay ending on another's check-in day does not
conflict, so same-day turnovers are allowed.

With by_night set, stays are compared by the calendar nights they are
billed for instead of exact instants. That is the granularity of the
exclusive-write night locks, so the pre-check and the locks always agree.
"""

import datetime as dt
from collections.abc import Iterable
from typing import TYPE_CHECKING

from stayhub.models import (
    AvailabilityResult,
    Booking,
    BookingError,
    ErrorCode,
    PropertySnapshot,
    StayRequest,
)

if TYPE_CHECKING:
    from .pricing import PricingService


def intervals_overlap(
    start: dt.datetime,
    end: dt.datetime,
    other_start: dt.datetime,
    other_end: dt.datetime,
) -> bool:
    """Half-open interval overlap test."""
    return start < other_end and end > other_start


class AvailabilityService:
    """Service for validating stays against capacity and existing bookings."""

    def __init__(self, pricing: "PricingService", by_night: bool = False) -> None:
        """Initialize availability service.

        Args:
            pricing: Pricing service used for night counting
            by_night: Compare stays by billed nights rather than instants
        """
        self.pricing = pricing
        self.by_night = by_night

    def check_stay(
        self,
        stay: StayRequest,
        prop: PropertySnapshot,
        existing_bookings: Iterable[Booking] = (),
        check_conflicts: bool = True,
    ) -> int:
        """Validate a stay and return its night count.

        Checks run in this order: date range, active flag, capacity, then
        (when requested) overlap with pending or confirmed bookings of the
        same property.

        Args:
            stay: Requested stay
            prop: Current state of the target property
            existing_bookings: Bookings already recorded for the property
            check_conflicts: Whether to test for overlapping bookings.
                Cart insertion skips this; booking creation never does.

        Returns:
            Number of nights (ceiling of whole days)

        Raises:
            BookingError: INVALID_DATE_RANGE, PROPERTY_UNAVAILABLE,
                CAPACITY_EXCEEDED or DATE_RANGE_CONFLICT
        """
        if stay.check_out <= stay.check_in:
            raise BookingError(
                code=ErrorCode.INVALID_DATE_RANGE,
                details={
                    "check_in": stay.check_in.isoformat(),
                    "check_out": stay.check_out.isoformat(),
                },
            )

        if not prop.is_active:
            raise BookingError(
                code=ErrorCode.PROPERTY_UNAVAILABLE,
                details={"property_id": prop.property_id},
            )

        total_guests = stay.guests.total
        if total_guests > prop.max_guests:
            raise BookingError(
                code=ErrorCode.CAPACITY_EXCEEDED,
                details={"requested": str(total_guests), "maximum": str(prop.max_guests)},
            )

        if check_conflicts:
            conflict = self.find_conflict(stay, existing_bookings)
            if conflict is not None:
                raise BookingError(
                    code=ErrorCode.DATE_RANGE_CONFLICT,
                    details={
                        "property_id": stay.property_id,
                        "conflicting_booking_id": conflict.booking_id,
                    },
                )

        return self.pricing.count_nights(stay.check_in, stay.check_out)

    def check_availability(
        self,
        stay: StayRequest,
        prop: PropertySnapshot,
        existing_bookings: Iterable[Booking] = (),
    ) -> AvailabilityResult:
        """Run the full admissibility check and wrap the result.

        Raises:
            BookingError: When the stay is not admissible
        """
        nights = self.check_stay(stay, prop, existing_bookings)
        return AvailabilityResult(
            ok=True,
            nights=nights,
            property_id=stay.property_id,
            check_in=stay.check_in,
            check_out=stay.check_out,
        )

    def find_conflict(
        self,
        stay: StayRequest,
        existing_bookings: Iterable[Booking],
    ) -> Booking | None:
        """Return the first live booking of the same property that overlaps the stay."""
        for booking in existing_bookings:
            if booking.property_id != stay.property_id or not booking.blocks_dates:
                continue
            if self._overlaps(stay.check_in, stay.check_out, booking.check_in, booking.check_out):
                return booking
        return None

    def _overlaps(
        self,
        start: dt.datetime,
        end: dt.datetime,
        other_start: dt.datetime,
        other_end: dt.datetime,
    ) -> bool:
        if not self.by_night:
            return intervals_overlap(start, end, other_start, other_end)
        first, last = self.night_span(start, end)
        other_first, other_last = self.night_span(other_start, other_end)
        return first < other_last and last > other_first

    def night_span(
        self, check_in: dt.datetime, check_out: dt.datetime
    ) -> tuple[dt.date, dt.date]:
        """First billed night and the day after the last one.

        A stay is billed for the nights from its check-in date onwards, one
        per started day. 06-01T15:00 to 06-04T11:00 spans the nights of
        06-01 to 06-03, so a guest arriving 06-04T15:00 starts a new one.
        """
        first = check_in.date()
        return first, first + dt.timedelta(days=self.pricing.count_nights(check_in, check_out))

    def nights_to_lock(self, check_in: dt.datetime, check_out: dt.datetime) -> list[dt.date]:
        """Calendar nights a stay occupies, used as exclusive lock keys.

        The same nights find_conflict compares when by_night is set, so a
        stay the pre-check admits never collides with another's lock and
        one it rejects always would.
        """
        first, last = self.night_span(check_in, check_out)
        return [first + dt.timedelta(days=i) for i in range((last - first).days)]
