"""Pricing service for stay rate calculation.

Implements the marketplace fee schedule:
- Cleaning fee: 10% of the subtotal
- Service fee: 15% of the subtotal
- Taxes: 8% of the subtotal

Each fee line is rounded half-up to a whole currency unit on its own,
then the lines are summed. Rounding the sum instead gives different
totals, so the order matters for reproducing cart, order and booking
amounts exactly.
"""

import datetime as dt
from decimal import ROUND_HALF_UP, Decimal

from stayhub.models import PriceBreakdown, PropertySnapshot

_ONE_DAY = dt.timedelta(days=1)


class PricingService:
    """Service for nightly pricing and fee breakdowns.

    Stateless: identical inputs always produce identical breakdowns.
    """

    CLEANING_FEE_RATE = Decimal("0.10")
    SERVICE_FEE_RATE = Decimal("0.15")
    TAX_RATE = Decimal("0.08")

    def count_nights(self, check_in: dt.datetime, check_out: dt.datetime) -> int:
        """Count billable nights as the ceiling of whole days between dates.

        A partial day counts as a full night, so 00:00 to 12:00 on the
        same date is one night.

        Args:
            check_in: Check-in instant
            check_out: Check-out instant

        Returns:
            Number of nights (0 or negative when check-out is not after check-in)
        """
        days, remainder = divmod(check_out - check_in, _ONE_DAY)
        return days + 1 if remainder else days

    def price_stay(self, price_per_night: int, nights: int) -> PriceBreakdown:
        """Calculate the fee breakdown for a stay.

        Args:
            price_per_night: Nightly price in whole currency units
            nights: Number of nights (at least 1)

        Returns:
            PriceBreakdown with subtotal, fee lines and total
        """
        subtotal = price_per_night * nights
        cleaning_fee = self._fee(subtotal, self.CLEANING_FEE_RATE)
        service_fee = self._fee(subtotal, self.SERVICE_FEE_RATE)
        taxes = self._fee(subtotal, self.TAX_RATE)

        return PriceBreakdown(
            price_per_night=price_per_night,
            nights=nights,
            subtotal=subtotal,
            cleaning_fee=cleaning_fee,
            service_fee=service_fee,
            taxes=taxes,
            total=subtotal + cleaning_fee + service_fee + taxes,
        )

    def price_for_property(
        self,
        prop: PropertySnapshot,
        check_in: dt.datetime,
        check_out: dt.datetime,
    ) -> PriceBreakdown:
        """Price a stay at the property's current nightly rate."""
        return self.price_stay(prop.price_per_night, self.count_nights(check_in, check_out))

    def _fee(self, subtotal: int, rate: Decimal) -> int:
        """Round one fee line half-up to a whole currency unit."""
        return int((Decimal(subtotal) * rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
