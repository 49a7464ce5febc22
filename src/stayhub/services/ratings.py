"""Property rating aggregation from guest reviews."""

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from stayhub.models import PropertyRatings, Review


class RatingService:
    """Recomputes a property's aggregate rating from its reviews."""

    def recompute(self, reviews: Iterable[Review]) -> PropertyRatings:
        """Average of overall ratings, rounded half-up to one decimal.

        A property with no reviews has average 0 and count 0.
        """
        scores = [review.overall for review in reviews]
        if not scores:
            return PropertyRatings(average=0.0, count=0)

        average = (Decimal(sum(scores)) / Decimal(len(scores))).quantize(
            Decimal("0.1"), rounding=ROUND_HALF_UP
        )
        return PropertyRatings(average=float(average), count=len(scores))
