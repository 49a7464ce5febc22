"""Property catalog view and review rating models."""

from pydantic import BaseModel, ConfigDict, Field

from .enums import CancellationPolicy


class PropertyRatings(BaseModel):
    """Aggregate guest rating of a property."""

    model_config = ConfigDict(frozen=True)

    average: float = Field(default=0.0, ge=0, le=5, description="Average, one decimal")
    count: int = Field(default=0, ge=0, description="Number of reviews")


class PropertySnapshot(BaseModel):
    """The catalog fields the booking engine reads from a property.

    The catalog itself (listing CRUD, photos, search) lives outside this
    package; only pricing and admissibility inputs are modeled.
    """

    model_config = ConfigDict(frozen=True)

    property_id: str = Field(..., description="Unique property ID")
    host_id: str = Field(..., description="User ID of the owning host")
    title: str = Field(default="", description="Listing title")
    price_per_night: int = Field(..., ge=0, description="Nightly price, whole currency units")
    max_guests: int = Field(..., ge=1, description="Maximum guests incl. children and infants")
    is_active: bool = Field(default=True, description="Whether the listing accepts bookings")
    cancellation_policy: CancellationPolicy = Field(default=CancellationPolicy.MODERATE)
    ratings: PropertyRatings = Field(default_factory=PropertyRatings)


class Review(BaseModel):
    """The rating part of a guest review, input to rating recalculation."""

    model_config = ConfigDict(strict=True, frozen=True)

    review_id: str
    property_id: str
    booking_id: str
    guest_id: str
    overall: int = Field(..., ge=1, le=5)
