from decimal import Decimal
from typing import Optional

from lightbnb.db.models import PropertyListing, Reservation

__all__ = ["format_price", "format_rating", "format_listing", "format_reservation"]


def format_price(amount_in_cents: int) -> str:
    """Formats a price from cents to a human-readable string."""
    amount = Decimal(amount_in_cents) / 100
    return f"${amount:.2f}"


def format_rating(rating: Optional[float]) -> str:
    """Formats an average rating to one decimal, or a dash when there are no reviews."""
    if rating is None:
        return "-"
    return f"{rating:.1f}"


def format_listing(listing: PropertyListing) -> str:
    """One-line summary of a search result."""
    return (
        f"#{listing.id} {listing.title} ({listing.city}, {listing.province}) "
        f"{format_price(listing.cost_per_night)}/night, "
        f"{listing.number_of_bedrooms} bd / {listing.number_of_bathrooms} ba, "
        f"rating {format_rating(listing.average_rating)}"
    )


def format_reservation(reservation: Reservation) -> str:
    """One-line summary of a past reservation."""
    return (
        f"{reservation.start_date.isoformat()} - {reservation.end_date.isoformat()} "
        f"{reservation.title} ({reservation.city}) {format_price(reservation.cost_per_night)}/night"
    )
