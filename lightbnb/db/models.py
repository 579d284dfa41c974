import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class User(BaseModel):
    """Represents a user in the system."""

    id: int
    name: str
    email: str
    password: str


class NewUser(BaseModel):
    """Data required to register a user."""

    name: str
    email: str
    password: str

    @field_validator("email")
    def email_is_lowercase(cls, v: str) -> str:
        return v.strip().lower()


class Property(BaseModel):
    """Represents a property listing as stored."""

    id: int
    owner_id: int
    title: str
    description: Optional[str] = None
    thumbnail_photo_url: Optional[str] = None
    cover_photo_url: Optional[str] = None
    cost_per_night: int  # in cents
    parking_spaces: int = 0
    number_of_bathrooms: int = 0
    number_of_bedrooms: int = 0
    country: str
    street: str
    city: str
    province: str
    post_code: str
    active: bool = True


class PropertyListing(Property):
    """A property together with the average rating of its reviews."""

    average_rating: Optional[float] = None


class NewProperty(BaseModel):
    """Data required to list a new property. Price is given per night in major units."""

    owner_id: int
    title: str
    description: Optional[str] = None
    thumbnail_photo_url: Optional[str] = None
    cover_photo_url: Optional[str] = None
    cost_per_night: float = Field(..., ge=0)
    parking_spaces: int = Field(0, ge=0)
    number_of_bathrooms: int = Field(0, ge=0)
    number_of_bedrooms: int = Field(0, ge=0)
    country: str
    street: str
    city: str
    province: str
    post_code: str


class Reservation(BaseModel):
    """A past reservation with the reserved property's details."""

    reservation_id: int
    start_date: datetime.date
    end_date: datetime.date
    guest_id: int
    property_id: int
    title: str
    cost_per_night: int  # in cents
    thumbnail_photo_url: Optional[str] = None
    number_of_bedrooms: int = 0
    number_of_bathrooms: int = 0
    parking_spaces: int = 0
    city: str
    average_rating: Optional[float] = None


class SearchCriteria(BaseModel):
    """Optional filters for a property search. Prices are in major units."""

    model_config = ConfigDict(frozen=True)

    city: Optional[str] = None
    owner_id: Optional[int] = None
    # NaN and infinity cannot be converted to cents or compared meaningfully.
    minimum_price_per_night: Optional[float] = Field(None, allow_inf_nan=False)
    maximum_price_per_night: Optional[float] = Field(None, allow_inf_nan=False)
    minimum_rating: Optional[float] = Field(None, allow_inf_nan=False)

    @field_validator("city")
    def blank_city_is_absent(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v
