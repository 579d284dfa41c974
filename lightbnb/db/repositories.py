"""Repositories for users, reservations and properties.

Every repository is given a :class:`QueryExecutor`; none of them owns a
connection. Statements use ``$N`` placeholders and all values travel in the
parameter sequence.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Union

from .executor import QueryExecutor
from .models import (
    NewProperty,
    NewUser,
    Property as PropertyModel,
    PropertyListing,
    Reservation as ReservationModel,
    SearchCriteria,
    User as UserModel,
)
from .query_builder import build_property_search, to_cents
from .results import QueryExecutionError, QueryResult

logger = logging.getLogger(__name__)


class UserRepository:
    """Lookups and registration of users."""

    def __init__(self, executor: QueryExecutor) -> None:
        self.executor = executor

    async def get_by_email(self, email: str) -> Optional[UserModel]:
        """Retrieve a user by email, ignoring case."""
        try:
            row = await self.executor.fetch_one(
                """
                SELECT * FROM users
                WHERE users.email = $1
                """,
                (email.strip().lower(),),
            )
            return UserModel(**row) if row else None
        except QueryExecutionError as e:
            logger.exception("Failed to get user by email %s: %s", email, e)
            raise

    async def get_by_id(self, user_id: int) -> Optional[UserModel]:
        """Retrieve a user by their ID."""
        try:
            row = await self.executor.fetch_one(
                """
                SELECT * FROM users
                WHERE users.id = $1
                """,
                (user_id,),
            )
            return UserModel(**row) if row else None
        except QueryExecutionError as e:
            logger.exception("Failed to get user by id %s: %s", user_id, e)
            raise

    async def add(self, user: NewUser) -> UserModel:
        """Insert a new user and return the stored row."""
        try:
            row = await self.executor.fetch_one(
                """
                INSERT INTO users (name, email, password)
                VALUES ($1, $2, $3)
                RETURNING *
                """,
                (user.name, user.email, user.password),
                commit=True,
            )
        except QueryExecutionError as e:
            logger.exception("Failed to add user %s: %s", user.email, e)
            raise
        if row is None:
            raise RuntimeError(f"Failed to retrieve user after insertion: {user.email}")
        return UserModel(**row)


class ReservationRepository:
    """Reservation history queries."""

    def __init__(self, executor: QueryExecutor) -> None:
        self.executor = executor

    async def list_past_for_guest(self, guest_id: int, limit: int = 20) -> List[ReservationModel]:
        """List a guest's finished reservations, oldest first, with each property's rating."""
        try:
            rows = await self.executor.fetch(
                """
                SELECT reservations.id AS reservation_id,
                       reservations.start_date,
                       reservations.end_date,
                       reservations.guest_id,
                       properties.id AS property_id,
                       properties.title,
                       properties.cost_per_night,
                       properties.thumbnail_photo_url,
                       properties.number_of_bedrooms,
                       properties.number_of_bathrooms,
                       properties.parking_spaces,
                       properties.city,
                       AVG(property_reviews.rating) AS average_rating
                FROM reservations
                JOIN properties ON reservations.property_id = properties.id
                JOIN property_reviews ON properties.id = property_reviews.property_id
                WHERE reservations.guest_id = $1
                AND reservations.end_date < CURRENT_DATE
                GROUP BY properties.id, reservations.id
                ORDER BY reservations.start_date
                LIMIT $2
                """,
                (guest_id, limit),
            )
            return [ReservationModel(**row) for row in rows]
        except QueryExecutionError as e:
            logger.exception("Failed to list reservations for guest %s: %s", guest_id, e)
            raise


class PropertyRepository:
    """Property search and listing."""

    def __init__(self, executor: QueryExecutor) -> None:
        self.executor = executor

    async def search(
        self,
        criteria: Union[SearchCriteria, Mapping[str, Any], None] = None,
        limit: int = 10,
    ) -> QueryResult[PropertyListing]:
        """
        Search properties matching *criteria*, cheapest first.

        Only properties with at least one review are returned. A database
        failure is logged with the statement and its values and comes back
        as a failed result instead of an exception.
        """
        if criteria is None:
            criteria = SearchCriteria()
        elif not isinstance(criteria, SearchCriteria):
            criteria = SearchCriteria.model_validate(criteria)

        query = build_property_search(criteria, limit)
        try:
            rows = await self.executor.fetch(query.statement, query.params)
        except QueryExecutionError as e:
            logger.error(
                "Property search failed: %s statement=%s values=%r",
                e,
                " ".join(query.statement.split()),
                list(query.params),
            )
            return QueryResult.failure(e)
        return QueryResult.success([PropertyListing(**row) for row in rows])

    async def add(self, new_property: NewProperty) -> PropertyModel:
        """Insert a property; the nightly price is stored in cents."""
        values = (
            new_property.owner_id,
            new_property.title,
            new_property.description,
            new_property.thumbnail_photo_url,
            new_property.cover_photo_url,
            to_cents(new_property.cost_per_night),
            new_property.street,
            new_property.city,
            new_property.province,
            new_property.post_code,
            new_property.country,
            new_property.parking_spaces,
            new_property.number_of_bathrooms,
            new_property.number_of_bedrooms,
        )
        try:
            row = await self.executor.fetch_one(
                """
                INSERT INTO properties (
                    owner_id, title, description, thumbnail_photo_url, cover_photo_url,
                    cost_per_night, street, city, province, post_code, country,
                    parking_spaces, number_of_bathrooms, number_of_bedrooms
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14)
                RETURNING *
                """,
                values,
                commit=True,
            )
        except QueryExecutionError as e:
            logger.exception(
                "Failed to add property for owner %s: %s",
                new_property.owner_id,
                e,
            )
            raise
        if row is None:
            raise RuntimeError(f"Failed to retrieve property after insertion: {new_property.title}")
        return PropertyModel(**row)
