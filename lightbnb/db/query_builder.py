"""Property search statement builder.

Turns a sparse :class:`SearchCriteria` into one aggregating statement with
``$N`` placeholders and the matching ordered parameter tuple. Nothing the
caller supplies is ever written into the statement text.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, List, Tuple, Union

from .models import SearchCriteria

__all__ = ["Query", "QueryParams", "WhereClause", "build_property_search", "to_cents"]

SEARCH_SELECT = """SELECT properties.*, AVG(property_reviews.rating) AS average_rating
FROM properties
JOIN property_reviews ON properties.id = property_reviews.property_id"""

SEARCH_GROUP_BY = "GROUP BY properties.id"


@dataclass(frozen=True)
class Query:
    """A statement paired with the values for its placeholders."""

    statement: str
    params: Tuple[Any, ...]


class QueryParams:
    """Ordered bound values. Adding a value returns the placeholder that binds it."""

    def __init__(self) -> None:
        self._values: List[Any] = []

    def add(self, value: Any) -> str:
        self._values.append(value)
        return f"${len(self._values)}"

    def values(self) -> Tuple[Any, ...]:
        return tuple(self._values)

    def __len__(self) -> int:
        return len(self._values)


class WhereClause:
    """Collects filter predicates and renders them behind a single WHERE."""

    def __init__(self, params: QueryParams) -> None:
        self._params = params
        self._predicates: List[str] = []

    def add(self, template: str, value: Any) -> None:
        """Bind *value* and add *template* with ``{}`` replaced by its placeholder."""
        placeholder = self._params.add(value)
        self._predicates.append(template.format(placeholder))

    @property
    def emitted(self) -> bool:
        return bool(self._predicates)

    def render(self) -> str:
        if not self._predicates:
            return ""
        return "WHERE " + "\nAND ".join(self._predicates)


def to_cents(amount: Union[int, float, Decimal]) -> int:
    """Convert a price in major units to the minor units prices are stored in."""
    return int(round(Decimal(str(amount)) * 100))


def build_property_search(criteria: SearchCriteria, limit: int) -> Query:
    """Build the search statement for *criteria*, cheapest first, at most *limit* rows."""
    params = QueryParams()
    where = WhereClause(params)

    # Order matters: placeholders are numbered in the order values are bound.
    if criteria.city is not None:
        where.add("city LIKE {}", f"%{criteria.city}%")
    if criteria.owner_id is not None:
        where.add("properties.owner_id = {}", criteria.owner_id)
    if criteria.minimum_price_per_night is not None:
        where.add("properties.cost_per_night >= {}", to_cents(criteria.minimum_price_per_night))
    if criteria.maximum_price_per_night is not None:
        where.add("properties.cost_per_night <= {}", to_cents(criteria.maximum_price_per_night))

    parts = [SEARCH_SELECT]
    if where.emitted:
        parts.append(where.render())
    parts.append(SEARCH_GROUP_BY)

    if criteria.minimum_rating is not None:
        parts.append(f"HAVING AVG(property_reviews.rating) >= {params.add(criteria.minimum_rating)}")

    parts.append(f"ORDER BY cost_per_night ASC, properties.id ASC\nLIMIT {params.add(limit)}")

    return Query(statement="\n".join(parts) + ";", params=params.values())
