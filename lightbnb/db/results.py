"""Outcome types for statements handed to the executor."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Iterator, List, Optional, Sequence, Tuple, TypeVar

__all__ = ["QueryExecutionError", "QueryResult"]

T = TypeVar("T")


class QueryExecutionError(Exception):
    """Raised when the database reports a failure for a statement.

    Carries the statement text and the bound parameters so the failure can be
    diagnosed from the log line alone.
    """

    def __init__(self, message: str, statement: str, params: Sequence[Any]) -> None:
        super().__init__(message)
        self.statement = statement
        self.params: Tuple[Any, ...] = tuple(params)


@dataclass(frozen=True)
class QueryResult(Generic[T]):
    """Either the rows a statement produced or the error that stopped it."""

    rows: List[T] = field(default_factory=list)
    error: Optional[QueryExecutionError] = None

    @classmethod
    def success(cls, rows: List[T]) -> "QueryResult[T]":
        return cls(rows=rows)

    @classmethod
    def failure(cls, error: QueryExecutionError) -> "QueryResult[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> List[T]:
        """Return the rows, raising the stored error for a failed query."""
        if self.error is not None:
            raise self.error
        return self.rows

    def rows_or_empty(self) -> List[T]:
        """Return the rows, or an empty list when the query failed."""
        return self.rows if self.error is None else []

    def __iter__(self) -> Iterator[T]:
        return iter(self.unwrap())
