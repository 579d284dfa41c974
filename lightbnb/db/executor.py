"""Statement execution over a :class:`ConnectionPool`.

Statements use ``$1``, ``$2``... placeholders throughout the package. SQLite
treats ``$1`` as a named parameter called ``1``, so positional values are
bound by name; the placeholder text and the value order stay those of the
statement builder.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Protocol, Sequence

import aiosqlite

from lightbnb.log import fmt_ctx, new_correlation_id

from .connection import ConnectionPool
from .results import QueryExecutionError

__all__ = ["QueryExecutor", "SQLiteExecutor", "bind_positional"]

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class QueryExecutor(Protocol):
    """Anything that can run a parameterized statement and return rows."""

    async def fetch(self, statement: str, params: Sequence[Any] = (), *, commit: bool = False) -> List[Row]:
        ...

    async def fetch_one(self, statement: str, params: Sequence[Any] = (), *, commit: bool = False) -> Optional[Row]:
        ...


def bind_positional(params: Sequence[Any]) -> Dict[str, Any]:
    """Map positional values onto the names SQLite gives ``$N`` placeholders."""
    return {str(index): value for index, value in enumerate(params, start=1)}


class SQLiteExecutor:
    """Runs statements on connections borrowed from a pool."""

    def __init__(self, pool: ConnectionPool) -> None:
        self.pool = pool

    async def fetch(self, statement: str, params: Sequence[Any] = (), *, commit: bool = False) -> List[Row]:
        """Execute *statement* with *params* and return every row as a dict.

        With ``commit=True`` the rows (e.g. from ``RETURNING``) are read before
        the transaction is committed.
        """
        ctx = {"correlation_id": new_correlation_id(), "params": len(params)}
        logger.debug("Executing %s statement=%s values=%r", fmt_ctx(ctx), " ".join(statement.split()), list(params))

        start_time = time.monotonic()
        try:
            async with self.pool.acquire() as conn:
                try:
                    cursor = await conn.execute(statement, bind_positional(params))
                    rows = await cursor.fetchall()
                    await cursor.close()
                    if commit:
                        await conn.commit()
                except aiosqlite.Error:
                    if commit:
                        await conn.rollback()
                    raise
        except (aiosqlite.Error, OverflowError, RuntimeError) as e:
            raise QueryExecutionError(str(e), statement, params) from e

        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        logger.debug("Statement finished rows=%d execution_time_ms=%d", len(rows), elapsed_ms)
        return [dict(row) for row in rows]

    async def fetch_one(self, statement: str, params: Sequence[Any] = (), *, commit: bool = False) -> Optional[Row]:
        """Execute *statement* and return its first row, or None."""
        rows = await self.fetch(statement, params, commit=commit)
        return rows[0] if rows else None
