"""Async SQLite connection pool with schema bootstrap.

Wraps `aiosqlite` connections, initializes the LightBnB schema on first start
and hands out connections from a fixed-size queue. The pool is an explicit
object: open it at process start, close it at shutdown, and pass it to
whatever executes statements.
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, List, Optional

import aiosqlite

from lightbnb.config import DatabaseSettings, get_settings

CURRENT_SCHEMA_VERSION = 1

logger = logging.getLogger(__name__)

BUILTIN_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name VARCHAR(255) NOT NULL,
    email VARCHAR(255) NOT NULL UNIQUE,
    password VARCHAR(255) NOT NULL
);

CREATE TABLE IF NOT EXISTS properties (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id INTEGER NOT NULL,
    title VARCHAR(255) NOT NULL,
    description TEXT,
    thumbnail_photo_url VARCHAR(255),
    cover_photo_url VARCHAR(255),
    cost_per_night INTEGER NOT NULL DEFAULT 0,
    parking_spaces INTEGER NOT NULL DEFAULT 0,
    number_of_bathrooms INTEGER NOT NULL DEFAULT 0,
    number_of_bedrooms INTEGER NOT NULL DEFAULT 0,
    country VARCHAR(255) NOT NULL,
    street VARCHAR(255) NOT NULL,
    city VARCHAR(255) NOT NULL,
    province VARCHAR(255) NOT NULL,
    post_code VARCHAR(255) NOT NULL,
    active BOOLEAN NOT NULL DEFAULT TRUE,
    FOREIGN KEY (owner_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS reservations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    start_date DATE NOT NULL,
    end_date DATE NOT NULL,
    property_id INTEGER NOT NULL,
    guest_id INTEGER NOT NULL,
    FOREIGN KEY (property_id) REFERENCES properties(id) ON DELETE CASCADE,
    FOREIGN KEY (guest_id) REFERENCES users(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS property_reviews (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    guest_id INTEGER NOT NULL,
    property_id INTEGER NOT NULL,
    reservation_id INTEGER NOT NULL,
    rating SMALLINT NOT NULL DEFAULT 0 CHECK (rating BETWEEN 0 AND 5),
    message TEXT,
    FOREIGN KEY (guest_id) REFERENCES users(id) ON DELETE CASCADE,
    FOREIGN KEY (property_id) REFERENCES properties(id) ON DELETE CASCADE,
    FOREIGN KEY (reservation_id) REFERENCES reservations(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_properties_city ON properties (city);
CREATE INDEX IF NOT EXISTS idx_properties_owner_id ON properties (owner_id);
CREATE INDEX IF NOT EXISTS idx_reviews_property_id ON property_reviews (property_id);
CREATE INDEX IF NOT EXISTS idx_reservations_guest_id ON reservations (guest_id);
"""


class ConnectionPool:
    """Fixed-size pool of `aiosqlite` connections.

    Usage:
        pool = ConnectionPool(settings.db)
        await pool.open()
        async with pool.acquire() as conn:
            await conn.execute(...)
        await pool.close()
    """

    def __init__(self, settings: DatabaseSettings) -> None:
        self.path = settings.path
        self.size = settings.pool_size
        self.timeout = settings.pool_timeout
        self.schema_file: Optional[Path] = Path(settings.schema_file) if settings.schema_file else None
        self._queue: Optional[asyncio.Queue[aiosqlite.Connection]] = None
        self._connections: List[aiosqlite.Connection] = []
        self._lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._queue is not None

    @property
    def in_memory(self) -> bool:
        return self.path == ":memory:"

    async def __aenter__(self) -> "ConnectionPool":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _connect(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.path, timeout=self.timeout, cached_statements=128)
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA foreign_keys = ON;")
        await conn.commit()
        return conn

    def _schema_sql(self) -> str:
        if self.schema_file is not None and self.schema_file.exists():
            logger.info("Applying initial schema from %s", self.schema_file)
            return self.schema_file.read_text(encoding="utf-8")
        logger.info("Applying built-in schema")
        return BUILTIN_SCHEMA

    async def _initialize_schema(self, conn: aiosqlite.Connection) -> None:
        """Create the schema if the database is new and record its version."""
        cursor = await conn.execute("PRAGMA user_version;")
        row = await cursor.fetchone()
        current_version = row[0] if row else 0

        if current_version == 0:
            await conn.executescript(self._schema_sql())
            await conn.execute(f"PRAGMA user_version = {CURRENT_SCHEMA_VERSION};")
            await conn.commit()
            logger.info("Schema applied, version set to %d", CURRENT_SCHEMA_VERSION)
        elif current_version < CURRENT_SCHEMA_VERSION:
            logger.info(
                "Upgrading schema from version %d to %d",
                current_version,
                CURRENT_SCHEMA_VERSION,
            )
            await conn.execute(f"PRAGMA user_version = {CURRENT_SCHEMA_VERSION};")
            await conn.commit()
        else:
            logger.info("Database schema is up-to-date (version %d)", current_version)

    async def open(self) -> None:
        """Open the connections and make sure the schema exists."""
        async with self._lock:
            if self._queue is not None:
                return

            # ":memory:" gives every connection its own empty database, so the
            # pool shares a single connection between all of its slots.
            if self.in_memory:
                conn = await self._connect()
                await self._initialize_schema(conn)
                queue: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue(maxsize=self.size)
                for _ in range(self.size):
                    await queue.put(conn)
                self._connections = [conn]
                self._queue = queue
                logger.info(
                    "Connection pool initialized with a shared in-memory connection (capacity: %d)",
                    self.size,
                )
                return

            connections: List[aiosqlite.Connection] = []
            try:
                first = await self._connect()
                connections.append(first)
                await self._initialize_schema(first)
                for i in range(1, self.size):
                    connections.append(await self._connect())
                    logger.debug("Opened connection %d/%d", i + 1, self.size)
            except Exception as e:
                logger.exception("Error opening database connection [%d]: %s", len(connections) + 1, e)
                for conn in connections:
                    await conn.close()
                raise

            queue = asyncio.Queue(maxsize=self.size)
            for conn in connections:
                await queue.put(conn)
            self._connections = connections
            self._queue = queue
            logger.info("Connection pool initialized with size %d", self.size)

    async def _replace(self, conn: aiosqlite.Connection) -> aiosqlite.Connection:
        """Swap a broken connection for a fresh one."""
        new_conn = await self._connect()
        self._connections = [new_conn if c is conn else c for c in self._connections]
        try:
            await conn.close()
        except (aiosqlite.Error, ValueError) as exc:  # pragma: no cover - cleanup best effort
            logger.warning("Error closing broken DB connection: %s", exc)
        return new_conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Acquire a connection from the pool.

        Usage:
            async with pool.acquire() as conn:
                await conn.execute(...)
                await conn.commit()
        """
        queue = self._queue
        if queue is None:
            raise RuntimeError("Connection pool is not open")
        try:
            conn = await asyncio.wait_for(queue.get(), timeout=self.timeout)
            logger.debug("Acquired database connection from pool")
        except asyncio.TimeoutError:
            logger.error("Timed out waiting for database connection")
            raise RuntimeError("Database connection timeout")

        # The shared in-memory connection holds the whole database; never replace it.
        if not self.in_memory:
            try:
                await conn.execute("SELECT 1;")
            except (aiosqlite.Error, ValueError) as e:
                logger.warning("Database connection is invalid, recreating new connection: %s", e)
                try:
                    conn = await self._replace(conn)
                except aiosqlite.Error:
                    await queue.put(conn)
                    raise

        start_time = time.monotonic()
        try:
            yield conn
        finally:
            elapsed = time.monotonic() - start_time
            logger.debug("Database connection held for %.3f seconds", elapsed)
            await queue.put(conn)
            logger.debug("Returned database connection to pool")

    async def close(self) -> None:
        """Close all connections and reset the pool."""
        if self._queue is None:
            return

        for conn in self._connections:
            try:
                await conn.close()
            except aiosqlite.Error as exc:  # pragma: no cover - cleanup best effort
                logger.warning("Error closing DB connection: %s", exc)

        self._queue = None
        self._connections = []
        logger.info("Database connection pool closed")


def create_pool(settings: Optional[DatabaseSettings] = None) -> ConnectionPool:
    """Create an unopened pool from *settings*, defaulting to the application settings."""
    return ConnectionPool(settings if settings is not None else get_settings().db)
