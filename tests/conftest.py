"""
This file contains shared fixtures for the test suite.
"""

import os

import pytest
import pytest_asyncio

# Set env vars before any application modules are imported
os.environ.setdefault("TEST_MODE", "1")
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("PYTHONIOENCODING", "utf-8")

from lightbnb.config import DatabaseSettings, get_settings  # noqa: E402
from lightbnb.db.connection import ConnectionPool  # noqa: E402
from lightbnb.db.executor import SQLiteExecutor  # noqa: E402

USERS = [
    (1, "Alice Owner", "alice@example.com", "secret"),
    (2, "Bob Host", "bob@example.com", "secret"),
    (3, "Carol Guest", "carol@example.com", "secret"),
]

# id, owner_id, title, cost_per_night (cents), city, province, bedrooms, bathrooms
PROPERTIES = [
    (1, 1, "Speed lamp", 9300, "Vancouver", "BC", 3, 2),
    (2, 1, "Blank corner", 5000, "Vancouver", "BC", 1, 1),
    (3, 2, "Habit mix", 12000, "Calgary", "AB", 4, 3),
    (4, 2, "Headed know", 7500, "North Vancouver", "BC", 2, 1),
    (5, 3, "Unreviewed loft", 4000, "Vancouver", "BC", 1, 1),
]

# id, start_date, end_date, property_id, guest_id
RESERVATIONS = [
    (1, "2018-09-11", "2018-09-26", 1, 3),
    (2, "2019-01-04", "2019-02-01", 2, 3),
    (3, "2021-10-01", "2021-10-14", 3, 3),
    (4, "2020-03-01", "2020-03-05", 4, 2),
    (5, "2099-01-01", "2099-01-10", 1, 3),
]

# guest_id, property_id, reservation_id, rating
REVIEWS = [
    (3, 1, 1, 5),
    (3, 1, 5, 4),
    (3, 2, 2, 3),
    (3, 3, 3, 4),
    (3, 3, 3, 5),
    (2, 4, 4, 2),
]


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Make every test see settings built from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def db_settings() -> DatabaseSettings:
    return DatabaseSettings(path=":memory:", pool_size=2, pool_timeout=1.0)


@pytest_asyncio.fixture
async def pool(db_settings):
    """An open in-memory pool with the bootstrap schema and no rows."""
    pool = ConnectionPool(db_settings)
    await pool.open()
    yield pool
    await pool.close()


@pytest_asyncio.fixture
async def seeded_pool(pool):
    """The in-memory pool filled with a small, fixed marketplace."""
    async with pool.acquire() as conn:
        await conn.executemany(
            "INSERT INTO users (id, name, email, password) VALUES (?, ?, ?, ?)",
            USERS,
        )
        await conn.executemany(
            """
            INSERT INTO properties (
                id, owner_id, title, cost_per_night, city, province,
                number_of_bedrooms, number_of_bathrooms, country, street, post_code
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, 'Canada', '1 Main St', 'V1V 1V1')
            """,
            PROPERTIES,
        )
        await conn.executemany(
            "INSERT INTO reservations (id, start_date, end_date, property_id, guest_id) VALUES (?, ?, ?, ?, ?)",
            RESERVATIONS,
        )
        await conn.executemany(
            "INSERT INTO property_reviews (guest_id, property_id, reservation_id, rating) VALUES (?, ?, ?, ?)",
            REVIEWS,
        )
        await conn.commit()
    return pool


@pytest.fixture
def executor(seeded_pool) -> SQLiteExecutor:
    return SQLiteExecutor(seeded_pool)
