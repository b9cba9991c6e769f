import os
import sys

# Put the repository root on sys.path so the habit_tracker package imports
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("TIMEZONE", "UTC")

import pytest
import pytest_asyncio
from sqlalchemy.pool import StaticPool

from habit_tracker.db import Database


def make_database() -> Database:
    # One shared in-memory connection so every session sees the same tables
    return Database(
        "sqlite+aiosqlite:///:memory:",
        retries=1,
        backoff_seconds=0,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


@pytest.fixture
def database() -> Database:
    return make_database()


@pytest_asyncio.fixture
async def db_session(database):
    await database.connect()
    async with database.session() as session:
        yield session
    await database.dispose()
