"""
Shared test configuration and fixtures for passport tests.

Provides PostgreSQL database setup, session management and sample users used
across the model and store test files. Database backed tests skip when no
PostgreSQL server is reachable.
"""

import os
import uuid
from types import SimpleNamespace
import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from social.graze.passport.model.base import Base
from social.graze.passport.model.user import User
from tests.test_helpers import generate_test_datetime, generate_ulid_string


# Test database configuration
TEST_DB_HOST = os.getenv("TEST_DB_HOST", "postgres")
TEST_DB_PORT = os.getenv("TEST_DB_PORT", "5432")
TEST_DB_USER = os.getenv("TEST_DB_USER", "postgres")
TEST_DB_PASSWORD = os.getenv("TEST_DB_PASSWORD", "password")

# Admin URL for database creation/deletion (connects to postgres database)
ADMIN_DATABASE_URL = f"postgresql+asyncpg://{TEST_DB_USER}:{TEST_DB_PASSWORD}@{TEST_DB_HOST}:{TEST_DB_PORT}/postgres"


async def check_postgres_available():
    """Check if PostgreSQL is available for testing."""
    try:
        admin_engine = create_async_engine(ADMIN_DATABASE_URL, echo=False)
        async with admin_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        await admin_engine.dispose()
        return True
    except Exception:
        return False


@pytest_asyncio.fixture(scope="function")
async def test_database():
    """Create and clean up test database for each test function."""
    if not await check_postgres_available():
        pytest.skip("PostgreSQL database not available for testing")

    # Use a unique database name for each test to avoid conflicts
    unique_db_name = f"passport_test_{uuid.uuid4().hex[:8]}"
    unique_db_url = (
        f"postgresql+asyncpg://{TEST_DB_USER}:{TEST_DB_PASSWORD}@"
        f"{TEST_DB_HOST}:{TEST_DB_PORT}/{unique_db_name}"
    )

    admin_engine = create_async_engine(
        ADMIN_DATABASE_URL, echo=False, isolation_level="AUTOCOMMIT"
    )

    try:
        async with admin_engine.connect() as conn:
            await conn.execute(text(f"CREATE DATABASE {unique_db_name}"))

        yield unique_db_url

    finally:
        async with admin_engine.connect() as conn:
            await conn.execute(text(f"DROP DATABASE IF EXISTS {unique_db_name}"))
        await admin_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def engine(test_database):
    """Create async SQLAlchemy engine with all tables created."""
    engine = create_async_engine(test_database, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_maker(engine):
    """Session factory configured the way the application configures it."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def session(session_maker):
    """Create async database session for testing."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def user(session_maker):
    """A persisted user that passports can belong to."""
    record = User(
        id=generate_ulid_string(),
        email=f"{uuid.uuid4().hex[:8]}@example.com",
        username="tester",
        created_at=generate_test_datetime(),
    )
    async with session_maker() as session:
        session.add(record)
        await session.commit()
    return record


@pytest.fixture
def detached_user():
    """A user-like object that exists only in memory."""
    return SimpleNamespace(id=generate_ulid_string())
