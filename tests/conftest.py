"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A small referral registry and resolver
- A PostgreSQL connection pool for integration and adversarial tests
  (skipped when the database is unreachable)
"""

from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool, PoolTimeout

from src.adapters.repository.postgres import run_migrations
from src.config.settings import get_settings
from src.domain.referrals import ReferralRegistry, ReferralResolver
from tests.factories import REFERRAL_CODES


@pytest.fixture
def registry() -> ReferralRegistry:
    return ReferralRegistry.from_mapping(REFERRAL_CODES)


@pytest.fixture
def resolver(registry: ReferralRegistry) -> ReferralResolver:
    return ReferralResolver(registry, suggestion_limit=3, max_distance=2)


@pytest.fixture(scope="session")
def pool() -> Generator[ConnectionPool, None, None]:
    """Connection pool against DATABASE_URL with migrations applied."""
    settings = get_settings()
    pool = ConnectionPool(conninfo=settings.database_url, min_size=1, max_size=20, open=True)
    try:
        pool.wait(timeout=3.0)
    except PoolTimeout:
        pool.close()
        pytest.skip(f"PostgreSQL not reachable at {settings.database_url}")
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Empty the registrations table before a test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM registrations")
        conn.commit()
    yield
