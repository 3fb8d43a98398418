"""
Shared fixtures for integration tests that need PostgreSQL.

Tests that only touch the app object (OpenAPI, request parsing) do not
request these and run without a database.
"""

import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresRegistrationRepository
from src.domain.validation import PayloadValidator


@pytest.fixture
def repository(pool: ConnectionPool, clean_database: None) -> PostgresRegistrationRepository:
    """Repository over an empty registrations table."""
    return PostgresRegistrationRepository(pool)


@pytest.fixture(scope="session")
def validator() -> PayloadValidator:
    return PayloadValidator()
