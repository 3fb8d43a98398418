"""
Shared fixtures for adversarial tests.

Every adversarial test runs against a real database with an empty
registrations table.
"""

from collections.abc import Generator

import pytest

# Module-level marker for all adversarial tests
pytestmark = pytest.mark.adversarial


@pytest.fixture(autouse=True)
def _empty_registrations(clean_database: None) -> Generator[None, None, None]:
    yield
