"""
Fixtures for API integration tests.

Records are created through the HTTP API as staff so every test exercises
the same path a real caller would.
"""

import pytest

from tests.factories.api_seeder import ApiSeeder


@pytest.fixture
def seed(client, staff_headers) -> ApiSeeder:
    return ApiSeeder(client, staff_headers)
