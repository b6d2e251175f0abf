"""
Central pytest configuration for the veterinary clinic tests.

This file provides test markers, key material and the Flask application
fixtures shared by unit and integration tests.
"""

from typing import Callable, Dict, Optional

import pytest

from vetclinic.core.config import AppConfig
from vetclinic.core.extensions import EXTENSION_KEY
from vetclinic.core.security import TokenService, generate_rsa_key_pair
from vetclinic.db.base import Client as DbClient
from vetclinic.db.base import Veterinarian as DbVeterinarian
from vetclinic.domain.entities import Principal, Role, UserAccount
from vetclinic.main import create_app
from vetclinic.repositories.user_repo import UserRepository


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "auth: mark test as authentication-related")
    config.addinivalue_line("markers", "security: mark test as security-related")
    config.addinivalue_line("markers", "api: mark test as API endpoint test")
    config.addinivalue_line("markers", "controllers: mark test as controller-related")
    config.addinivalue_line("markers", "services: mark test as service layer test")
    config.addinivalue_line("markers", "repositories: mark test as repository test")
    config.addinivalue_line("markers", "database: mark test as database-related")
    config.addinivalue_line("markers", "appointment: mark test as appointment-related")
    config.addinivalue_line("markers", "treatment: mark test as treatment-related")
    config.addinivalue_line("markers", "client: mark test as client-related")
    config.addinivalue_line("markers", "pet: mark test as pet-related")
    config.addinivalue_line(
        "markers", "veterinarian: mark test as veterinarian-related"
    )
    config.addinivalue_line("markers", "validation: mark test as input validation")
    config.addinivalue_line("markers", "search: mark test as search/pagination test")


def pytest_collection_modifyitems(config, items):
    """Add markers based on test file location."""
    for item in items:
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        if "integration" in path:
            item.add_marker(pytest.mark.integration)
        if "auth" in path or "auth" in item.name:
            item.add_marker(pytest.mark.auth)


# =====================================================
# KEYS AND TOKENS
# =====================================================


@pytest.fixture(scope="session")
def rsa_keys():
    """One RSA key pair for the whole run; generation is slow."""
    return generate_rsa_key_pair()


@pytest.fixture
def token_service(rsa_keys) -> TokenService:
    private_pem, public_pem = rsa_keys
    return TokenService(private_pem, public_pem, expiration_hours=24)


@pytest.fixture
def staff_principal() -> Principal:
    return Principal(email="vet@clinic.test", role=Role.STAFF, veterinarian_id=1)


@pytest.fixture
def owner_principal() -> Principal:
    return Principal(email="owner@clinic.test", role=Role.OWNER, client_id=1)


# =====================================================
# APPLICATION FIXTURES
# =====================================================


@pytest.fixture
def app_config(tmp_path, rsa_keys) -> AppConfig:
    """Test configuration: file-backed SQLite in a temp dir, no rate limits."""
    private_pem, public_pem = rsa_keys
    return AppConfig(
        database_url=f"sqlite:///{tmp_path / 'vetclinic_test.db'}",
        environment="testing",
        secret_key="test-secret-key",
        jwt_private_key=private_pem,
        jwt_public_key=public_pem,
        image_storage_dir=str(tmp_path / "images"),
        log_level="WARNING",
        rate_limit_enabled=False,
        testing=True,
    )


@pytest.fixture
def app(app_config):
    """Create and configure a Flask app for testing."""
    flask_app = create_app(app_config)
    yield flask_app
    flask_app.extensions[EXTENSION_KEY].database.dispose()


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def auth_headers(app) -> Callable[..., Dict[str, str]]:
    """Build Authorization headers for an arbitrary principal.

    The login account is stored too, since every request re-reads it. A
    client or veterinarian id is only linked when that record exists.

    Usage:
        headers = auth_headers(Role.OWNER, client_id=3)
    """
    services = app.extensions[EXTENSION_KEY]

    def _make(
        role: Role = Role.STAFF,
        client_id: Optional[int] = None,
        veterinarian_id: Optional[int] = None,
        email: Optional[str] = None,
    ) -> Dict[str, str]:
        email = email or f"{role.value.lower()}-{client_id or veterinarian_id or 0}@clinic.test"
        db = services.database.session()
        try:
            users = UserRepository(db)
            account = users.get_by_email(email)
            if account is None:
                account = users.create(
                    UserAccount(
                        email=email,
                        password_hash="!",
                        role=role,
                        client_id=client_id if db.get(DbClient, client_id or 0) else None,
                        veterinarian_id=(
                            veterinarian_id
                            if db.get(DbVeterinarian, veterinarian_id or 0)
                            else None
                        ),
                    )
                )
                db.commit()
        finally:
            db.close()
        token = services.token_service.issue(account.to_principal())
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def staff_headers(auth_headers) -> Dict[str, str]:
    return auth_headers(Role.STAFF, veterinarian_id=1, email="staff@clinic.test")
