"""
Pytest configuration and fixtures for the back-office API tests.

Every test gets a fresh application on an in-memory SQLite database.
"""

import pytest

from backoffice_app import create_app
from viomar_shared.db import dispose_engine, get_session
from viomar_shared.jwt_service import create_access_token
from viomar_shared.models import Supplier
from viomar_shared.services.role_service import grant_by_name

TEST_SECRET = "pytest-only-secret-key-0123456789abcdef"


@pytest.fixture()
def app():
    """Create Flask application for testing"""
    dispose_engine()
    app = create_app(
        {
            "TESTING": True,
            "DATABASE_URL": "sqlite://",
            "SECRET_KEY": TEST_SECRET,
            "RATELIMIT_ENABLED": False,
            "WTF_CSRF_ENABLED": False,
        }
    )

    with app.app_context():
        yield app

    dispose_engine()


@pytest.fixture()
def client(app):
    """Create Flask test client"""
    return app.test_client()


@pytest.fixture()
def make_token(app):
    def _make(role, user_id=1, name="Tester", **kwargs):
        return create_access_token(user_id, name, role, **kwargs)

    return _make


@pytest.fixture()
def auth_headers(make_token):
    """Bearer headers for a token carrying ``role``."""

    def _headers(role, **kwargs):
        return {"Authorization": f"Bearer {make_token(role, **kwargs)}"}

    return _headers


@pytest.fixture()
def admin_headers(auth_headers):
    return auth_headers("ADMINISTRADOR")


@pytest.fixture()
def grant(app):
    """Grant permissions to a role by name."""

    def _grant(role, *permission_names):
        with get_session() as session:
            grant_by_name(session, role, permission_names)

    return _grant


@pytest.fixture()
def supplier_id(app):
    with get_session() as session:
        supplier = Supplier(name="Telas del Norte", identification="900123")
        session.add(supplier)
        session.flush()
        return supplier.id
