# =============================================================================
# tests/test_exceptions.py - Exception Tests
# =============================================================================

from fastapi import APIRouter
from fastapi.testclient import TestClient

from app.exceptions import (
    AccessDeniedError,
    BackendException,
    ConfigurationError,
    ConnectionStringNotFoundError,
)
from app.main import create_app
from app.routing import ApiRoute
from tests.conftest import BASE_URL


class TestBackendException:
    """Structured error payloads."""

    def test_to_dict(self):
        exc = BackendException("Boom", code="BOOM", status_code=418, suggestion="Try tea", details={"x": 1})

        assert exc.to_dict() == {"detail": "Boom", "code": "BOOM", "suggestion": "Try tea", "details": {"x": 1}}

    def test_to_dict_minimal(self):
        assert AccessDeniedError().to_dict() == {"detail": "Access denied", "code": "FORBIDDEN"}

    def test_str_includes_suggestion(self):
        text = str(ConnectionStringNotFoundError("AppDbContext"))

        assert text.startswith("[CONNECTION_STRING_NOT_FOUND] Connection string 'AppDbContext' not found.")
        assert "ConnectionStrings__AppDbContext" in text

    def test_configuration_errors_are_backend_exceptions(self):
        assert issubclass(ConnectionStringNotFoundError, ConfigurationError)
        assert issubclass(ConfigurationError, BackendException)


class TestHandlers:
    """Exception handlers registered by create_app()."""

    def test_backend_exception_response(self, settings):
        router = APIRouter(route_class=ApiRoute)

        @router.get("/teapot")
        async def teapot():
            raise BackendException("I'm a teapot", code="TEAPOT", status_code=418)

        client = TestClient(create_app(settings, routers=[router]), base_url=BASE_URL)

        response = client.get("/teapot")

        assert response.status_code == 418
        assert response.json() == {"detail": "I'm a teapot", "code": "TEAPOT"}

    def test_unexpected_exception_hidden(self, settings):
        router = APIRouter(route_class=ApiRoute)

        @router.get("/explode")
        async def explode():
            raise RuntimeError("database password is hunter2")

        client = TestClient(create_app(settings, routers=[router]), base_url=BASE_URL, raise_server_exceptions=False)

        response = client.get("/explode")

        assert response.status_code == 500
        assert response.json() == {"detail": "An unexpected error occurred", "code": "INTERNAL_ERROR"}
