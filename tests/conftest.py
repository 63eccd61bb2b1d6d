# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Clears configuration environment variables so tests are deterministic
# - Builds AppSettings directly (no settings files needed)
# - Provides a sample "controller" router and a TestClient over HTTPS
# =============================================================================

from enum import Enum, IntEnum

import pytest
from fastapi import APIRouter, Depends, Request, Response
from fastapi.testclient import TestClient

from app.auth import (
    AuthorizationPolicies,
    AuthorizationPolicy,
    AuthUser,
    authorize,
    get_cookie_auth,
    get_current_user,
)
from app.config import AppSettings
from app.main import create_app
from app.routing import ApiRoute
from app.serialization import ApiModel
from lib.database import AppDbContext, get_db_context

ORIGIN = "https://app.example.com"
OTHER_ORIGIN = "https://admin.example.com"
CONNECTION_STRING = "Host=db;Database=app;Username=app;Password=secret"
SECRET_KEY = "test-secret-key-0123456789"
BASE_URL = "https://testserver"

CONFIG_ENV_VARS = [
    "ENVIRONMENT",
    "DEBUG",
    "SECRET_KEY",
    "CorsUrls",
    "CORSURLS",
    "CORS_URLS",
    "ConnectionStrings",
    "CONNECTIONSTRINGS",
    "ConnectionStrings__AppDbContext",
    "CONNECTIONSTRINGS__APPDBCONTEXT",
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Remove configuration env vars inherited from the developer's shell."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# =============================================================================
# Sample Controller
# =============================================================================

class Role(IntEnum):
    READER = 1
    ADMIN = 2


class AccountStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"


class Account(ApiModel):
    id: int
    role: Role
    status: AccountStatus
    previous_roles: list[Role] = []


class LoginRequest(ApiModel):
    user_id: str
    roles: list[str] = []


sample_router = APIRouter(prefix="/api", route_class=ApiRoute)


@sample_router.post("/login")
async def login(body: LoginRequest, request: Request, response: Response):
    user = AuthUser(id=body.user_id, roles=frozenset(body.roles))
    get_cookie_auth(request).sign_in(request, response, user)
    return {"signed_in": user.id}


@sample_router.post("/logout")
async def logout(request: Request, response: Response):
    get_cookie_auth(request).sign_out(request, response)
    return {"signed_out": True}


@sample_router.get("/accounts/me", response_model=Account)
async def my_account(user: AuthUser = Depends(get_current_user)):
    return Account(
        id=int(user.id),
        role=Role.ADMIN if user.is_in_role("Admin") else Role.READER,
        status=AccountStatus.ACTIVE,
        previous_roles=[Role.READER],
    )


@sample_router.post("/accounts/echo", response_model=Account)
async def echo_account(account: Account):
    return account


@sample_router.get("/admin/reports", dependencies=[Depends(authorize("AdminOnly"))])
async def admin_reports():
    return {"reports": []}


@sample_router.get("/db")
def db_info(db: AppDbContext = Depends(get_db_context)):
    return {"context": type(db).__name__, "connection_string": db.connection_string}


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def make_settings():
    """Factory for AppSettings with sensible test defaults."""

    def _make(**overrides) -> AppSettings:
        values = {
            "ENVIRONMENT": "production",
            "SECRET_KEY": SECRET_KEY,
            "CORS_URLS": [ORIGIN, OTHER_ORIGIN],
            "CONNECTION_STRINGS": {"AppDbContext": CONNECTION_STRING},
        }
        values.update(overrides)
        return AppSettings(**values)

    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture
def policies():
    return AuthorizationPolicies([AuthorizationPolicy(name="AdminOnly", roles=frozenset({"Admin"}))])


@pytest.fixture
def make_client(make_settings, policies):
    """Factory for a TestClient over HTTPS; keyword args override settings."""

    def _make(**overrides) -> TestClient:
        app = create_app(make_settings(**overrides), routers=[sample_router], policies=policies)
        return TestClient(app, base_url=BASE_URL)

    return _make


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def sign_in():
    """Sign in through the sample login endpoint; the client keeps the cookie."""

    def _sign_in(client: TestClient, user_id: str = "42", roles: list[str] | None = None):
        response = client.post("/api/login", json={"user_id": user_id, "roles": roles or []})
        assert response.status_code == 200
        return response

    return _sign_in
