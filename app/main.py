# =============================================================================
# app/main.py - FastAPI Application Factory
# =============================================================================
# Assembles the API host from an AppSettings value:
# - service registrations (cookie auth, authorization policies, external
#   hooks, database context)
# - middleware pipeline (see app/middleware.py)
# - API documentation (development only)
# - exception handlers and routers
#
# Controllers are supplied by the caller as APIRouters.
#
# Usage:
#   poetry run uvicorn app.main:create_app --factory --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager
from typing import Any, Callable, Iterable, Optional

from fastapi import APIRouter, FastAPI

from app.auth import AuthorizationPolicies, CookieAuthentication, CookieAuthOptions
from app.config import AppSettings, load_settings, validate_secret_key
from app.docs import API_TITLE, api_metadata, documentation_options
from app.exceptions import (
    BackendException,
    backend_exception_handler,
    unhandled_exception_handler,
)
from app.middleware import build_middleware
from app.routers import health
from app.routing import ApiRoute, validate_routes
from lib.database import configure_database, dispose_database

logger = logging.getLogger(__name__)

# A registration hook receives the app and the settings, e.g. to put
# service objects on app.state or include routers.
Registration = Callable[[FastAPI, AppSettings], None]


def configure_logging(settings: AppSettings) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    - Startup: log the effective configuration
    - Shutdown: dispose of the database engine
    """
    settings: AppSettings = app.state.settings
    logger.info(f"Starting {API_TITLE} in {settings.ENVIRONMENT} mode")
    logger.info(f"API documentation {'enabled' if settings.is_development else 'disabled'}")

    yield

    logger.info(f"Shutting down {API_TITLE}")
    dispose_database(app)


def create_app(
    settings: Optional[AppSettings] = None,
    *,
    routers: Iterable[APIRouter] = (),
    registrations: Iterable[Registration] = (),
    cookie_options: Optional[CookieAuthOptions] = None,
    policies: Optional[AuthorizationPolicies] = None,
    **fastapi_kwargs: Any,
) -> FastAPI:
    """
    Build the API host.

    Args:
        settings: Loaded settings (default: load_settings() from the cwd)
        routers: Controller routers to mount
        registrations: Hooks for core and data-access services, run in order
        cookie_options: Cookie authentication policy (default: strict cookie,
            401/403 status codes)
        policies: Authorization policies (default: "Authenticated" only)

    Returns:
        FastAPI: The configured application

    Raises:
        ConfigurationError: If CORS origins or the database connection
            string are missing or invalid, the default SECRET_KEY is used
            outside development, or a route fails validate_routes()
    """
    if settings is None:
        settings = load_settings()
    configure_logging(settings)
    validate_secret_key(settings)

    cookie_auth = CookieAuthentication(settings.SECRET_KEY, cookie_options)
    middleware = build_middleware(settings, cookie_auth)

    app = FastAPI(
        **api_metadata(),
        lifespan=lifespan,
        middleware=middleware,
        **documentation_options(settings),
        **fastapi_kwargs,
    )

    # -------------------------------------------------------------------------
    # Services
    # -------------------------------------------------------------------------

    app.state.settings = settings
    app.state.cookie_auth = cookie_auth
    app.state.authorization_policies = policies or AuthorizationPolicies()
    # Routes added with @app.get(...) in registrations
    app.router.route_class = ApiRoute

    for register in registrations:
        register(app, settings)
    configure_database(app, settings)

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------

    app.add_exception_handler(BackendException, backend_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # -------------------------------------------------------------------------
    # Routers
    # -------------------------------------------------------------------------

    app.include_router(health.router, tags=["Health"])
    for router in routers:
        app.include_router(router)
    validate_routes(app)

    return app
