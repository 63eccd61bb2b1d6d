# =============================================================================
# app/middleware.py - Request Pipeline
# =============================================================================
# Builds the middleware stack in its fixed order (outermost first):
#
#   1. HTTPS redirection
#   2. CORS (explicit origins, any method/header, credentials)
#   3. Cookie authentication (sets request.user)
#   -> routing -> authorization dependencies -> endpoint
#
# Authorization is not middleware: it runs as route dependencies, after
# the router has matched the endpoint.
# =============================================================================

import logging
from typing import Iterable

from starlette.middleware import Middleware
from starlette.middleware.authentication import AuthenticationMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware

from app.auth.cookies import CookieAuthBackend, CookieAuthentication
from app.config import AppSettings
from app.exceptions import CorsConfigurationError

logger = logging.getLogger(__name__)


def validate_cors_origins(origins: Iterable[str] | None) -> list[str]:
    """
    Check the configured origins and return them cleaned.

    Raises:
        CorsConfigurationError: If no origins are configured, a wildcard is
            used (not allowed with credentials), or an entry is not an
            http(s) origin
    """
    cleaned = [origin.strip().rstrip("/") for origin in (origins or []) if origin and origin.strip()]
    if not cleaned:
        raise CorsConfigurationError("CorsUrls is not configured")
    if "*" in cleaned:
        raise CorsConfigurationError("CorsUrls may not contain '*' when credentials are allowed", cleaned)

    invalid = [origin for origin in cleaned if not origin.startswith(("http://", "https://"))]
    if invalid:
        raise CorsConfigurationError(f"Invalid CORS origin(s): {', '.join(invalid)}", cleaned)
    return cleaned


def build_middleware(settings: AppSettings, cookie_auth: CookieAuthentication) -> list[Middleware]:
    """Return the middleware stack, outermost first."""
    origins = validate_cors_origins(settings.CORS_URLS)
    logger.info(f"CORS origins: {origins}")

    return [
        Middleware(HTTPSRedirectMiddleware),
        Middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        ),
        Middleware(AuthenticationMiddleware, backend=CookieAuthBackend(cookie_auth)),
    ]
