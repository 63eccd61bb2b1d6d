# =============================================================================
# app/exceptions.py - Exceptions and Exception Handlers
# =============================================================================
# Centralized error types for the API host.
#
# Two families:
# - ConfigurationError: raised while the host is being assembled. These are
#   fatal; nothing catches them and the process never starts serving.
# - Request errors (401/403): raised by auth dependencies and converted to
#   plain JSON status responses, never to redirects.
# =============================================================================

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class BackendException(Exception):
    """
    Base exception for the backend host.

    Carries everything needed to build a structured error response,
    including an actionable suggestion where one exists.
    """

    def __init__(
        self,
        message: str,
        code: str = "BACKEND_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


# =============================================================================
# Configuration Exceptions (startup-time, fatal)
# =============================================================================

class ConfigurationError(BackendException):
    """Raised when the host cannot be assembled from the loaded settings."""

    def __init__(
        self,
        message: str,
        code: str = "CONFIGURATION_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=500,
            suggestion=suggestion,
            details=details,
        )


class SettingsFileNotFoundError(ConfigurationError):
    """Raised when a required settings file does not exist."""

    def __init__(self, path: str):
        super().__init__(
            message=f"Required settings file not found: {path}",
            code="SETTINGS_FILE_NOT_FOUND",
            suggestion="Run from the directory that contains appsettings.json",
            details={"path": path},
        )


class InvalidSettingsFileError(ConfigurationError):
    """Raised when a settings file exists but cannot be parsed."""

    def __init__(self, path: str, error: str):
        super().__init__(
            message=f"Settings file could not be parsed: {path}",
            code="INVALID_SETTINGS_FILE",
            suggestion="Check that the file contains a single JSON object",
            details={"path": path, "error": error},
        )


class ConnectionStringNotFoundError(ConfigurationError):
    """Raised when a named connection string is missing or blank."""

    def __init__(self, name: str):
        super().__init__(
            message=f"Connection string '{name}' not found.",
            code="CONNECTION_STRING_NOT_FOUND",
            suggestion=(
                f"Set ConnectionStrings:{name} in appsettings.json or the "
                f"ConnectionStrings__{name} environment variable"
            ),
            details={"name": name},
        )


class InvalidConnectionStringError(ConfigurationError):
    """Raised when a connection string cannot be turned into a database URL."""

    def __init__(self, name: str, error: str):
        super().__init__(
            message=f"Connection string '{name}' is invalid: {error}",
            code="INVALID_CONNECTION_STRING",
            suggestion="Use a postgresql:// URL or Host=...;Database=...;Username=... keywords",
            details={"name": name, "error": error},
        )


class CorsConfigurationError(ConfigurationError):
    """Raised when the allowed CORS origins are missing or unusable."""

    def __init__(self, message: str, origins: list[str] | None = None):
        super().__init__(
            message=message,
            code="CORS_CONFIGURATION_ERROR",
            suggestion="Set CorsUrls to an explicit list of origins, e.g. [\"https://app.example.com\"]",
            details={"origins": origins} if origins else None,
        )


class InsecureSecretKeyError(ConfigurationError):
    """Raised when a non-development host would sign cookies with the built-in key."""

    def __init__(self, environment: str):
        super().__init__(
            message=f"SECRET_KEY is not configured for the {environment} environment",
            code="INSECURE_SECRET_KEY",
            suggestion="Set SECRET_KEY in appsettings or the SECRET_KEY environment variable",
            details={"environment": environment},
        )


class UnknownPolicyError(ConfigurationError):
    """Raised when a route requires an authorization policy that isn't registered."""

    def __init__(self, policy: str, route: str):
        super().__init__(
            message=f"Route {route} requires unknown authorization policy '{policy}'",
            code="UNKNOWN_AUTHORIZATION_POLICY",
            suggestion="Register the policy in the AuthorizationPolicies passed to create_app()",
            details={"policy": policy, "route": route},
        )


class RouteConfigurationError(ConfigurationError):
    """Raised when a route would write enum members by value."""

    def __init__(self, route: str, message: str, types: list[str] | None = None):
        super().__init__(
            message=f"Route {route}: {message}",
            code="ROUTE_CONFIGURATION_ERROR",
            suggestion="Use APIRouter(route_class=ApiRoute) and ApiModel response models",
            details={"route": route, "types": types} if types else {"route": route},
        )


# =============================================================================
# Authentication / Authorization Exceptions (per-request)
# =============================================================================

class AuthenticationRequiredError(BackendException):
    """Raised when an anonymous request reaches a protected endpoint."""

    def __init__(self, status_code: int = 401):
        super().__init__(
            message="Authentication required",
            code="UNAUTHORIZED",
            status_code=status_code,
            suggestion="Sign in to obtain a session cookie",
        )


class AccessDeniedError(BackendException):
    """Raised when an authenticated user fails an authorization policy."""

    def __init__(self, policy: str | None = None, status_code: int = 403):
        super().__init__(
            message="Access denied",
            code="FORBIDDEN",
            status_code=status_code,
            details={"policy": policy} if policy else None,
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def backend_exception_handler(
    request: Request,
    exc: BackendException
) -> JSONResponse:
    """
    Convert BackendException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Log unexpected exceptions and hide their internals from clients."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )
