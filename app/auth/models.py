# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for the authenticated principal and the cookie policy.
# =============================================================================

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CookieSecurePolicy(str, Enum):
    """When the authentication cookie carries the Secure attribute."""
    SAME_AS_REQUEST = "SameAsRequest"
    ALWAYS = "Always"
    NONE = "None"


class SameSiteMode(str, Enum):
    """SameSite attribute of the authentication cookie."""
    STRICT = "strict"
    LAX = "lax"
    NONE = "none"


class CookieAuthOptions(BaseModel):
    """
    The single cookie-authentication policy for the host.

    Applied once at startup. Failures are reported as bare status codes
    (on_unauthorized / on_forbidden) so API clients never get a redirect
    to a login page.
    """
    model_config = ConfigDict(frozen=True)

    cookie_name: str = Field(default="backend.auth", min_length=1)
    http_only: bool = True
    secure_policy: CookieSecurePolicy = CookieSecurePolicy.ALWAYS
    same_site: SameSiteMode = SameSiteMode.STRICT
    on_unauthorized: int = Field(default=401, ge=400, le=499)
    on_forbidden: int = Field(default=403, ge=400, le=499)
    # 14 days
    expire_minutes: int = Field(default=20160, ge=1)


class AuthUser(BaseModel):
    """
    Principal restored from the authentication cookie.

    Exposes is_authenticated / display_name so Starlette's
    request.user contract is satisfied.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    name: Optional[str] = None
    roles: frozenset[str] = frozenset()
    claims: dict[str, str] = Field(default_factory=dict)

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def display_name(self) -> str:
        return self.name or self.id

    def is_in_role(self, role: str) -> bool:
        return role in self.roles
