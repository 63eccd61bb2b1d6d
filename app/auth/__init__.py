# =============================================================================
# app/auth/__init__.py - Authentication Module
# =============================================================================
# Cookie-based authentication and policy-based authorization.
#
# Usage:
#   from app.auth import get_current_user, authorize, AuthUser
#
#   @router.get("/protected")
#   async def protected(user: AuthUser = Depends(get_current_user)):
#       return {"user_id": user.id}
# =============================================================================

from app.auth.cookies import CookieAuthBackend, CookieAuthentication
from app.auth.dependencies import (
    authorize,
    get_authorization_policies,
    get_cookie_auth,
    get_current_user,
    get_current_user_optional,
)
from app.auth.models import AuthUser, CookieAuthOptions, CookieSecurePolicy, SameSiteMode
from app.auth.policies import DEFAULT_POLICY, AuthorizationPolicies, AuthorizationPolicy

__all__ = [
    "AuthUser",
    "AuthorizationPolicies",
    "AuthorizationPolicy",
    "CookieAuthBackend",
    "CookieAuthOptions",
    "CookieAuthentication",
    "CookieSecurePolicy",
    "DEFAULT_POLICY",
    "SameSiteMode",
    "authorize",
    "get_authorization_policies",
    "get_cookie_auth",
    "get_current_user",
    "get_current_user_optional",
]
