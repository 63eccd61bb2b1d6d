# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Authentication runs as middleware (request.user is always set); these
# dependencies enforce it per endpoint, after routing.
#
# - get_current_user: 401 for anonymous requests
# - authorize("PolicyName"): 401 for anonymous, 403 when the policy fails
#
# Usage:
#   from app.auth import authorize, get_current_user, AuthUser
#
#   @router.get("/me")
#   async def me(user: AuthUser = Depends(get_current_user)):
#       return {"id": user.id}
#
#   @router.delete("/items/{id}", dependencies=[Depends(authorize("AdminOnly"))])
#   async def delete_item(id: int): ...
# =============================================================================

import logging
from typing import Optional

from fastapi import Depends, Request

from app.auth.cookies import CookieAuthentication
from app.auth.models import AuthUser
from app.auth.policies import DEFAULT_POLICY, AuthorizationPolicies
from app.exceptions import AccessDeniedError, AuthenticationRequiredError

logger = logging.getLogger(__name__)


def get_cookie_auth(request: Request) -> CookieAuthentication:
    """The CookieAuthentication registered by create_app()."""
    return request.app.state.cookie_auth


def get_authorization_policies(request: Request) -> AuthorizationPolicies:
    """The policy registry registered by create_app()."""
    return request.app.state.authorization_policies


async def get_current_user_optional(request: Request) -> Optional[AuthUser]:
    """
    Return the authenticated user, or None for anonymous requests.

    Useful for endpoints that work with or without authentication.
    """
    user = request.scope.get("user")
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    return user


async def get_current_user(
    request: Request,
    user: Optional[AuthUser] = Depends(get_current_user_optional),
) -> AuthUser:
    """
    Require an authenticated user.

    Raises:
        AuthenticationRequiredError: on_unauthorized status (401), no redirect
    """
    if user is None:
        options = get_cookie_auth(request).options
        logger.debug(f"Anonymous request to {request.url.path}")
        raise AuthenticationRequiredError(status_code=options.on_unauthorized)
    return user


def authorize(policy_name: str = DEFAULT_POLICY):
    """
    Build a dependency that enforces a named authorization policy.

    Args:
        policy_name: Name registered in the app's AuthorizationPolicies

    Returns:
        A dependency yielding the authorized AuthUser
    """

    async def dependency(
        request: Request,
        user: AuthUser = Depends(get_current_user),
    ) -> AuthUser:
        policy = get_authorization_policies(request).get(policy_name)
        if not policy.evaluate(user):
            options = get_cookie_auth(request).options
            logger.info(f"User {user.display_name} denied by policy {policy_name}")
            raise AccessDeniedError(policy=policy_name, status_code=options.on_forbidden)
        return user

    dependency.__name__ = f"authorize_{policy_name}"
    # Checked against the registry by create_app() at startup
    dependency.policy_name = policy_name
    return dependency
