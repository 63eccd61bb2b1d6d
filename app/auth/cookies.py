# =============================================================================
# app/auth/cookies.py - Cookie Authentication
# =============================================================================
# Session identification via a signed cookie.
#
# The cookie holds an HS256 JWT ("ticket") signed with SECRET_KEY. The
# Starlette AuthenticationMiddleware calls CookieAuthBackend on every request;
# a missing, expired or tampered cookie yields an anonymous request rather
# than an error, and protected endpoints turn that into a 401.
#
# Usage (inside an endpoint):
#   auth = get_cookie_auth(request)
#   auth.sign_in(request, response, AuthUser(id="42", roles={"Admin"}))
# =============================================================================

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from starlette.authentication import AuthCredentials, AuthenticationBackend
from starlette.requests import HTTPConnection, Request
from starlette.responses import Response

from app.auth.models import AuthUser, CookieAuthOptions, CookieSecurePolicy

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class CookieAuthentication:
    """Issues, reads and clears the authentication cookie."""

    def __init__(self, secret_key: str, options: CookieAuthOptions | None = None):
        self.secret_key = secret_key
        self.options = options or CookieAuthOptions()

    # -------------------------------------------------------------------------
    # Tickets
    # -------------------------------------------------------------------------

    def issue_ticket(self, user: AuthUser, now: datetime | None = None) -> str:
        """Sign a ticket for the user that expires after expire_minutes."""
        issued = now or datetime.now(timezone.utc)
        payload = {
            "sub": user.id,
            "name": user.name,
            "roles": sorted(user.roles),
            "claims": user.claims,
            "iat": int(issued.timestamp()),
            "exp": int((issued + timedelta(minutes=self.options.expire_minutes)).timestamp()),
        }
        return jwt.encode(payload, self.secret_key, algorithm=ALGORITHM)

    def read_ticket(self, token: str) -> Optional[AuthUser]:
        """Verify a ticket. Returns None if it is expired or invalid."""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[ALGORITHM])
        except ExpiredSignatureError:
            logger.debug("Authentication cookie has expired")
            return None
        except JWTError as e:
            logger.warning(f"Rejected authentication cookie: {e}")
            return None

        user_id = payload.get("sub")
        if not user_id:
            logger.warning("Authentication cookie missing 'sub' claim")
            return None

        return AuthUser(
            id=str(user_id),
            name=payload.get("name"),
            roles=frozenset(payload.get("roles") or []),
            claims=payload.get("claims") or {},
        )

    # -------------------------------------------------------------------------
    # Cookie
    # -------------------------------------------------------------------------

    def is_secure(self, request: Request) -> bool:
        """Resolve the Secure attribute for this request."""
        policy = self.options.secure_policy
        if policy == CookieSecurePolicy.ALWAYS:
            return True
        if policy == CookieSecurePolicy.NONE:
            return False
        return request.url.scheme == "https"

    def sign_in(self, request: Request, response: Response, user: AuthUser) -> None:
        """Attach a fresh authentication cookie to the response."""
        response.set_cookie(
            key=self.options.cookie_name,
            value=self.issue_ticket(user),
            max_age=self.options.expire_minutes * 60,
            path="/",
            secure=self.is_secure(request),
            httponly=self.options.http_only,
            samesite=self.options.same_site.value,
        )
        logger.info(f"Signed in user {user.display_name}")

    def sign_out(self, request: Request, response: Response) -> None:
        """Expire the authentication cookie."""
        response.delete_cookie(
            key=self.options.cookie_name,
            path="/",
            secure=self.is_secure(request),
            httponly=self.options.http_only,
            samesite=self.options.same_site.value,
        )


class CookieAuthBackend(AuthenticationBackend):
    """Starlette authentication backend reading the signed cookie."""

    def __init__(self, authentication: CookieAuthentication):
        self.authentication = authentication

    async def authenticate(self, conn: HTTPConnection):
        token = conn.cookies.get(self.authentication.options.cookie_name)
        if not token:
            return None

        user = self.authentication.read_ticket(token)
        if user is None:
            return None

        return AuthCredentials(["authenticated", *sorted(user.roles)]), user
