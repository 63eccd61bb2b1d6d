# =============================================================================
# app/auth/policies.py - Authorization Policies
# =============================================================================
# Named rules evaluated against the authenticated user.
#
# A policy passes when the user holds ANY of its roles (if roles are given)
# and ALL of its claims (a claim value of None only requires presence).
#
# Usage:
#   policies = AuthorizationPolicies()
#   policies.add(AuthorizationPolicy(name="AdminOnly", roles={"Admin"}))
# =============================================================================

from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.auth.models import AuthUser

DEFAULT_POLICY = "Authenticated"


class AuthorizationPolicy(BaseModel):
    """A named set of role/claim requirements."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    roles: frozenset[str] = frozenset()
    claims: dict[str, Optional[str]] = Field(default_factory=dict)

    def evaluate(self, user: AuthUser) -> bool:
        if self.roles and not (self.roles & user.roles):
            return False
        for claim, expected in self.claims.items():
            if claim not in user.claims:
                return False
            if expected is not None and user.claims[claim] != expected:
                return False
        return True


class AuthorizationPolicies:
    """Registry of policies, keyed by name."""

    def __init__(self, policies: Iterable[AuthorizationPolicy] = ()):
        # Any authenticated user passes the default policy
        self._policies: dict[str, AuthorizationPolicy] = {
            DEFAULT_POLICY: AuthorizationPolicy(name=DEFAULT_POLICY),
        }
        for policy in policies:
            self.add(policy)

    def add(self, policy: AuthorizationPolicy) -> None:
        self._policies[policy.name] = policy

    def get(self, name: str) -> AuthorizationPolicy:
        try:
            return self._policies[name]
        except KeyError:
            raise KeyError(f"Authorization policy not registered: {name}") from None

    def __contains__(self, name: object) -> bool:
        return name in self._policies

    def names(self) -> list[str]:
        return sorted(self._policies)
