"""
Authorization guard.

Resolution order for every protected request:
  1. pull the session token from the first matching cookie rule
  2. no token -> sign-in redirect (no role check)
  3. resolve the token with the identity provider; failure -> sign-in redirect
  4. map the role onto the closed Role enum
  5. role outside the route's allow-list -> unauthorized redirect
  6. otherwise hand back {user, session} as resolved

Nothing is cached between requests and the guard never writes.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

from core.errors import AuthenticationError, AuthorizationError
from domain.models import Role, User

logger = logging.getLogger(__name__)

LEAST_PRIVILEGED_ROLE = Role.APPLICANT


@dataclass(frozen=True)
class CookieRule:
    name: str

    def extract(self, cookies: Mapping[str, str]) -> str | None:
        value = cookies.get(self.name)
        return value.strip() if value and value.strip() else None


def cookie_rules(primary: str) -> list[CookieRule]:
    """Configured cookie first, then the legacy names, in priority order."""
    names = [primary, "session", "better-auth.session"]
    seen: list[str] = []
    for n in names:
        if n not in seen:
            seen.append(n)
    return [CookieRule(n) for n in seen]


def extract_token(cookies: Mapping[str, str], rules: list[CookieRule]) -> str | None:
    for rule in rules:
        token = rule.extract(cookies)
        if token:
            return token
    return None


def resolve_role(raw: Any) -> Role:
    """
    Map the provider's optional, untyped role onto Role. A missing or
    unrecognised value resolves to the least-privileged role (applicant).
    """
    if isinstance(raw, str):
        try:
            return Role(raw.strip().lower())
        except ValueError:
            logger.warning("unknown role %r; falling back to %s", raw, LEAST_PRIVILEGED_ROLE.value)
    return LEAST_PRIVILEGED_ROLE


@dataclass(frozen=True)
class RoutePolicy:
    name: str
    allowed_roles: frozenset[Role]


APPLY_POLICY = RoutePolicy("apply", frozenset({Role.APPLICANT}))
COMMITTEE_POLICY = RoutePolicy("committee", frozenset({Role.COMMITTEE, Role.ADMIN}))
ADMIN_POLICY = RoutePolicy("admin", frozenset({Role.ADMIN}))


@dataclass(frozen=True)
class AuthContext:
    user: User
    session: dict[str, Any]
    raw_user: dict[str, Any]


class AuthorizationGuard:
    def __init__(
        self,
        session_client,
        cookie_name: str,
        sign_in_path: str = "/login",
        unauthorized_path: str = "/unauthorized",
    ):
        self.session_client = session_client
        self.rules = cookie_rules(cookie_name)
        self.sign_in_path = sign_in_path
        self.unauthorized_path = unauthorized_path

    def sign_in_redirect(self, path: str) -> str:
        return f"{self.sign_in_path}?{urlencode({'redirect': path})}"

    def authorize(
        self, cookies: Mapping[str, str], allowed_roles: frozenset[Role] | set[Role], path: str = "/"
    ) -> AuthContext:
        token = extract_token(cookies, self.rules)
        if token is None:
            raise AuthenticationError(self.sign_in_redirect(path), "no session token")

        resolved = self.session_client.resolve(token)
        if resolved is None:
            raise AuthenticationError(self.sign_in_redirect(path), "invalid or expired session")

        raw_user = resolved["user"]
        role = resolve_role(raw_user.get("role"))
        user = User(
            id=str(raw_user["id"]),
            email=raw_user.get("email") or "",
            role=role,
            name=raw_user.get("name"),
        )
        if role not in allowed_roles:
            logger.warning(
                "audit: user %s with role %s denied access to %s", user.id, role.value, path
            )
            raise AuthorizationError(
                self.unauthorized_path, f"role {role.value} not allowed", role.value, user.id
            )
        return AuthContext(user=user, session=resolved["session"], raw_user=raw_user)
