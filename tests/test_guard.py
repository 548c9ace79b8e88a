import json

import httpx
import pytest

from core.errors import AuthenticationError, AuthorizationError
from domain.models import Role
from services.auth.guard import (
    ADMIN_POLICY,
    APPLY_POLICY,
    COMMITTEE_POLICY,
    AuthorizationGuard,
    resolve_role,
)
from services.auth.session_client import SessionClient

from conftest import FakeSessionClient

FAR_FUTURE = 4_102_444_800_000


def _session(user_id, role=None, **extra):
    user = {"id": user_id, "email": f"{user_id}@example.com", **extra}
    if role is not None:
        user["role"] = role
    return {"session": {"id": f"s_{user_id}", "expiresAt": FAR_FUTURE}, "user": user}


@pytest.fixture
def sessions():
    return FakeSessionClient(
        {
            "tok-applicant": _session("u1", "applicant"),
            "tok-committee": _session("u2", "committee"),
            "tok-admin": _session("u3", "admin", name="Ada", org="grants"),
            "tok-norole": _session("u4"),
            "tok-weird": _session("u5", "superuser"),
        }
    )


@pytest.fixture
def guard(sessions):
    return AuthorizationGuard(sessions, cookie_name="better-auth.session_token")


def test_no_token_redirects_to_sign_in_without_lookup(guard, sessions):
    with pytest.raises(AuthenticationError) as exc:
        guard.authorize({}, APPLY_POLICY.allowed_roles, "/applications/me")
    assert exc.value.redirect_to == "/login?redirect=%2Fapplications%2Fme"
    assert sessions.calls == []


def test_blank_cookie_counts_as_missing(guard):
    with pytest.raises(AuthenticationError):
        guard.authorize({"better-auth.session_token": "  "}, APPLY_POLICY.allowed_roles)


def test_unresolvable_token_redirects_to_sign_in(guard):
    with pytest.raises(AuthenticationError) as exc:
        guard.authorize({"session": "forged"}, ADMIN_POLICY.allowed_roles, "/admin")
    assert exc.value.redirect_to.startswith("/login?redirect=")


def test_cookie_priority(guard, sessions):
    cookies = {
        "better-auth.session": "tok-admin",
        "session": "tok-committee",
        "better-auth.session_token": "tok-applicant",
    }
    ctx = guard.authorize(cookies, APPLY_POLICY.allowed_roles)
    assert ctx.user.id == "u1"
    assert sessions.calls == ["tok-applicant"]


def test_legacy_cookie_used_when_primary_absent(guard):
    ctx = guard.authorize({"session": "tok-committee"}, COMMITTEE_POLICY.allowed_roles)
    assert ctx.user.role == Role.COMMITTEE


@pytest.mark.parametrize(
    "token,policy",
    [
        ("tok-applicant", COMMITTEE_POLICY),
        ("tok-applicant", ADMIN_POLICY),
        ("tok-committee", ADMIN_POLICY),
        ("tok-committee", APPLY_POLICY),
        ("tok-admin", APPLY_POLICY),
    ],
)
def test_role_outside_allow_list_goes_to_unauthorized(guard, token, policy):
    with pytest.raises(AuthorizationError) as exc:
        guard.authorize({"session": token}, policy.allowed_roles)
    assert exc.value.redirect_to == "/unauthorized"


def test_allowed_role_returns_session_and_user_unmodified(guard, sessions):
    ctx = guard.authorize({"session": "tok-admin"}, ADMIN_POLICY.allowed_roles)
    assert ctx.user.role == Role.ADMIN
    assert ctx.user.name == "Ada"
    assert ctx.raw_user == sessions.sessions["tok-admin"]["user"]
    assert ctx.raw_user["org"] == "grants"
    assert ctx.session == sessions.sessions["tok-admin"]["session"]


def test_admin_passes_committee_routes(guard):
    assert guard.authorize({"session": "tok-admin"}, COMMITTEE_POLICY.allowed_roles).user.id == "u3"


@pytest.mark.parametrize("token", ["tok-norole", "tok-weird"])
def test_missing_or_unknown_role_is_least_privileged(guard, token):
    ctx = guard.authorize({"session": token}, APPLY_POLICY.allowed_roles)
    assert ctx.user.role == Role.APPLICANT
    with pytest.raises(AuthorizationError):
        guard.authorize({"session": token}, COMMITTEE_POLICY.allowed_roles)


def test_resolve_role_normalises_case():
    assert resolve_role(" Admin ") == Role.ADMIN
    assert resolve_role(None) == Role.APPLICANT
    assert resolve_role(3) == Role.APPLICANT


class TestSessionClient:
    def _client(self, handler):
        return SessionClient(
            "https://auth.example.com/session", origin="https://apply.example.com",
            transport=httpx.MockTransport(handler),
        )

    def test_posts_token_and_unwraps_value(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            seen["origin"] = request.headers.get("origin")
            return httpx.Response(200, json={"value": _session("u9", "committee")})

        resolved = self._client(handler).resolve("tok")
        assert seen == {"body": {"sessionToken": "tok"}, "origin": "https://apply.example.com"}
        assert resolved["user"]["id"] == "u9"

    def test_plain_payload(self):
        resolved = self._client(lambda r: httpx.Response(200, json=_session("u9"))).resolve("tok")
        assert resolved["session"]["id"] == "s_u9"

    def test_expired_session(self):
        body = _session("u9")
        body["session"]["expiresAt"] = 1
        assert self._client(lambda r: httpx.Response(200, json=body)).resolve("tok") is None

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(401, json={"error": "nope"}),
            httpx.Response(500, text="boom"),
            httpx.Response(200, text="not json"),
            httpx.Response(200, json=None),
            httpx.Response(200, json={"session": {"id": "s"}, "user": {}}),
        ],
    )
    def test_failures_resolve_to_none(self, response):
        assert self._client(lambda r: response).resolve("tok") is None

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        assert self._client(handler).resolve("tok") is None
