import json

import httpx
import pytest

from core.config import Settings
from core.errors import AuthorizationError
from services.maintenance.wipe import is_superuser, wipe_all_data
from services.notifications.dispatch import trigger_password_reset, trigger_verification


@pytest.fixture
def cfg():
    return Settings(
        SUPERUSER_EMAILS=["admin@example.com"],
        APP_URL="https://apply.example.com/",
        AUTH_API_URL="https://apply.example.com/api/auth",
    )


class TestWipe:
    def test_superuser_wipes_everything(self, workflow, complete_app, store, admin, cfg):
        result = wipe_all_data(store, admin, cfg)
        assert result["success"] is True
        assert result["deleted"]["applications"] == 1
        assert store.applications == {}
        # the wipe itself is the only audit entry left
        assert [e["action"] for e in store.audit] == ["admin:data_wiped"]

    def test_admin_not_on_list_is_refused(self, workflow, complete_app, store, admin):
        with pytest.raises(AuthorizationError):
            wipe_all_data(store, admin, Settings(SUPERUSER_EMAILS=[]))
        assert complete_app.id in store.applications
        assert store.audit[-1]["action"] == "security:unauthorized_access"

    def test_listed_email_without_admin_role(self, committee_member):
        cfg = Settings(SUPERUSER_EMAILS=[committee_member.email])
        assert not is_superuser(committee_member, cfg)

    def test_email_match_ignores_case(self, admin, cfg):
        assert is_superuser(admin.model_copy(update={"email": " Admin@Example.com "}), cfg)


class Recorder:
    def __init__(self, status=200):
        self.status = status
        self.requests = []

    def __call__(self, request):
        self.requests.append((str(request.url), json.loads(request.content)))
        return httpx.Response(self.status, json={})


class TestNotifications:
    def test_verification(self, cfg):
        rec = Recorder()
        out = trigger_verification("a@b.co", "Jordan", cfg, transport=httpx.MockTransport(rec))
        assert out == {"success": True}
        assert rec.requests == [
            (
                "https://apply.example.com/api/auth/send-verification-email",
                {"email": "a@b.co", "url": "https://apply.example.com/verify", "name": "Jordan"},
            )
        ]

    def test_verification_without_name(self, cfg):
        rec = Recorder()
        trigger_verification("a@b.co", cfg=cfg, transport=httpx.MockTransport(rec))
        assert "name" not in rec.requests[0][1]

    def test_password_reset(self, cfg):
        rec = Recorder()
        out = trigger_password_reset("a@b.co", cfg, transport=httpx.MockTransport(rec))
        assert out == {"success": True}
        url, body = rec.requests[0]
        assert url.endswith("/forget-password")
        assert body == {"email": "a@b.co", "url": "https://apply.example.com/reset-password"}

    def test_provider_error_is_reported(self, cfg):
        out = trigger_password_reset("a@b.co", cfg, transport=httpx.MockTransport(Recorder(502)))
        assert out == {"success": False, "reason": "HTTP 502"}

    def test_network_error_is_reported(self, cfg):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        out = trigger_verification("a@b.co", cfg=cfg, transport=httpx.MockTransport(handler))
        assert out["success"] is False
