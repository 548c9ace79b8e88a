from __future__ import annotations

import logging
from typing import Any

import httpx

from core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def _dispatch(
    endpoint: str,
    payload: dict[str, Any],
    cfg: Settings,
    transport: httpx.BaseTransport | None = None,
) -> dict[str, Any]:
    url = f"{cfg.AUTH_API_URL.rstrip('/')}/{endpoint}"
    try:
        with httpx.Client(timeout=cfg.NOTIFY_TIMEOUT_S, transport=transport) as client:
            r = client.post(url, json=payload)
        r.raise_for_status()
    except httpx.HTTPStatusError as e:
        logger.error("%s failed: HTTP %s", endpoint, e.response.status_code)
        return {"success": False, "reason": f"HTTP {e.response.status_code}"}
    except httpx.HTTPError as e:
        logger.error("%s failed: %s", endpoint, e)
        return {"success": False, "reason": str(e) or e.__class__.__name__}
    return {"success": True}


def trigger_verification(
    email: str,
    name: str | None = None,
    cfg: Settings | None = None,
    transport: httpx.BaseTransport | None = None,
) -> dict[str, Any]:
    """Ask the identity provider to send a verification email."""
    cfg = cfg or default_settings
    payload: dict[str, Any] = {"email": email, "url": f"{cfg.APP_URL.rstrip('/')}/verify"}
    if name:
        payload["name"] = name
    return _dispatch("send-verification-email", payload, cfg, transport)


def trigger_password_reset(
    email: str,
    cfg: Settings | None = None,
    transport: httpx.BaseTransport | None = None,
) -> dict[str, Any]:
    cfg = cfg or default_settings
    payload = {"email": email, "url": f"{cfg.APP_URL.rstrip('/')}/reset-password"}
    return _dispatch("forget-password", payload, cfg, transport)
