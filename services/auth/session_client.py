from __future__ import annotations

import logging
from typing import Any

import httpx

from services.deadline.gate import now_ms

logger = logging.getLogger(__name__)


class SessionClient:
    """
    Resolves a session token against the external identity provider.
    Any failure (transport, non-2xx, malformed or expired payload) comes back
    as None; the caller treats that as unauthenticated.
    """

    def __init__(
        self,
        url: str,
        origin: str | None = None,
        timeout_s: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.url = url
        self.origin = origin
        self.timeout_s = timeout_s
        self.transport = transport

    def resolve(self, token: str) -> dict[str, Any] | None:
        headers = {"Content-Type": "application/json"}
        if self.origin:
            headers["Origin"] = self.origin
        try:
            with httpx.Client(timeout=self.timeout_s, transport=self.transport) as client:
                r = client.post(self.url, json={"sessionToken": token}, headers=headers)
            if r.status_code != 200:
                logger.warning("session validation failed: HTTP %s", r.status_code)
                return None
            data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("error validating session: %s", e)
            return None

        # some deployments wrap the payload as {"value": {...}}
        if isinstance(data, dict) and "value" in data:
            data = data["value"]
        if not isinstance(data, dict):
            return None
        session, user = data.get("session"), data.get("user")
        if not isinstance(session, dict) or not isinstance(user, dict) or not user.get("id"):
            return None
        expires_at = session.get("expiresAt")
        if isinstance(expires_at, (int, float)) and expires_at < now_ms():
            logger.info("session for user %s has expired", user.get("id"))
            return None
        return {"session": session, "user": user}
