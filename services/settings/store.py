from __future__ import annotations

import logging
from collections.abc import Callable

from core.config import settings as app_settings
from core.errors import AuthorizationError
from domain.models import Role, Setting, User
from services.audit.log import log_action
from services.deadline.gate import DEADLINE_KEY, now_ms, resolve_deadline

logger = logging.getLogger(__name__)


class SettingsStore:
    """Key/value settings. Reads are open; writes are admin-only upserts on the key."""

    def __init__(self, store, clock: Callable[[], int] = now_ms):
        self.store = store
        self.clock = clock

    def get(self, key: str) -> Setting | None:
        return self.store.get_setting(key)

    def set(self, key: str, value: str, actor: User) -> Setting:
        if actor.role != Role.ADMIN:
            raise AuthorizationError(
                app_settings.UNAUTHORIZED_PATH, "only admins may change settings", actor.role.value
            )
        if key == DEADLINE_KEY:
            value = value.strip()
            if not (value.isascii() and value.isdigit()):
                raise ValueError("deadline must be an epoch-millisecond integer")
        row = self.store.upsert_setting(key, value, updated_by=actor.id, now=self.clock())
        logger.info("setting %s updated by %s", key, actor.id)
        log_action(self.store, "admin:settings_updated", user_id=actor.id, details={"key": key})
        return row

    def get_deadline(self) -> int:
        row = self.get(DEADLINE_KEY)
        return resolve_deadline(row.value if row else None)
