from __future__ import annotations

import logging

from core.config import Settings, settings as default_settings
from core.errors import AuthorizationError
from domain.models import Role, User
from services.audit.log import log_action

logger = logging.getLogger(__name__)


def is_superuser(actor: User, cfg: Settings) -> bool:
    return actor.role == Role.ADMIN and actor.email.strip().lower() in cfg.SUPERUSER_EMAILS


def wipe_all_data(store, actor: User, cfg: Settings | None = None) -> dict:
    """
    Delete every application, recommendation, setting, evaluation and audit entry.
    Operational escape hatch: admin role alone is not enough, the actor's
    email must also be on the SUPERUSER_EMAILS list.
    """
    cfg = cfg or default_settings
    if not is_superuser(actor, cfg):
        logger.warning("audit: wipe refused for user %s (%s)", actor.id, actor.role.value)
        log_action(
            store,
            "security:unauthorized_access",
            user_id=actor.id,
            details={"operation": "wipe_all_data"},
        )
        raise AuthorizationError(
            cfg.UNAUTHORIZED_PATH, "superuser required", actor.role.value, actor.id
        )
    counts = store.wipe_all()
    # written after the wipe so the trail survives it
    log_action(store, "admin:data_wiped", user_id=actor.id, details=counts)
    return {"success": True, "deleted": counts}
