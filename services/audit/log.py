from __future__ import annotations

import logging
from typing import Any

from domain.models import AuditEntry
from services.deadline.gate import now_ms

logger = logging.getLogger(__name__)

AUDIT_ACTIONS = {
    "application:created": "Application created",
    "application:updated": "Application updated",
    "application:submitted": "Application submitted",
    "application:status_changed": "Application status changed",
    "application:summary_generated": "AI summary generated",
    "evaluation:submitted": "Evaluation submitted",
    "evaluation:updated": "Evaluation updated",
    "admin:settings_updated": "Setting updated by admin",
    "admin:data_wiped": "All data wiped",
    "security:unauthorized_access": "Unauthorized access attempt",
}


def log_action(
    store,
    action: str,
    *,
    user_id: str | None = None,
    application_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> None:
    """Append to the audit log. A failed audit write never fails the caller."""
    if action not in AUDIT_ACTIONS:
        raise ValueError(f"unknown audit action: {action}")
    entry = AuditEntry(
        action=action,
        user_id=user_id,
        application_id=application_id,
        details=details or {},
        created_at=now_ms(),
    )
    try:
        store.log_action(entry)
    except Exception:
        # record & continue
        logger.exception("audit_log insert failed for %s", action)
