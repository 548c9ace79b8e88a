"""
Application lifecycle.

    draft --(step mutation)--> draft
    draft --submit--> submitted --open--> under_review --decide--> decided

Every mutation checks the deadline gate (where it applies) before anything
else, then issues exactly one atomic store update guarded on the expected
status. A failed check leaves the stored document untouched.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping
from typing import Any

from pymongo.errors import DuplicateKeyError

from core.config import settings as app_settings
from core.errors import (
    AuthorizationError,
    DeadlineError,
    NotFoundError,
    TransitionError,
    ValidationError,
)
from domain.models import (
    STEP_GROUPS,
    TOTAL_STEPS,
    Application,
    ApplicationStatus,
    Decision,
    Role,
    User,
)
from domain.value_objects import InvalidFormat, MissingField
from services.audit.log import log_action
from services.deadline.gate import is_past, now_ms
from services.eligibility.rules import eligibility_gate_failures, validate_step

logger = logging.getLogger(__name__)

# event -> (required current status, resulting status)
TRANSITIONS = {
    "submit": (ApplicationStatus.DRAFT, ApplicationStatus.SUBMITTED),
    "open_for_review": (ApplicationStatus.SUBMITTED, ApplicationStatus.UNDER_REVIEW),
    "record_decision": (ApplicationStatus.UNDER_REVIEW, ApplicationStatus.DECIDED),
}

REVIEWER_ROLES = {Role.COMMITTEE, Role.ADMIN}


class ApplicationWorkflow:
    def __init__(
        self,
        store,
        deadline: Callable[[], int],
        clock: Callable[[], int] = now_ms,
        on_submitted: Callable[[str], Any] | None = None,
    ):
        self.store = store
        self.deadline = deadline
        self.clock = clock
        self.on_submitted = on_submitted

    # ---- guards --------------------------------------------------------

    def _check_deadline(self) -> None:
        deadline = self.deadline()
        if is_past(self.clock(), deadline):
            raise DeadlineError(deadline)

    def _load(self, app_id: str) -> Application:
        app = self.store.get_application(app_id)
        if app is None:
            raise NotFoundError(f"application {app_id} not found")
        return app

    def _check_owner(self, app: Application, actor: User) -> None:
        if actor.role != Role.APPLICANT or app.user_id != actor.id:
            raise AuthorizationError(
                app_settings.UNAUTHORIZED_PATH,
                "only the owning applicant may change this application",
                actor.role.value,
            )

    def _check_status(self, app: Application, event: str) -> None:
        required, _ = TRANSITIONS[event]
        if app.status != required:
            raise TransitionError(app.status.value, event)

    def _lost_race(self, app_id: str, event: str) -> TransitionError:
        current = self._load(app_id)
        return TransitionError(current.status.value, event)

    # ---- operations ----------------------------------------------------

    def create(self, user: User) -> Application:
        """One application per applicant; calling again returns the existing one."""
        existing = self.store.get_application_by_user(user.id)
        if existing is not None:
            return existing
        now = self.clock()
        app = Application(id=str(uuid.uuid4()), user_id=user.id, created_at=now, updated_at=now)
        try:
            self.store.insert_application(app)
        except DuplicateKeyError:
            # a concurrent create won; the unique user_id index kept it to one row
            logger.info("application for user %s created concurrently", user.id)
            return self.store.get_application_by_user(user.id)
        log_action(self.store, "application:created", user_id=user.id, application_id=app.id)
        return app

    def get(self, app_id: str) -> Application:
        return self._load(app_id)

    def update_step(
        self, app_id: str, step: int, payload: Mapping[str, Any], actor: User
    ) -> Application:
        self._check_deadline()
        app = self._load(app_id)
        self._check_owner(app, actor)
        if step not in STEP_GROUPS:
            raise ValidationError(step, [InvalidFormat("step", f"must be 1-{TOTAL_STEPS}")])
        if app.status != ApplicationStatus.DRAFT:
            raise TransitionError(app.status.value, "edit")

        result = validate_step(step, payload)
        if not result.ok:
            raise ValidationError(step, result.errors)

        completed = sorted(set(app.completed_steps) | {step})
        next_step = app.model_copy(update={"completed_steps": completed}).first_incomplete_step()
        updated = self.store.patch_application(
            app_id,
            {STEP_GROUPS[step]: result.data.model_dump(mode="json")},
            now=self.clock(),
            expect_status=[ApplicationStatus.DRAFT.value],
            add_step=step,
            raise_step_to=next_step,
        )
        if updated is None:
            raise self._lost_race(app_id, "edit")
        logger.info("application %s step %s saved", app_id, step)
        log_action(
            self.store,
            "application:updated",
            user_id=actor.id,
            application_id=app_id,
            details={"step": step},
        )
        return updated

    def submit(self, app_id: str, actor: User) -> Application:
        self._check_deadline()
        app = self._load(app_id)
        self._check_owner(app, actor)
        self._check_status(app, "submit")

        if not app.is_complete():
            missing = [
                MissingField(f"step_{s}") for s in STEP_GROUPS if s not in app.completed_steps
            ]
            raise ValidationError(TOTAL_STEPS, missing)
        gate = eligibility_gate_failures(app.eligibility)
        if gate:
            raise ValidationError(4, gate)

        now = self.clock()
        updated = self.store.patch_application(
            app_id,
            {"status": ApplicationStatus.SUBMITTED.value, "submitted_at": now},
            now=now,
            expect_status=[ApplicationStatus.DRAFT.value],
        )
        if updated is None:
            raise self._lost_race(app_id, "submit")
        logger.info("application %s submitted", app_id)
        log_action(self.store, "application:submitted", user_id=actor.id, application_id=app_id)

        if self.on_submitted is not None:
            try:
                self.on_submitted(app_id)
            except Exception:
                # the submission stands regardless of what the follow-up does
                logger.exception("post-submit hook failed for application %s", app_id)
        return updated

    def open_for_review(self, app_id: str, reviewer: User) -> Application:
        if reviewer.role not in REVIEWER_ROLES:
            raise AuthorizationError(
                app_settings.UNAUTHORIZED_PATH, "reviewer role required", reviewer.role.value
            )
        app = self._load(app_id)
        if app.status in (ApplicationStatus.UNDER_REVIEW, ApplicationStatus.DECIDED):
            return app
        self._check_status(app, "open_for_review")

        now = self.clock()
        updated = self.store.patch_application(
            app_id,
            {
                "status": ApplicationStatus.UNDER_REVIEW.value,
                "reviewer_id": reviewer.id,
                "reviewed_at": now,
            },
            now=now,
            expect_status=[ApplicationStatus.SUBMITTED.value],
        )
        if updated is None:
            current = self._load(app_id)
            if current.status == ApplicationStatus.UNDER_REVIEW:
                return current
            raise TransitionError(current.status.value, "open_for_review")
        log_action(
            self.store,
            "application:status_changed",
            user_id=reviewer.id,
            application_id=app_id,
            details={"from": "submitted", "to": "under_review"},
        )
        return updated

    def record_decision(self, app_id: str, decision: Decision, actor: User) -> Application:
        if actor.role != Role.ADMIN:
            raise AuthorizationError(
                app_settings.UNAUTHORIZED_PATH, "only admins record decisions", actor.role.value
            )
        app = self._load(app_id)
        self._check_status(app, "record_decision")

        now = self.clock()
        updated = self.store.patch_application(
            app_id,
            {
                "status": ApplicationStatus.DECIDED.value,
                "decision": Decision(decision).value,
                "decided_at": now,
            },
            now=now,
            expect_status=[ApplicationStatus.UNDER_REVIEW.value],
        )
        if updated is None:
            raise self._lost_race(app_id, "record_decision")
        log_action(
            self.store,
            "application:status_changed",
            user_id=actor.id,
            application_id=app_id,
            details={"from": "under_review", "to": "decided", "decision": Decision(decision).value},
        )
        return updated

    def record_summary(self, app_id: str, summary: str, highlights: list[str]) -> Application:
        """System-authored write; allowed in any status."""
        now = self.clock()
        updated = self.store.patch_application(
            app_id,
            {
                "ai_summary": summary,
                "ai_highlights": list(highlights),
                "ai_summary_generated_at": now,
            },
            now=now,
        )
        if updated is None:
            raise NotFoundError(f"application {app_id} not found")
        return updated
