from __future__ import annotations

import copy
import threading
import uuid
from collections.abc import Iterable
from typing import Any

from pymongo.errors import DuplicateKeyError

from domain.models import Application, AuditEntry, Evaluation, Recommendation, Setting


class MemoryStore:
    """
    In-process store with the same contract as MongoStore. One lock guards all
    collections so each call behaves like a single atomic document operation.
    Used for local runs (STORE_BACKEND=memory) and tests.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.applications: dict[str, dict[str, Any]] = {}
        self.recommendations: dict[str, dict[str, Any]] = {}
        self.settings: dict[str, dict[str, Any]] = {}
        self.evaluations: dict[tuple[str, str], dict[str, Any]] = {}
        self.audit: list[dict[str, Any]] = []

    # ---- applications --------------------------------------------------

    def insert_application(self, app: Application) -> Application:
        with self._lock:
            if any(d["user_id"] == app.user_id for d in self.applications.values()):
                raise DuplicateKeyError(f"application already exists for user {app.user_id}", 11000)
            self.applications[app.id] = app.model_dump(mode="json")
        return app

    def get_application(self, app_id: str) -> Application | None:
        with self._lock:
            doc = self.applications.get(app_id)
            return Application.model_validate(copy.deepcopy(doc)) if doc else None

    def get_application_by_user(self, user_id: str) -> Application | None:
        with self._lock:
            for doc in self.applications.values():
                if doc["user_id"] == user_id:
                    return Application.model_validate(copy.deepcopy(doc))
        return None

    def list_applications(
        self, statuses: Iterable[str] | None = None, limit: int | None = None
    ) -> list[Application]:
        """Newest first."""
        wanted = set(statuses) if statuses is not None else None
        with self._lock:
            docs = [
                copy.deepcopy(d)
                for d in self.applications.values()
                if wanted is None or d["status"] in wanted
            ]
        docs.sort(key=lambda d: d["created_at"], reverse=True)
        if limit is not None:
            docs = docs[:limit]
        return [Application.model_validate(d) for d in docs]

    def patch_application(
        self,
        app_id: str,
        fields: dict[str, Any],
        *,
        now: int,
        expect_status: Iterable[str] | None = None,
        add_step: int | None = None,
        raise_step_to: int | None = None,
    ) -> Application | None:
        with self._lock:
            doc = self.applications.get(app_id)
            if doc is None:
                return None
            if expect_status is not None and doc["status"] not in set(expect_status):
                return None
            updated = copy.deepcopy(doc)
            updated.update(copy.deepcopy(fields))
            updated["updated_at"] = now
            if add_step is not None and add_step not in updated["completed_steps"]:
                updated["completed_steps"].append(add_step)
            if raise_step_to is not None:
                updated["current_step"] = max(updated["current_step"], raise_step_to)
            # validate before swapping in so a bad patch cannot leave a half-written doc
            app = Application.model_validate(updated)
            self.applications[app_id] = updated
            return app

    # ---- recommendations -----------------------------------------------

    def add_recommendation(self, rec: Recommendation) -> Recommendation:
        with self._lock:
            self.recommendations[rec.id] = rec.model_dump(mode="json")
        return rec

    def list_recommendations(self, app_id: str) -> list[Recommendation]:
        with self._lock:
            docs = [d for d in self.recommendations.values() if d["application_id"] == app_id]
        docs.sort(key=lambda d: d.get("created_at", 0))
        return [Recommendation.model_validate(d) for d in docs]

    # ---- settings ------------------------------------------------------

    def get_setting(self, key: str) -> Setting | None:
        with self._lock:
            doc = self.settings.get(key)
            return Setting.model_validate(doc) if doc else None

    def upsert_setting(self, key: str, value: str, *, updated_by: str | None, now: int) -> Setting:
        row = Setting(key=key, value=value, updated_at=now, updated_by=updated_by)
        with self._lock:
            self.settings[key] = row.model_dump(mode="json")
        return row

    # ---- evaluations ---------------------------------------------------

    def upsert_evaluation(
        self,
        application_id: str,
        evaluator_id: str,
        *,
        rating: str,
        notes: str | None,
        now: int,
    ) -> tuple[Evaluation, bool]:
        """Returns (row, created)."""
        with self._lock:
            key = (application_id, evaluator_id)
            doc = self.evaluations.get(key)
            created = doc is None
            if created:
                doc = {
                    "id": str(uuid.uuid4()),
                    "application_id": application_id,
                    "evaluator_id": evaluator_id,
                    "created_at": now,
                }
            doc = {**doc, "rating": rating, "notes": notes, "updated_at": now}
            row = Evaluation.model_validate(doc)
            self.evaluations[key] = doc
        return row, created

    def get_evaluation(self, application_id: str, evaluator_id: str) -> Evaluation | None:
        with self._lock:
            doc = self.evaluations.get((application_id, evaluator_id))
            return Evaluation.model_validate(doc) if doc else None

    def list_evaluations(
        self, application_id: str | None = None, evaluator_id: str | None = None
    ) -> list[Evaluation]:
        with self._lock:
            docs = [
                d
                for d in self.evaluations.values()
                if (application_id is None or d["application_id"] == application_id)
                and (evaluator_id is None or d["evaluator_id"] == evaluator_id)
            ]
        docs.sort(key=lambda d: d["created_at"])
        return [Evaluation.model_validate(d) for d in docs]

    # ---- audit / maintenance ------------------------------------------

    def log_action(self, entry: AuditEntry) -> None:
        with self._lock:
            self.audit.append(entry.model_dump(mode="json"))

    def wipe_all(self) -> dict[str, int]:
        with self._lock:
            counts = {
                "applications": len(self.applications),
                "recommendations": len(self.recommendations),
                "settings": len(self.settings),
                "evaluations": len(self.evaluations),
                "audit_log": len(self.audit),
            }
            self.applications.clear()
            self.recommendations.clear()
            self.settings.clear()
            self.evaluations.clear()
            self.audit.clear()
        return counts
