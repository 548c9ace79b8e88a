from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from typing import Any

from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from domain.models import Application, AuditEntry, Evaluation, Recommendation, Setting

logger = logging.getLogger(__name__)

COLLECTIONS = ("applications", "recommendations", "settings", "evaluations", "audit_log")


def _to_doc(model, key: str = "id") -> dict[str, Any]:
    doc = model.model_dump(mode="json")
    doc["_id"] = doc.pop(key)
    return doc


def _from_doc(doc: dict[str, Any] | None, cls, key: str = "id"):
    if doc is None:
        return None
    doc = dict(doc)
    doc[key] = doc.pop("_id")
    return cls.model_validate(doc)


class MongoStore:
    """
    Document store backed by MongoDB. Every mutation is a single-document
    atomic operation; nothing here spans documents.
    """

    def __init__(self, db: Database):
        self.db = db
        self.applications = db["applications"]
        self.recommendations = db["recommendations"]
        self.settings = db["settings"]
        self.evaluations = db["evaluations"]
        self.audit = db["audit_log"]

    @classmethod
    def connect(cls, url: str, db_name: str) -> "MongoStore":
        client = MongoClient(url, serverSelectionTimeoutMS=2000)
        store = cls(client[db_name])
        store.ensure_indexes()
        return store

    def ensure_indexes(self) -> None:
        self.applications.create_index([("user_id", ASCENDING)], unique=True)
        self.applications.create_index([("status", ASCENDING)])
        self.applications.create_index([("submitted_at", ASCENDING)])
        self.recommendations.create_index([("application_id", ASCENDING)])
        # one row per key; concurrent upserts collapse onto it
        self.settings.create_index([("key", ASCENDING)], unique=True)
        self.evaluations.create_index(
            [("application_id", ASCENDING), ("evaluator_id", ASCENDING)], unique=True
        )
        self.evaluations.create_index([("evaluator_id", ASCENDING)])
        self.audit.create_index([("application_id", ASCENDING)])
        self.audit.create_index([("created_at", ASCENDING)])

    # ---- applications --------------------------------------------------

    def insert_application(self, app: Application) -> Application:
        self.applications.insert_one(_to_doc(app))
        return app

    def get_application(self, app_id: str) -> Application | None:
        return _from_doc(self.applications.find_one({"_id": app_id}), Application)

    def get_application_by_user(self, user_id: str) -> Application | None:
        return _from_doc(self.applications.find_one({"user_id": user_id}), Application)

    def list_applications(
        self, statuses: Iterable[str] | None = None, limit: int | None = None
    ) -> list[Application]:
        """Newest first."""
        filt: dict[str, Any] = {}
        if statuses is not None:
            filt["status"] = {"$in": list(statuses)}
        cur = self.applications.find(filt).sort("created_at", DESCENDING)
        if limit is not None:
            cur = cur.limit(limit)
        return [_from_doc(d, Application) for d in cur]

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
        """
        Apply `fields` atomically. Returns None when the document is missing or
        its status no longer matches `expect_status`.
        """
        filt: dict[str, Any] = {"_id": app_id}
        if expect_status is not None:
            filt["status"] = {"$in": list(expect_status)}
        update: dict[str, Any] = {"$set": {**fields, "updated_at": now}}
        if add_step is not None:
            update["$addToSet"] = {"completed_steps": add_step}
        if raise_step_to is not None:
            update["$max"] = {"current_step": raise_step_to}
        doc = self.applications.find_one_and_update(
            filt, update, return_document=ReturnDocument.AFTER
        )
        return _from_doc(doc, Application)

    # ---- recommendations -----------------------------------------------

    def add_recommendation(self, rec: Recommendation) -> Recommendation:
        self.recommendations.insert_one(_to_doc(rec))
        return rec

    def list_recommendations(self, app_id: str) -> list[Recommendation]:
        cur = self.recommendations.find({"application_id": app_id}).sort("created_at", ASCENDING)
        return [_from_doc(d, Recommendation) for d in cur]

    # ---- settings ------------------------------------------------------

    def get_setting(self, key: str) -> Setting | None:
        doc = self.settings.find_one({"key": key}, {"_id": 0})
        return Setting.model_validate(doc) if doc else None

    def upsert_setting(self, key: str, value: str, *, updated_by: str | None, now: int) -> Setting:
        update = {"$set": {"value": value, "updated_at": now, "updated_by": updated_by}}
        try:
            self.settings.update_one({"key": key}, update, upsert=True)
        except DuplicateKeyError:
            # lost the insert race to another writer; the row exists now, so patch it
            self.settings.update_one({"key": key}, update)
        return Setting(key=key, value=value, updated_at=now, updated_by=updated_by)

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
        """
        Insert or overwrite the evaluator's row for this application in one
        operation. Returns (row, created).
        """
        new_id = str(uuid.uuid4())
        filt = {"application_id": application_id, "evaluator_id": evaluator_id}
        update = {
            "$set": {"rating": rating, "notes": notes, "updated_at": now},
            "$setOnInsert": {"_id": new_id, "created_at": now},
        }
        try:
            doc = self.evaluations.find_one_and_update(
                filt, update, upsert=True, return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            # a concurrent first evaluation inserted the row; this one overwrites it
            doc = self.evaluations.find_one_and_update(
                filt, {"$set": update["$set"]}, return_document=ReturnDocument.AFTER
            )
        return _from_doc(doc, Evaluation), doc["_id"] == new_id

    def get_evaluation(self, application_id: str, evaluator_id: str) -> Evaluation | None:
        doc = self.evaluations.find_one(
            {"application_id": application_id, "evaluator_id": evaluator_id}
        )
        return _from_doc(doc, Evaluation)

    def list_evaluations(
        self, application_id: str | None = None, evaluator_id: str | None = None
    ) -> list[Evaluation]:
        filt: dict[str, Any] = {}
        if application_id is not None:
            filt["application_id"] = application_id
        if evaluator_id is not None:
            filt["evaluator_id"] = evaluator_id
        cur = self.evaluations.find(filt).sort("created_at", ASCENDING)
        return [_from_doc(d, Evaluation) for d in cur]

    # ---- audit / maintenance ------------------------------------------

    def log_action(self, entry: AuditEntry) -> None:
        self.audit.insert_one(entry.model_dump(mode="json"))

    def wipe_all(self) -> dict[str, int]:
        counts = {}
        for name in COLLECTIONS:
            counts[name] = self.db[name].delete_many({}).deleted_count
        logger.warning("wiped collections: %s", counts)
        return counts
