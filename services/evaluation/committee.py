"""
Committee evaluation: each reviewer keeps one rating per application, the
review queue shows where they stand, and rankings average the ratings.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from core.config import settings as app_settings
from core.errors import AuthorizationError, NotFoundError, TransitionError
from domain.models import (
    RATING_POINTS,
    Application,
    ApplicationStatus,
    Candidate,
    CandidateDetails,
    Evaluation,
    Ranking,
    Rating,
    Role,
    User,
)
from services.audit.log import log_action
from services.deadline.gate import now_ms

logger = logging.getLogger(__name__)

EVALUATOR_ROLES = {Role.COMMITTEE, Role.ADMIN}

# statuses a reviewer can see and rate
REVIEWABLE = (
    ApplicationStatus.SUBMITTED.value,
    ApplicationStatus.UNDER_REVIEW.value,
    ApplicationStatus.DECIDED.value,
)


def average_rating(evaluations: list[Evaluation]) -> float:
    if not evaluations:
        return 0.0
    points = [RATING_POINTS[Rating(e.rating)] for e in evaluations]
    return round(sum(points) / len(points), 2)


class EvaluationService:
    def __init__(self, store, clock: Callable[[], int] = now_ms):
        self.store = store
        self.clock = clock

    def _check_evaluator(self, actor: User) -> None:
        if actor.role not in EVALUATOR_ROLES:
            raise AuthorizationError(
                app_settings.UNAUTHORIZED_PATH,
                "committee or admin role required",
                actor.role.value,
                actor.id,
            )

    def _load_reviewable(self, app_id: str) -> Application:
        app = self.store.get_application(app_id)
        if app is None:
            raise NotFoundError(f"application {app_id} not found")
        if app.status.value not in REVIEWABLE:
            raise TransitionError(app.status.value, "evaluate")
        return app

    def evaluate(
        self, app_id: str, rating: Rating | str, notes: str | None, actor: User
    ) -> Evaluation:
        """Create the actor's evaluation, or overwrite it if one exists."""
        self._check_evaluator(actor)
        self._load_reviewable(app_id)
        rating = Rating(rating)
        notes = (notes or "").strip() or None

        row, created = self.store.upsert_evaluation(
            app_id, actor.id, rating=rating.value, notes=notes, now=self.clock()
        )
        action = "evaluation:submitted" if created else "evaluation:updated"
        logger.info("%s for application %s by %s", action, app_id, actor.id)
        log_action(
            self.store,
            action,
            user_id=actor.id,
            application_id=app_id,
            details={"rating": rating.value, "evaluation_id": row.id},
        )
        return row

    def candidates(self, actor: User) -> list[Candidate]:
        """Review queue: submitted and in-review applications with the actor's progress."""
        self._check_evaluator(actor)
        apps = self.store.list_applications(
            statuses=[ApplicationStatus.SUBMITTED.value, ApplicationStatus.UNDER_REVIEW.value]
        )
        out = []
        for app in apps:
            evaluations = self.store.list_evaluations(application_id=app.id)
            letters = [
                r for r in self.store.list_recommendations(app.id) if r.status == "submitted"
            ]
            out.append(
                Candidate(
                    application=app,
                    my_evaluation=next((e for e in evaluations if e.evaluator_id == actor.id), None),
                    evaluation_count=len(evaluations),
                    recommendation_count=len(letters),
                )
            )
        return out

    def details(self, app_id: str, actor: User) -> CandidateDetails:
        self._check_evaluator(actor)
        app = self._load_reviewable(app_id)
        mine = self.store.get_evaluation(app_id, actor.id)
        others: list[Evaluation] = []
        if mine is not None:
            others = [
                e
                for e in self.store.list_evaluations(application_id=app_id)
                if e.evaluator_id != actor.id
            ]
        letters = [r for r in self.store.list_recommendations(app_id) if r.status == "submitted"]
        return CandidateDetails(
            application=app, my_evaluation=mine, other_evaluations=others, recommendations=letters
        )

    def rankings(self, actor: User) -> list[Ranking]:
        """Reviewable applications by average rating, best first; unrated ones score 0."""
        self._check_evaluator(actor)
        rows = []
        for app in self.store.list_applications(statuses=REVIEWABLE):
            evaluations = self.store.list_evaluations(application_id=app.id)
            rows.append(
                Ranking(
                    application=app,
                    average_rating=average_rating(evaluations),
                    evaluation_count=len(evaluations),
                    evaluations=evaluations,
                )
            )
        rows.sort(key=lambda r: r.average_rating, reverse=True)
        return rows
