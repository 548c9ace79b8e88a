from functools import lru_cache

from fastapi import BackgroundTasks, Depends, Request

from core.config import Settings, settings
from core.errors import AuthorizationError
from services.audit.log import log_action
from services.auth.guard import AuthContext, AuthorizationGuard, RoutePolicy
from services.auth.session_client import SessionClient
from services.deadline.gate import now_ms
from services.evaluation.committee import EvaluationService
from services.orchestration.graphs import run_summary_pipeline
from services.persistence.memory import MemoryStore
from services.persistence.mongo import MongoStore
from services.settings.store import SettingsStore
from services.workflow.state_machine import ApplicationWorkflow


def get_settings() -> Settings:
    """Provides application settings/config globally."""
    return settings


@lru_cache
def _store_for(backend: str, url: str, db: str):
    if backend == "memory":
        return MemoryStore()
    return MongoStore.connect(url, db)


def get_store(cfg: Settings = Depends(get_settings)):
    """Document store singleton for the configured backend."""
    return _store_for(cfg.STORE_BACKEND, cfg.MONGO_URL, cfg.MONGO_DB)


def get_clock():
    return now_ms


def get_settings_store(store=Depends(get_store), clock=Depends(get_clock)) -> SettingsStore:
    return SettingsStore(store, clock=clock)


def get_evaluation_service(store=Depends(get_store), clock=Depends(get_clock)) -> EvaluationService:
    return EvaluationService(store, clock=clock)


def get_workflow(
    background_tasks: BackgroundTasks,
    store=Depends(get_store),
    settings_store: SettingsStore = Depends(get_settings_store),
    cfg: Settings = Depends(get_settings),
    clock=Depends(get_clock),
) -> ApplicationWorkflow:
    """Workflow wired to schedule the summary pipeline once a submission lands."""
    wf = ApplicationWorkflow(store, deadline=settings_store.get_deadline, clock=clock)
    wf.on_submitted = lambda app_id: background_tasks.add_task(
        run_summary_pipeline, app_id, wf, cfg
    )
    return wf


def get_session_client(cfg: Settings = Depends(get_settings)) -> SessionClient:
    return SessionClient(cfg.SESSION_VALIDATION_URL, origin=cfg.APP_URL, timeout_s=cfg.SESSION_TIMEOUT_S)


def get_guard(
    session_client=Depends(get_session_client), cfg: Settings = Depends(get_settings)
) -> AuthorizationGuard:
    return AuthorizationGuard(
        session_client,
        cookie_name=cfg.SESSION_COOKIE_NAME,
        sign_in_path=cfg.SIGN_IN_PATH,
        unauthorized_path=cfg.UNAUTHORIZED_PATH,
    )


def require(policy: RoutePolicy):
    """Route dependency: resolve the session and enforce the policy's allow-list."""

    def dependency(
        request: Request,
        guard: AuthorizationGuard = Depends(get_guard),
        store=Depends(get_store),
    ) -> AuthContext:
        try:
            return guard.authorize(request.cookies, policy.allowed_roles, request.url.path)
        except AuthorizationError as e:
            log_action(
                store,
                "security:unauthorized_access",
                user_id=e.user_id,
                details={"path": request.url.path, "role": e.role, "policy": policy.name},
            )
            raise

    return dependency
