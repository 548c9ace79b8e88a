from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from apps.api.deps import get_settings, get_settings_store, get_store, get_workflow, require
from apps.api.schemas.applications import SettingIn
from core.config import Settings
from domain.models import Application, ApplicationStatus, Setting
from services.auth.guard import ADMIN_POLICY, AuthContext
from services.maintenance.wipe import wipe_all_data
from services.orchestration.graphs import run_summary_pipeline
from services.settings.store import SettingsStore
from services.workflow.state_machine import ApplicationWorkflow

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/applications", response_model=List[Application])
def list_applications(
    status: Optional[ApplicationStatus] = None,
    limit: int = Query(50, ge=1, le=500),
    auth: AuthContext = Depends(require(ADMIN_POLICY)),
    store=Depends(get_store),
):
    """Every application, newest first, optionally filtered by status."""
    return store.list_applications(statuses=[status.value] if status else None, limit=limit)


@router.get("/settings/{key}", response_model=Setting)
def read_setting(
    key: str,
    auth: AuthContext = Depends(require(ADMIN_POLICY)),
    settings_store: SettingsStore = Depends(get_settings_store),
):
    row = settings_store.get(key)
    if row is None:
        raise HTTPException(status_code=404, detail="Setting not found")
    return row


@router.put("/settings/{key}", response_model=Setting)
def write_setting(
    key: str,
    payload: SettingIn,
    auth: AuthContext = Depends(require(ADMIN_POLICY)),
    settings_store: SettingsStore = Depends(get_settings_store),
):
    try:
        return settings_store.set(key, payload.value, auth.user)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@router.post("/applications/{application_id}/summary")
def regenerate_summary(
    application_id: str,
    auth: AuthContext = Depends(require(ADMIN_POLICY)),
    wf: ApplicationWorkflow = Depends(get_workflow),
    cfg: Settings = Depends(get_settings),
) -> dict[str, Any]:
    wf.get(application_id)
    return run_summary_pipeline(application_id, wf, cfg)


@router.post("/wipe")
def wipe(
    auth: AuthContext = Depends(require(ADMIN_POLICY)),
    store=Depends(get_store),
    cfg: Settings = Depends(get_settings),
) -> dict[str, Any]:
    return wipe_all_data(store, auth.user, cfg)
