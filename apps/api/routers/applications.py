from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status

from apps.api.deps import get_workflow, require
from domain.models import Application
from services.auth.guard import APPLY_POLICY, AuthContext
from services.workflow.state_machine import ApplicationWorkflow

router = APIRouter(prefix="/applications", tags=["applications"])


@router.post("", response_model=Application, status_code=status.HTTP_201_CREATED)
def create_application(
    auth: AuthContext = Depends(require(APPLY_POLICY)),
    wf: ApplicationWorkflow = Depends(get_workflow),
):
    return wf.create(auth.user)


@router.get("/me", response_model=Application)
def my_application(
    auth: AuthContext = Depends(require(APPLY_POLICY)),
    wf: ApplicationWorkflow = Depends(get_workflow),
):
    app = wf.store.get_application_by_user(auth.user.id)
    if app is None:
        raise HTTPException(status_code=404, detail="Application not found")
    return app


@router.put("/{application_id}/steps/{step}", response_model=Application)
def save_step(
    application_id: str,
    step: int,
    payload: dict[str, Any] = Body(...),  # noqa: B008  (FastAPI pattern)
    auth: AuthContext = Depends(require(APPLY_POLICY)),
    wf: ApplicationWorkflow = Depends(get_workflow),
):
    return wf.update_step(application_id, step, payload, auth.user)


@router.post("/{application_id}/submit", response_model=Application)
def submit_application(
    application_id: str,
    auth: AuthContext = Depends(require(APPLY_POLICY)),
    wf: ApplicationWorkflow = Depends(get_workflow),
):
    """Submit; the reviewer summary is generated afterwards in the background."""
    return wf.submit(application_id, auth.user)
