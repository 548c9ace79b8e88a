from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, status

from apps.api.deps import get_settings
from apps.api.schemas.applications import NotificationIn
from core.config import Settings
from services.notifications.dispatch import trigger_password_reset, trigger_verification

router = APIRouter(prefix="/auth", tags=["auth"])


# Both triggers answer 202 whatever happens downstream, so the response never
# reveals whether an account exists.


@router.post("/trigger-verification", status_code=status.HTTP_202_ACCEPTED)
def send_verification(
    payload: NotificationIn,
    background_tasks: BackgroundTasks,
    cfg: Settings = Depends(get_settings),
) -> dict[str, bool]:
    background_tasks.add_task(trigger_verification, payload.email, payload.name, cfg)
    return {"accepted": True}


@router.post("/trigger-password-reset", status_code=status.HTTP_202_ACCEPTED)
def send_password_reset(
    payload: NotificationIn,
    background_tasks: BackgroundTasks,
    cfg: Settings = Depends(get_settings),
) -> dict[str, bool]:
    background_tasks.add_task(trigger_password_reset, payload.email, cfg)
    return {"accepted": True}
