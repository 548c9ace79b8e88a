# apps/api/main.py

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from apps.api.deps import get_clock, get_settings_store
from apps.api.routers import admin, applications, auth, committee
from apps.api.schemas.applications import DeadlineOut
from core.config import settings
from core.errors import (
    AuthenticationError,
    AuthorizationError,
    DeadlineError,
    NotFoundError,
    PortalError,
    TransitionError,
    ValidationError,
)
from core.logging import configure_logging, logger
from services.deadline.gate import deadline_status
from services.settings.store import SettingsStore

configure_logging()

app = FastAPI(title="Scholarship Portal API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(applications.router)
app.include_router(committee.router)
app.include_router(admin.router)
app.include_router(auth.router)


# --- error mapping ---

STATUS_FOR = {
    ValidationError: 422,
    DeadlineError: 403,
    TransitionError: 409,
    NotFoundError: 404,
}


@app.exception_handler(AuthenticationError)
def on_unauthenticated(request: Request, exc: AuthenticationError):
    return RedirectResponse(exc.redirect_to, status_code=303)


@app.exception_handler(AuthorizationError)
def on_unauthorized(request: Request, exc: AuthorizationError):
    logger.warning("unauthorized %s %s: %s", request.method, request.url.path, exc.reason)
    return RedirectResponse(exc.redirect_to, status_code=303)


@app.exception_handler(PortalError)
def on_portal_error(request: Request, exc: PortalError):
    code = next((c for cls, c in STATUS_FOR.items() if isinstance(exc, cls)), 500)
    if code == 500:
        logger.error("unhandled portal error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=code, content=exc.to_dict())


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/deadline", response_model=DeadlineOut)
def deadline(
    settings_store: SettingsStore = Depends(get_settings_store),
    clock=Depends(get_clock),
):
    return deadline_status(clock(), settings_store.get_deadline())


def run() -> None:
    uvicorn.run("apps.api.main:app", host=settings.API_HOST, port=settings.API_PORT)


if __name__ == "__main__":
    run()
