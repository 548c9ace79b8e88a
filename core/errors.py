from __future__ import annotations

from typing import Any


class PortalError(Exception):
    """Base for every error the portal raises on purpose."""

    code = "portal_error"

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": str(self)}


class ValidationError(PortalError):
    """A step payload failed its rules. Carries the field-addressable failures."""

    code = "validation_failed"

    def __init__(self, step: int, errors: list | tuple):
        self.step = step
        self.errors = tuple(errors)
        super().__init__(f"step {step} failed validation ({len(self.errors)} error(s))")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "step": self.step,
            "errors": [e.to_dict() for e in self.errors],
        }


class AuthenticationError(PortalError):
    """No usable session. Always resolves to the sign-in redirect."""

    code = "unauthenticated"

    def __init__(self, redirect_to: str, reason: str = "no session"):
        self.redirect_to = redirect_to
        self.reason = reason
        super().__init__(reason)


class AuthorizationError(PortalError):
    """Valid session, role or ownership not allowed."""

    code = "unauthorized"

    def __init__(
        self,
        redirect_to: str,
        reason: str = "forbidden",
        role: str | None = None,
        user_id: str | None = None,
    ):
        self.redirect_to = redirect_to
        self.reason = reason
        self.role = role
        self.user_id = user_id
        super().__init__(reason)


class DeadlineError(PortalError):
    code = "deadline_passed"

    def __init__(self, deadline_ms: int):
        self.deadline_ms = deadline_ms
        super().__init__("the application deadline has passed; changes are no longer accepted")

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": str(self), "deadline": self.deadline_ms}


class TransitionError(PortalError):
    """Requested lifecycle move is not allowed from the current status."""

    code = "invalid_transition"

    def __init__(self, current: str, attempted: str):
        self.current = current
        self.attempted = attempted
        super().__init__(f"cannot {attempted} an application in status '{current}'")


class NotFoundError(PortalError):
    code = "not_found"


class ExternalServiceError(PortalError):
    """Generation provider or notification dispatch failed. Never fatal to the caller."""

    code = "external_service_error"
