from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from pydantic import BaseModel


@dataclass(frozen=True)
class MissingField:
    field: str
    kind: str = "missing_field"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "field": self.field}


@dataclass(frozen=True)
class InvalidFormat:
    field: str
    message: str = "invalid format"
    kind: str = "invalid_format"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "field": self.field, "message": self.message}


@dataclass(frozen=True)
class EligibilityNotMet:
    field: str
    reason: str
    kind: str = "eligibility_not_met"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "field": self.field, "reason": self.reason}


StepError = Union[MissingField, InvalidFormat, EligibilityNotMet]


@dataclass(frozen=True)
class Valid:
    step: int
    data: BaseModel
    ok: bool = True


@dataclass(frozen=True)
class Invalid:
    step: int
    errors: tuple[StepError, ...] = field(default_factory=tuple)
    ok: bool = False


StepResult = Union[Valid, Invalid]
