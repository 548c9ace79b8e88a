from __future__ import annotations

from typing import Any, Literal, TypedDict

Status = Literal["ok", "skipped", "error"]


class SummaryState(TypedDict, total=False):
    application_id: str
    steps: list[str]  # diary of what the pipeline did
    application: Any  # domain.models.Application
    recommendations: list[Any]  # domain.models.Recommendation
    prompt: str
    response_text: str
    summary: str
    highlights: list[str]
    status: Status
    reason: str
