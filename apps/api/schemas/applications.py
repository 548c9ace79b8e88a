from typing import Optional

from pydantic import BaseModel, Field

from domain.models import Decision, Rating


class DecisionIn(BaseModel):
    decision: Decision


class EvaluationIn(BaseModel):
    rating: Rating
    notes: Optional[str] = Field(default=None, max_length=5000)


class SettingIn(BaseModel):
    value: str = Field(min_length=1)


class NotificationIn(BaseModel):
    email: str = Field(min_length=3)
    name: Optional[str] = None


class DeadlineOut(BaseModel):
    deadline: int
    is_past: bool
    remaining_days: int
