# tests/conftest.py
"""
Shared fixtures: an in-memory store, a controllable clock, canned users and
step payloads that pass validation.
"""

import pytest

from domain.models import Role, User
from services.deadline.gate import DAY_MS
from services.persistence.memory import MemoryStore
from services.workflow.state_machine import ApplicationWorkflow

T0 = 1_760_000_000_000  # fixed "now" for tests
OPEN_DEADLINE = T0 + 30 * DAY_MS


class Clock:
    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now


class FakeSessionClient:
    """Maps tokens to pre-baked {session, user} payloads."""

    def __init__(self, sessions=None):
        self.sessions = sessions or {}
        self.calls = []

    def resolve(self, token):
        self.calls.append(token)
        return self.sessions.get(token)


def essay(words: int = 500) -> str:
    return " ".join(["scholarship"] * words)


def step_payloads() -> dict:
    return {
        1: {
            "first_name": "Jordan",
            "last_name": "Lee",
            "phone": "(313) 555-0142",
            "date_of_birth": "2005-03-14",
        },
        2: {"street_address": "12 Elm St", "city": "Detroit", "zip_code": "48201", "state": "OH"},
        3: {
            "high_school_name": "Central High",
            "high_school_city": "Detroit",
            "high_school_state": "MI",
            "graduation_date": "2023-06-01",
            "gpa": "3.6",
            "sat_score": "1310",
            "college_name": "Wayne State",
            "college_city": "Detroit",
            "college_state": "MI",
            "year_in_college": "sophomore",
            "major": "Biology",
        },
        4: {
            "is_first_time_applying": True,
            "is_previous_recipient": False,
            "is_full_time_student": True,
            "is_state_resident": True,
        },
        5: {"transcript_file_id": "file_transcript_1", "essay_text": essay()},
        6: {
            "recommenders": [
                {"name": "Dr. Ada Park", "email": "ada@school.edu", "type": "educator"},
                {"name": "Sam Ruiz", "email": "sam@community.org", "type": "community_group"},
            ]
        },
        7: {
            "signature": "Jordan Lee",
            "certify_accurate": True,
            "certify_publish": True,
            "certify_disqualify": True,
        },
    }


@pytest.fixture
def payloads():
    return step_payloads()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def applicant():
    return User(id="user_applicant", email="jordan@example.com", role=Role.APPLICANT)


@pytest.fixture
def other_applicant():
    return User(id="user_other", email="other@example.com", role=Role.APPLICANT)


@pytest.fixture
def committee_member():
    return User(id="user_committee", email="reviewer@example.com", role=Role.COMMITTEE)


@pytest.fixture
def admin():
    return User(id="user_admin", email="admin@example.com", role=Role.ADMIN)


@pytest.fixture
def workflow(store, clock):
    return ApplicationWorkflow(store, deadline=lambda: OPEN_DEADLINE, clock=clock)


@pytest.fixture
def complete_app(workflow, applicant, payloads):
    """A draft with all seven steps saved."""
    app = workflow.create(applicant)
    for step, body in payloads.items():
        app = workflow.update_step(app.id, step, body, applicant)
    return app
