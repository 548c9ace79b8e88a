from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from datetime import date
from typing import Any

from core.config import settings
from domain.models import (
    Address,
    Documents,
    Education,
    EligibilityAnswers,
    PersonalInfo,
    Recommender,
    Recommenders,
    RecommenderType,
    ReviewAttestation,
    YearInCollege,
)
from domain.value_objects import (
    EligibilityNotMet,
    Invalid,
    InvalidFormat,
    MissingField,
    StepError,
    StepResult,
    Valid,
)

PHONE_RE = re.compile(r"^\(\d{3}\) \d{3}-\d{4}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MIN_GPA = 3.0
ESSAY_MIN_WORDS = 450
ESSAY_MAX_WORDS = 550
REQUIRED_RECOMMENDERS = 2

# (field, gating, reason when the answer is "no")
ELIGIBILITY_QUESTIONS = [
    ("is_first_time_applying", False, None),
    ("is_previous_recipient", False, None),
    ("is_full_time_student", True, "applicants must be enrolled full-time"),
    ("is_state_resident", True, "applicants must be in-state residents"),
]


def is_valid_region_code(
    zip_code: Any, lo: int | None = None, hi: int | None = None
) -> bool:
    """True iff the value is exactly five ASCII digits inside the configured closed interval."""
    lo = settings.REGION_ZIP_MIN if lo is None else lo
    hi = settings.REGION_ZIP_MAX if hi is None else hi
    if not isinstance(zip_code, str):
        return False
    z = zip_code.strip()
    if len(z) != 5 or not (z.isascii() and z.isdigit()):
        return False
    return lo <= int(z) <= hi


def _text(payload: Mapping[str, Any], name: str) -> str:
    v = payload.get(name)
    return v.strip() if isinstance(v, str) else ""


def _require(payload: Mapping[str, Any], names: list[str], errors: list[StepError]) -> None:
    for name in names:
        if not _text(payload, name):
            errors.append(MissingField(name))


def _as_bool(v: Any) -> bool | None:
    # form posts send "true"/"false"; JSON sends real booleans
    if isinstance(v, bool):
        return v
    if isinstance(v, str) and v.strip().lower() in {"true", "false", "yes", "no"}:
        return v.strip().lower() in {"true", "yes"}
    return None


def _optional_int(
    payload: Mapping[str, Any], name: str, lo: int, hi: int, errors: list[StepError]
) -> int | None:
    v = payload.get(name)
    if v in (None, ""):
        return None
    try:
        n = int(v)
    except (TypeError, ValueError):
        errors.append(InvalidFormat(name, "must be a whole number"))
        return None
    if not lo <= n <= hi:
        errors.append(InvalidFormat(name, f"must be between {lo} and {hi}"))
        return None
    return n


def count_words(text: str) -> int:
    return len(text.split())


# ---- per-step rules ----------------------------------------------------


def validate_personal(payload: Mapping[str, Any]) -> StepResult:
    errors: list[StepError] = []
    _require(payload, ["first_name", "last_name", "phone", "date_of_birth"], errors)
    phone = _text(payload, "phone")
    if phone and not PHONE_RE.match(phone):
        errors.append(InvalidFormat("phone", "expected (XXX) XXX-XXXX"))
    dob = _text(payload, "date_of_birth")
    if dob:
        try:
            date.fromisoformat(dob)
        except ValueError:
            errors.append(InvalidFormat("date_of_birth", "expected YYYY-MM-DD"))
    if errors:
        return Invalid(1, tuple(errors))
    return Valid(
        1,
        PersonalInfo(
            first_name=_text(payload, "first_name"),
            last_name=_text(payload, "last_name"),
            phone=phone,
            date_of_birth=dob,
            profile_photo_id=payload.get("profile_photo_id") or None,
        ),
    )


def validate_address(payload: Mapping[str, Any]) -> StepResult:
    errors: list[StepError] = []
    _require(payload, ["street_address", "city", "zip_code"], errors)
    zip_code = _text(payload, "zip_code")
    if zip_code and not is_valid_region_code(zip_code):
        errors.append(
            InvalidFormat(
                "zip_code",
                f"must be an in-state ZIP code ({settings.REGION_ZIP_MIN}-{settings.REGION_ZIP_MAX})",
            )
        )
    if errors:
        return Invalid(2, tuple(errors))
    # region is never taken from input
    return Valid(
        2,
        Address(
            street_address=_text(payload, "street_address"),
            city=_text(payload, "city"),
            state=settings.REGION_CODE,
            zip_code=zip_code,
        ),
    )


def validate_education(payload: Mapping[str, Any]) -> StepResult:
    errors: list[StepError] = []
    _require(
        payload,
        [
            "high_school_name",
            "high_school_city",
            "high_school_state",
            "graduation_date",
            "college_name",
            "college_city",
            "college_state",
        ],
        errors,
    )

    gpa: float | None = None
    raw_gpa = payload.get("gpa")
    if raw_gpa in (None, ""):
        errors.append(MissingField("gpa"))
    else:
        try:
            gpa = float(raw_gpa)
        except (TypeError, ValueError):
            gpa = None
        if gpa is None or not 0.0 <= gpa <= 4.0:
            errors.append(InvalidFormat("gpa", "must be a number between 0.0 and 4.0"))
            gpa = None
        elif gpa < MIN_GPA:
            errors.append(EligibilityNotMet("gpa", f"a minimum GPA of {MIN_GPA} is required"))

    year = _text(payload, "year_in_college").lower()
    if not year:
        errors.append(MissingField("year_in_college"))
    elif year not in {y.value for y in YearInCollege}:
        errors.append(InvalidFormat("year_in_college", "must be freshman, sophomore, junior or senior"))

    act = _optional_int(payload, "act_score", 1, 36, errors)
    sat = _optional_int(payload, "sat_score", 400, 1600, errors)

    if errors:
        return Invalid(3, tuple(errors))
    return Valid(
        3,
        Education(
            high_school_name=_text(payload, "high_school_name"),
            high_school_city=_text(payload, "high_school_city"),
            high_school_state=_text(payload, "high_school_state"),
            graduation_date=_text(payload, "graduation_date"),
            gpa=gpa,
            act_score=act,
            sat_score=sat,
            college_name=_text(payload, "college_name"),
            college_city=_text(payload, "college_city"),
            college_state=_text(payload, "college_state"),
            year_in_college=YearInCollege(year),
            major=_text(payload, "major") or None,
        ),
    )


def validate_eligibility(payload: Mapping[str, Any]) -> StepResult:
    """
    Four yes/no questions. Every one needs an answer; only full-time enrollment
    and residency can block.
    """
    errors: list[StepError] = []
    answers: dict[str, bool] = {}
    for name, gating, reason in ELIGIBILITY_QUESTIONS:
        raw = payload.get(name)
        if raw is None or raw == "":
            errors.append(MissingField(name))
            continue
        answer = _as_bool(raw)
        if answer is None:
            errors.append(InvalidFormat(name, "must be yes or no"))
            continue
        answers[name] = answer
        if gating and not answer:
            errors.append(EligibilityNotMet(name, reason))
    if errors:
        return Invalid(4, tuple(errors))
    return Valid(4, EligibilityAnswers(**answers))


def validate_documents(payload: Mapping[str, Any]) -> StepResult:
    errors: list[StepError] = []
    _require(payload, ["transcript_file_id", "essay_text"], errors)
    essay = _text(payload, "essay_text")
    words = count_words(essay)
    if essay and not ESSAY_MIN_WORDS <= words <= ESSAY_MAX_WORDS:
        errors.append(
            InvalidFormat(
                "essay_text",
                f"essay must be {ESSAY_MIN_WORDS}-{ESSAY_MAX_WORDS} words (got {words})",
            )
        )
    if errors:
        return Invalid(5, tuple(errors))
    return Valid(
        5,
        Documents(
            transcript_file_id=_text(payload, "transcript_file_id"),
            essay_file_id=payload.get("essay_file_id") or None,
            essay_text=essay,
            essay_word_count=words,
        ),
    )


def validate_recommenders(payload: Mapping[str, Any]) -> StepResult:
    errors: list[StepError] = []
    items = payload.get("recommenders")
    if not isinstance(items, list) or not items:
        return Invalid(6, (MissingField("recommenders"),))
    if len(items) != REQUIRED_RECOMMENDERS:
        errors.append(
            InvalidFormat("recommenders", f"exactly {REQUIRED_RECOMMENDERS} recommenders are required")
        )

    parsed: list[Recommender] = []
    seen: set[str] = set()
    for i, item in enumerate(items):
        prefix = f"recommenders[{i}]"
        if not isinstance(item, Mapping):
            errors.append(InvalidFormat(prefix, "must be an object"))
            continue
        local: list[StepError] = []
        _require(item, ["name", "email"], local)
        local = [MissingField(f"{prefix}.{e.field}") for e in local]
        email = _text(item, "email").lower()
        if email and not EMAIL_RE.match(email):
            local.append(InvalidFormat(f"{prefix}.email", "not a valid email address"))
        elif email in seen:
            local.append(InvalidFormat(f"{prefix}.email", "recommenders must be different people"))
        kind = _text(item, "type") or RecommenderType.OTHER.value
        if kind not in {t.value for t in RecommenderType}:
            local.append(InvalidFormat(f"{prefix}.type", "unknown recommender type"))
        if local:
            errors.extend(local)
            continue
        seen.add(email)
        parsed.append(
            Recommender(
                name=_text(item, "name"),
                email=email,
                type=RecommenderType(kind),
                organization=_text(item, "organization") or None,
                relationship=_text(item, "relationship") or None,
            )
        )
    if errors:
        return Invalid(6, tuple(errors))
    return Valid(6, Recommenders(recommenders=parsed))


def validate_review(payload: Mapping[str, Any]) -> StepResult:
    errors: list[StepError] = []
    _require(payload, ["signature"], errors)
    for name in ("certify_accurate", "certify_publish", "certify_disqualify"):
        if _as_bool(payload.get(name)) is not True:
            errors.append(MissingField(name))
    if errors:
        return Invalid(7, tuple(errors))
    return Valid(
        7,
        ReviewAttestation(
            signature=_text(payload, "signature"),
            certify_accurate=True,
            certify_publish=True,
            certify_disqualify=True,
        ),
    )


VALIDATORS: dict[int, Callable[[Mapping[str, Any]], StepResult]] = {
    1: validate_personal,
    2: validate_address,
    3: validate_education,
    4: validate_eligibility,
    5: validate_documents,
    6: validate_recommenders,
    7: validate_review,
}


def validate_step(step: int, payload: Mapping[str, Any]) -> StepResult:
    """Dispatch to the rule set for `step`. Unknown step numbers are a caller bug."""
    try:
        validator = VALIDATORS[step]
    except KeyError:
        raise ValueError(f"unknown step {step}") from None
    return validator(payload or {})


def eligibility_gate_failures(answers: EligibilityAnswers | None) -> list[EligibilityNotMet]:
    """Gating checks re-run at submit time against the stored answers."""
    if answers is None:
        return [EligibilityNotMet("eligibility", "eligibility questions not answered")]
    out = []
    for name, gating, reason in ELIGIBILITY_QUESTIONS:
        if gating and not getattr(answers, name):
            out.append(EligibilityNotMet(name, reason))
    return out
