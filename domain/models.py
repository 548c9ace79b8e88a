from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, Field


class ApplicationStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    DECIDED = "decided"


class Role(str, Enum):
    APPLICANT = "applicant"
    COMMITTEE = "committee"
    ADMIN = "admin"


class Decision(str, Enum):
    SELECTED = "selected"
    FINALIST = "finalist"
    NOT_SELECTED = "not_selected"


class YearInCollege(str, Enum):
    FRESHMAN = "freshman"
    SOPHOMORE = "sophomore"
    JUNIOR = "junior"
    SENIOR = "senior"


class RecommenderType(str, Enum):
    EDUCATOR = "educator"
    COMMUNITY_GROUP = "community_group"
    OTHER = "other"


# ---- step groups -------------------------------------------------------


class PersonalInfo(BaseModel):
    first_name: str
    last_name: str
    phone: str
    date_of_birth: str
    profile_photo_id: Optional[str] = None


class Address(BaseModel):
    street_address: str
    city: str
    state: str
    zip_code: str


class Education(BaseModel):
    high_school_name: str
    high_school_city: str
    high_school_state: str
    graduation_date: str
    gpa: float
    act_score: Optional[int] = None
    sat_score: Optional[int] = None
    college_name: str
    college_city: str
    college_state: str
    year_in_college: YearInCollege
    major: Optional[str] = None


class EligibilityAnswers(BaseModel):
    is_first_time_applying: bool
    is_previous_recipient: bool
    is_full_time_student: bool
    is_state_resident: bool


class Documents(BaseModel):
    transcript_file_id: str
    essay_file_id: Optional[str] = None
    essay_text: str
    essay_word_count: int


class Recommender(BaseModel):
    name: str
    email: str
    type: RecommenderType
    organization: Optional[str] = None
    relationship: Optional[str] = None


class Recommenders(BaseModel):
    recommenders: List[Recommender]


class ReviewAttestation(BaseModel):
    signature: str
    certify_accurate: bool
    certify_publish: bool
    certify_disqualify: bool


# step number -> attribute on Application holding that step's group
STEP_GROUPS = {
    1: "personal",
    2: "address",
    3: "education",
    4: "eligibility",
    5: "documents",
    6: "recommenders",
    7: "review",
}
TOTAL_STEPS = len(STEP_GROUPS)


class Application(BaseModel):
    id: str
    user_id: str
    status: ApplicationStatus = ApplicationStatus.DRAFT
    current_step: int = 1
    completed_steps: List[int] = []

    personal: Optional[PersonalInfo] = None
    address: Optional[Address] = None
    education: Optional[Education] = None
    eligibility: Optional[EligibilityAnswers] = None
    documents: Optional[Documents] = None
    recommenders: Optional[Recommenders] = None
    review: Optional[ReviewAttestation] = None

    created_at: int
    updated_at: int
    submitted_at: Optional[int] = None
    reviewer_id: Optional[str] = None
    reviewed_at: Optional[int] = None
    decision: Optional[Decision] = None
    decided_at: Optional[int] = None

    ai_summary: Optional[str] = None
    ai_highlights: List[str] = []
    ai_summary_generated_at: Optional[int] = None

    def first_incomplete_step(self) -> int:
        for step in range(1, TOTAL_STEPS + 1):
            if step not in self.completed_steps:
                return step
        return TOTAL_STEPS

    def is_complete(self) -> bool:
        return all(step in self.completed_steps for step in STEP_GROUPS)


class Recommendation(BaseModel):
    id: str
    application_id: str
    recommender_email: str
    recommender_name: Optional[str] = None
    recommender_type: RecommenderType = RecommenderType.OTHER
    recommender_organization: Optional[str] = None
    status: str = "pending"
    letter_text: Optional[str] = None
    letter_file_id: Optional[str] = None
    submitted_at: Optional[int] = None
    created_at: int = 0


class Setting(BaseModel):
    key: str
    value: str
    updated_at: int
    updated_by: Optional[str] = None


class User(BaseModel):
    id: str
    email: str = ""
    role: Role = Role.APPLICANT
    name: Optional[str] = None


class AuditEntry(BaseModel):
    action: str
    user_id: Optional[str] = None
    application_id: Optional[str] = None
    details: dict = Field(default_factory=dict)
    created_at: int


# ---- committee evaluation ----------------------------------------------


class Rating(str, Enum):
    STRONG_YES = "strong_yes"
    YES = "yes"
    MAYBE = "maybe"
    NO = "no"
    STRONG_NO = "strong_no"


RATING_POINTS = {
    Rating.STRONG_YES: 5,
    Rating.YES: 4,
    Rating.MAYBE: 3,
    Rating.NO: 2,
    Rating.STRONG_NO: 1,
}


class Evaluation(BaseModel):
    """One row per (application, evaluator); re-evaluating overwrites it."""

    id: str
    application_id: str
    evaluator_id: str
    rating: Rating
    notes: Optional[str] = None
    created_at: int
    updated_at: int


class Candidate(BaseModel):
    application: Application
    my_evaluation: Optional[Evaluation] = None
    evaluation_count: int = 0
    recommendation_count: int = 0


class CandidateDetails(BaseModel):
    application: Application
    my_evaluation: Optional[Evaluation] = None
    # hidden until the caller has submitted their own evaluation
    other_evaluations: List[Evaluation] = []
    recommendations: List[Recommendation] = []


class Ranking(BaseModel):
    application: Application
    average_rating: float
    evaluation_count: int
    evaluations: List[Evaluation] = []
