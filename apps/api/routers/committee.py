from typing import List

from fastapi import APIRouter, Depends

from apps.api.deps import get_evaluation_service, get_workflow, require
from apps.api.schemas.applications import DecisionIn, EvaluationIn
from domain.models import Application, Candidate, CandidateDetails, Evaluation, Ranking
from services.auth.guard import ADMIN_POLICY, COMMITTEE_POLICY, AuthContext
from services.evaluation.committee import EvaluationService
from services.workflow.state_machine import ApplicationWorkflow

router = APIRouter(prefix="/committee", tags=["committee"])


@router.get("/candidates", response_model=List[Candidate])
def list_candidates(
    auth: AuthContext = Depends(require(COMMITTEE_POLICY)),
    evaluations: EvaluationService = Depends(get_evaluation_service),
):
    return evaluations.candidates(auth.user)


@router.get("/rankings", response_model=List[Ranking])
def rankings(
    auth: AuthContext = Depends(require(COMMITTEE_POLICY)),
    evaluations: EvaluationService = Depends(get_evaluation_service),
):
    return evaluations.rankings(auth.user)


@router.get("/applications/{application_id}", response_model=CandidateDetails)
def open_application(
    application_id: str,
    auth: AuthContext = Depends(require(COMMITTEE_POLICY)),
    wf: ApplicationWorkflow = Depends(get_workflow),
    evaluations: EvaluationService = Depends(get_evaluation_service),
):
    """Opening a submitted application moves it to under_review."""
    wf.open_for_review(application_id, auth.user)
    return evaluations.details(application_id, auth.user)


@router.post("/applications/{application_id}/evaluation", response_model=Evaluation)
def evaluate(
    application_id: str,
    payload: EvaluationIn,
    auth: AuthContext = Depends(require(COMMITTEE_POLICY)),
    evaluations: EvaluationService = Depends(get_evaluation_service),
):
    return evaluations.evaluate(application_id, payload.rating, payload.notes, auth.user)


@router.post("/applications/{application_id}/decision", response_model=Application)
def record_decision(
    application_id: str,
    payload: DecisionIn,
    auth: AuthContext = Depends(require(ADMIN_POLICY)),
    wf: ApplicationWorkflow = Depends(get_workflow),
):
    return wf.record_decision(application_id, payload.decision, auth.user)
