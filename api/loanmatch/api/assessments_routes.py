from fastapi import APIRouter, Depends, HTTPException

from loanmatch.api.dependencies import get_record_store
from loanmatch.core.errors import RecordNotFoundError
from loanmatch.models.records import AIAssessment, ApproverAction
from loanmatch.services import loan_applications
from loanmatch.services.record_store import RecordStore

router = APIRouter(tags=["assessments"])


@router.post("/assessments", response_model=AIAssessment, status_code=201)
def create_assessment(
    assessment: AIAssessment,
    store: RecordStore = Depends(get_record_store),
) -> AIAssessment:
    """Store an AI assessment and copy its scores onto the application."""
    try:
        return loan_applications.create_ai_assessment(store, assessment)
    except RecordNotFoundError as ex:
        raise HTTPException(status_code=404, detail=str(ex))


@router.get("/assessments/{application_id}", response_model=AIAssessment)
def get_assessment(application_id: str, store: RecordStore = Depends(get_record_store)) -> AIAssessment:
    assessment = loan_applications.get_latest_ai_assessment(store, application_id)
    if assessment is None:
        raise HTTPException(status_code=404, detail=f"No assessment for application {application_id}")
    return assessment


@router.post("/approver-actions", response_model=ApproverAction, status_code=201)
def create_approver_action(
    action: ApproverAction,
    store: RecordStore = Depends(get_record_store),
) -> ApproverAction:
    try:
        return loan_applications.create_approver_action(store, action)
    except RecordNotFoundError as ex:
        raise HTTPException(status_code=404, detail=str(ex))
