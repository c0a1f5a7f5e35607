from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from loanmatch.api.dependencies import get_record_store, get_tracker_registry
from loanmatch.core.errors import (
    InvalidTransitionError,
    OfferConflictError,
    OfferExpiredError,
    OfferNotFoundError,
    PersistenceError,
    RecordNotFoundError,
    TrackerNotFoundError,
)
from loanmatch.models.offer_generation import (
    AcceptOfferResponse,
    TrackerStateResponse,
    WithdrawRequest,
)
from loanmatch.models.records import (
    ApproverAction,
    LoanApplication,
    LoanApplicationUpdate,
    StatusHistoryEntry,
)
from loanmatch.services import loan_applications
from loanmatch.services.application_tracker import MultiBankApplicationTracker, TrackerRegistry
from loanmatch.services.record_store import RecordStore

router = APIRouter(prefix="/applications", tags=["applications"])


def _tracker_state(tracker: MultiBankApplicationTracker) -> TrackerStateResponse:
    return TrackerStateResponse(
        application_id=tracker.application_id,
        offers=tracker.offers,
        bank_applications=tracker.applications,
        accepted_lender_id=tracker.accepted_lender_id,
        pending_persistence=tracker.pending_persistence,
    )


def _get_tracker(registry: TrackerRegistry, application_id: str) -> MultiBankApplicationTracker:
    try:
        return registry.get(application_id)
    except TrackerNotFoundError as ex:
        raise HTTPException(status_code=404, detail=str(ex))


def _application_exists(store: RecordStore, application_id: str) -> bool:
    try:
        store.get_record("loan_application", application_id)
    except RecordNotFoundError:
        return False
    return True


def _record_acceptance(store: RecordStore, tracker: MultiBankApplicationTracker, lender_name: str) -> None:
    loan_applications.add_status_history(
        store,
        tracker.application_id,
        "pending_final_approval",
        f"Accepted offer from {lender_name}; other offers automatically rejected",
    )


# ── Loan application records ───────────────────────────────────────

@router.post("", response_model=LoanApplication, status_code=201)
def create_application(
    application: LoanApplication,
    store: RecordStore = Depends(get_record_store),
) -> LoanApplication:
    return loan_applications.create_loan_application(store, application)


@router.get("", response_model=List[LoanApplication])
def list_applications(store: RecordStore = Depends(get_record_store)) -> List[LoanApplication]:
    return loan_applications.list_loan_applications(store)


@router.get("/{application_id}", response_model=LoanApplication)
def get_application(application_id: str, store: RecordStore = Depends(get_record_store)) -> LoanApplication:
    try:
        return loan_applications.get_loan_application(store, application_id)
    except RecordNotFoundError as ex:
        raise HTTPException(status_code=404, detail=str(ex))


@router.put("/{application_id}", response_model=LoanApplication)
def update_application(
    application_id: str,
    updates: LoanApplicationUpdate,
    store: RecordStore = Depends(get_record_store),
) -> LoanApplication:
    try:
        return loan_applications.update_loan_application(store, application_id, updates)
    except RecordNotFoundError as ex:
        raise HTTPException(status_code=404, detail=str(ex))


@router.get("/{application_id}/history", response_model=List[StatusHistoryEntry])
def get_history(application_id: str, store: RecordStore = Depends(get_record_store)) -> List[StatusHistoryEntry]:
    return loan_applications.get_status_history(store, application_id)


@router.get("/{application_id}/approver-actions", response_model=List[ApproverAction])
def get_approver_actions(application_id: str, store: RecordStore = Depends(get_record_store)) -> List[ApproverAction]:
    return loan_applications.get_approver_actions(store, application_id)


# ── Multi-bank offers ──────────────────────────────────────────────

@router.get("/{application_id}/bank-applications", response_model=TrackerStateResponse)
def get_bank_applications(
    application_id: str,
    registry: TrackerRegistry = Depends(get_tracker_registry),
) -> TrackerStateResponse:
    return _tracker_state(_get_tracker(registry, application_id))


@router.post("/{application_id}/offers/{lender_id}/accept", response_model=AcceptOfferResponse)
def accept_offer(
    application_id: str,
    lender_id: str,
    registry: TrackerRegistry = Depends(get_tracker_registry),
    store: RecordStore = Depends(get_record_store),
) -> AcceptOfferResponse:
    tracker = _get_tracker(registry, application_id)
    # History is written once, when the accepted terms first reach the parent record
    needs_history = tracker.accepted_lender_id is None or tracker.pending_persistence

    try:
        accepted = tracker.accept_offer(lender_id)
    except OfferNotFoundError as ex:
        raise HTTPException(status_code=404, detail=str(ex))
    except OfferConflictError as ex:
        raise HTTPException(status_code=409, detail=str(ex))
    except OfferExpiredError as ex:
        raise HTTPException(status_code=410, detail=str(ex))
    except InvalidTransitionError as ex:
        raise HTTPException(status_code=409, detail=str(ex))
    except PersistenceError as ex:
        # The offer states changed; only the parent record is out of date
        raise HTTPException(
            status_code=502,
            detail={
                "message": str(ex),
                "state_committed": True,
                "retry_path": f"/api/applications/{application_id}/persistence/retry",
            },
        )

    persisted = not tracker.pending_persistence and _application_exists(store, application_id)
    if needs_history and persisted:
        _record_acceptance(store, tracker, accepted.lender_name)

    state = _tracker_state(tracker)
    return AcceptOfferResponse(**state.model_dump(), accepted_offer=accepted, persisted=persisted)


@router.post("/{application_id}/offers/{lender_id}/withdraw", response_model=TrackerStateResponse)
def withdraw_application(
    application_id: str,
    lender_id: str,
    req: Optional[WithdrawRequest] = Body(None),
    registry: TrackerRegistry = Depends(get_tracker_registry),
) -> TrackerStateResponse:
    tracker = _get_tracker(registry, application_id)
    try:
        tracker.withdraw(lender_id, notes=req.notes if req else None)
    except OfferNotFoundError as ex:
        raise HTTPException(status_code=404, detail=str(ex))
    except InvalidTransitionError as ex:
        raise HTTPException(status_code=409, detail=str(ex))
    return _tracker_state(tracker)


@router.post("/{application_id}/persistence/retry", response_model=TrackerStateResponse)
def retry_persistence(
    application_id: str,
    registry: TrackerRegistry = Depends(get_tracker_registry),
    store: RecordStore = Depends(get_record_store),
) -> TrackerStateResponse:
    tracker = _get_tracker(registry, application_id)
    try:
        retried = tracker.retry_persistence()
    except PersistenceError as ex:
        raise HTTPException(status_code=502, detail={"message": str(ex), "state_committed": True})

    if retried:
        accepted = tracker.get_offer(tracker.accepted_lender_id)
        _record_acceptance(store, tracker, accepted.lender_name)
    return _tracker_state(tracker)
