import logging
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException

from loanmatch.api.dependencies import get_lenders, get_record_store, get_tracker_registry
from loanmatch.core.config import settings
from loanmatch.core.errors import OfferConflictError, RecordNotFoundError
from loanmatch.models.offer_generation import (
    ExplainOffersRequest,
    ExplainOffersResponse,
    GenerateOffersRequest,
    GenerateOffersResponse,
)
from loanmatch.services.application_tracker import MultiBankApplicationTracker, TrackerRegistry
from loanmatch.services.credit_profile import build_applicant_profile
from loanmatch.services.lender_directory import LenderDirectory
from loanmatch.services.offer_explainer import explain_offers
from loanmatch.services.offer_generator import generate_bank_offers
from loanmatch.services.pricing import SystemRandomSource
from loanmatch.services.record_store import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/offers", tags=["offers"])


@router.post("/generate", response_model=GenerateOffersResponse)
def generate_offers_endpoint(
    req: GenerateOffersRequest,
    directory: LenderDirectory = Depends(get_lenders),
    store: RecordStore = Depends(get_record_store),
    registry: TrackerRegistry = Depends(get_tracker_registry),
) -> GenerateOffersResponse:
    """
    Price the loan with the applicant's selected lenders (all active lenders
    when none are selected) and open a tracker for the resulting applications.
    """
    applicant = req.applicant or build_applicant_profile(req.financials)

    if req.application_id is not None:
        try:
            record = store.get_record("loan_application", req.application_id)
        except RecordNotFoundError as ex:
            raise HTTPException(status_code=404, detail=str(ex))

        # A new offer set would let a second lender be accepted
        accepted_lender_id = record.get("accepted_bank_id")
        if accepted_lender_id is None and req.application_id in registry:
            accepted_lender_id = registry.get(req.application_id).accepted_lender_id
        if accepted_lender_id is not None:
            raise HTTPException(
                status_code=409,
                detail=str(OfferConflictError(req.application_id, accepted_lender_id)),
            )
        application_id = req.application_id
        tracker_store = store
    else:
        # Anonymous session: nothing to write the accepted offer onto
        application_id = f"loan-{uuid4().hex[:12]}"
        tracker_store = None

    offers = generate_bank_offers(
        applicant,
        directory.select(req.selected_lender_ids),
        rng=SystemRandomSource(req.seed),
        validity_days=settings.offer_validity_days,
    )
    if not offers:
        logger.info("No eligible lenders for application %s", application_id)

    tracker = registry.register(
        MultiBankApplicationTracker(
            application_id,
            offers,
            record_store=tracker_store,
            max_persist_attempts=settings.persist_max_attempts,
        )
    )

    return GenerateOffersResponse(
        application_id=application_id,
        applicant=applicant,
        offers=tracker.offers,
        bank_applications=tracker.applications,
    )


@router.post("/explain", response_model=ExplainOffersResponse)
def explain_offers_endpoint(req: ExplainOffersRequest) -> ExplainOffersResponse:
    explanation, source = explain_offers(req.applicant, req.offers)
    return ExplainOffersResponse(explanation=explanation, source=source)
