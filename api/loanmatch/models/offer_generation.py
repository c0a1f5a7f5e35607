from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, model_validator

from loanmatch.models.applicants import ApplicantFinancials, ApplicantProfile
from loanmatch.models.offers import BankApplication, Offer


class GenerateOffersRequest(BaseModel):
    # Either a ready-made profile or the raw wizard inputs to derive one from
    applicant: Optional[ApplicantProfile] = None
    financials: Optional[ApplicantFinancials] = None

    selected_lender_ids: List[str] = []      # empty = all active lenders
    application_id: Optional[str] = None     # parent loan application, when one exists
    seed: Optional[int] = None               # reproducible rate jitter

    @model_validator(mode="after")
    def _exactly_one_input(self) -> "GenerateOffersRequest":
        if (self.applicant is None) == (self.financials is None):
            raise ValueError("Provide exactly one of 'applicant' or 'financials'")
        return self


class GenerateOffersResponse(BaseModel):
    application_id: str
    applicant: ApplicantProfile
    offers: List[Offer]
    bank_applications: List[BankApplication]


class TrackerStateResponse(BaseModel):
    application_id: str
    offers: List[Offer]
    bank_applications: List[BankApplication]
    accepted_lender_id: Optional[str] = None
    pending_persistence: bool = False


class AcceptOfferResponse(TrackerStateResponse):
    accepted_offer: Offer
    persisted: bool


class WithdrawRequest(BaseModel):
    notes: Optional[str] = None


class ExplainOffersRequest(BaseModel):
    applicant: ApplicantProfile
    offers: List[Offer]


class ExplainOffersResponse(BaseModel):
    explanation: str
    source: str        # "llm" or "rules"
