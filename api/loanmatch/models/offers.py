from __future__ import annotations

from typing import Literal, Optional
from datetime import datetime

from pydantic import BaseModel

OfferStatus = Literal[
    "pending", "approved", "rejected", "expired", "accepted", "awaiting_disbursement"
]

BankApplicationStatus = Literal[
    "submitted",
    "under_review",
    "approved",
    "rejected",
    "withdrawn",
    "accepted",
    "pending_final_approval",
    "fully_approved",
    "disbursed",
]


class Offer(BaseModel):
    lender_id: str
    lender_name: str
    lender_logo_url: str = ""

    # Offer details
    loan_amount: float
    interest_rate: float             # annual %
    term: int                        # months
    monthly_payment: float
    total_interest: float
    total_payment: float

    # Fees
    processing_fee: float            # %
    processing_fee_amount: float

    # Approval info
    approval_probability: float      # 0–1
    estimated_approval_time: str

    # Recommendation (reason is set only on recommended offers)
    is_recommended: bool = False
    recommendation_reason: Optional[str] = None

    status: OfferStatus = "pending"
    expires_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    rejected_reason: Optional[str] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class BankApplication(BaseModel):
    id: str
    application_id: str              # parent loan application
    lender_id: str
    lender_name: str

    applied_amount: float
    applied_term: int

    status: BankApplicationStatus
    status_updated_at: datetime

    # Snapshot of the offer once the lender has approved it
    offer: Optional[Offer] = None

    submitted_at: datetime
    reviewed_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None

    notes: Optional[str] = None
    rejection_reason: Optional[str] = None
