from __future__ import annotations

from typing import Any, Dict, Literal, Optional
from datetime import datetime

from pydantic import BaseModel, Field

RecordKind = Literal["loan_application", "ai_assessment", "approver_action", "status_history"]

LoanApplicationStatus = Literal[
    "pending",
    "approved",
    "rejected",
    "under_review",
    "pending_final_approval",
    "fully_approved",
    "disbursed",
]


class LoanApplication(BaseModel):
    id: Optional[str] = None

    # Applicant identity
    applicant_name: Optional[str] = None
    applicant_email: Optional[str] = None
    applicant_phone: Optional[str] = None

    # Requested terms
    loan_amount: float = Field(..., gt=0)
    interest_rate: float = Field(..., ge=0)
    loan_term: int = Field(..., gt=0)
    monthly_payment: float = Field(..., ge=0)

    # Verification
    bank_name: Optional[str] = None
    bank_connected: bool = False
    account_verified: bool = False
    account_balance: Optional[float] = None
    monthly_income: Optional[float] = None
    identity_verified: bool = False

    # Copied from the latest AI assessment
    ai_score: Optional[float] = None
    ai_recommendation: Optional[str] = None
    ai_confidence: Optional[float] = None

    status: LoanApplicationStatus = "pending"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Denormalized snapshot of the accepted offer (multi-bank flow)
    accepted_bank_id: Optional[str] = None
    accepted_bank_name: Optional[str] = None
    accepted_bank_logo: Optional[str] = None
    accepted_offer_rate: Optional[float] = None
    accepted_offer_term: Optional[int] = None
    accepted_offer_amount: Optional[float] = None
    accepted_offer_monthly_payment: Optional[float] = None
    accepted_offer_total_interest: Optional[float] = None
    accepted_offer_processing_fee: Optional[float] = None
    accepted_at: Optional[datetime] = None


class LoanApplicationUpdate(BaseModel):
    """Partial update; only fields that were explicitly set are written."""

    applicant_name: Optional[str] = None
    applicant_email: Optional[str] = None
    applicant_phone: Optional[str] = None
    loan_amount: Optional[float] = Field(None, gt=0)
    interest_rate: Optional[float] = Field(None, ge=0)
    loan_term: Optional[int] = Field(None, gt=0)
    monthly_payment: Optional[float] = Field(None, ge=0)
    bank_name: Optional[str] = None
    bank_connected: Optional[bool] = None
    account_verified: Optional[bool] = None
    account_balance: Optional[float] = None
    monthly_income: Optional[float] = None
    identity_verified: Optional[bool] = None
    status: Optional[LoanApplicationStatus] = None
    status_notes: Optional[str] = None


class AIAssessment(BaseModel):
    id: Optional[str] = None
    application_id: str
    overall_score: float
    recommendation: str
    confidence: float = Field(..., ge=0, le=1)

    identity_score: Optional[float] = None
    credit_score: Optional[int] = None
    risk_score: Optional[float] = None
    fraud_risk: Optional[str] = None
    debt_to_income: Optional[float] = None
    payment_history_score: Optional[float] = None
    affordability_score: Optional[float] = None
    assessment_data: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None


class ApproverAction(BaseModel):
    id: Optional[str] = None
    application_id: str
    approver_name: str
    approver_email: str
    action: Literal["approved", "rejected"]
    justification: str
    created_at: Optional[datetime] = None


class StatusHistoryEntry(BaseModel):
    id: Optional[str] = None
    application_id: str
    status: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
