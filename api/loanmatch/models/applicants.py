from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

MIN_CREDIT_SCORE = 300
MAX_CREDIT_SCORE = 850


class ApplicantProfile(BaseModel):
    """
    Financial snapshot of one applicant, computed per request and used as the
    input to eligibility, pricing and approval scoring.
    """

    credit_score: int = Field(..., ge=MIN_CREDIT_SCORE, le=MAX_CREDIT_SCORE)
    monthly_income: float = Field(..., ge=0)
    loan_amount: float = Field(..., gt=0)
    loan_term: int = Field(..., gt=0)          # months
    debt_to_income: float = Field(..., ge=0)   # monthly debt / monthly income, 1.0 when income is 0

    employment_status: Optional[str] = None
    has_existing_loans: Optional[bool] = None


class ApplicantFinancials(BaseModel):
    """
    Raw inputs collected by the application wizard, before a credit score and
    DTI have been derived from them.
    """

    monthly_income: Optional[float] = Field(None, ge=0)
    account_balance: Optional[float] = Field(None, ge=0)
    monthly_debt_payments: Optional[float] = Field(None, ge=0)

    # Bank-linking signals, when the applicant connected an account
    transaction_count: Optional[int] = Field(None, ge=0)
    has_regular_deposits: bool = False
    overdraft_count: Optional[int] = Field(None, ge=0)

    loan_amount: float = Field(..., gt=0)
    loan_term: int = Field(..., gt=0)
    employment_status: Optional[str] = "employed"
    has_existing_loans: Optional[bool] = False
