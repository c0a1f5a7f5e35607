from __future__ import annotations

from typing import List, Literal, Tuple

from pydantic import BaseModel, Field, model_validator

LenderTier = Literal["universal", "commercial", "digital", "fintech"]


class LenderProfile(BaseModel):
    # Identity
    id: str
    name: str
    logo_url: str = ""
    tier: LenderTier
    description: str = ""

    # Eligibility criteria
    min_credit_score: int = Field(..., ge=300, le=850)
    max_dti: float = Field(..., ge=0)            # e.g. 0.40 = 40%
    min_monthly_income: float = Field(..., gt=0)

    # Loan product bounds
    min_amount: float = Field(..., gt=0)
    max_amount: float = Field(..., gt=0)
    min_term: int = Field(..., gt=0)             # months
    max_term: int = Field(..., gt=0)             # months
    base_interest_rate: float = 0.0
    interest_rate_range: Tuple[float, float]     # [min, max] annual %

    # Processing info
    avg_approval_time: str                       # "24 hours", "3-5 days"
    approval_rate: float = Field(..., ge=0, le=1)
    processing_fee: float = Field(..., ge=0)     # percentage of the loan amount

    features: List[str] = []
    requires_manual_review: bool = False
    is_active: bool = True

    @model_validator(mode="after")
    def _check_bounds(self) -> "LenderProfile":
        min_rate, max_rate = self.interest_rate_range
        if min_rate < 0 or min_rate > max_rate:
            raise ValueError(f"interest_rate_range must be ascending and non-negative, got {self.interest_rate_range}")
        if self.min_amount > self.max_amount:
            raise ValueError("min_amount cannot exceed max_amount")
        if self.min_term > self.max_term:
            raise ValueError("min_term cannot exceed max_term")
        return self

    @property
    def min_rate(self) -> float:
        return self.interest_rate_range[0]

    @property
    def max_rate(self) -> float:
        return self.interest_rate_range[1]
