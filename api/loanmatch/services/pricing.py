"""
Lender-specific pricing and approval scoring.

Both are illustrative heuristics: the rate interpolates across the lender's
published range by credit score, and the approval probability nudges the
lender's historical approval rate up or down per applicant attribute.
"""

from __future__ import annotations

import random
from typing import Iterable, Optional, Protocol

from loanmatch.models.applicants import ApplicantProfile, MAX_CREDIT_SCORE, MIN_CREDIT_SCORE
from loanmatch.models.lenders import LenderProfile

RATE_JITTER = 1.0  # total width, i.e. ±0.5 percentage points

MIN_APPROVAL_PROBABILITY = 0.05
MAX_APPROVAL_PROBABILITY = 0.99


class RandomSource(Protocol):
    def next_float(self) -> float:
        """Return a float in [0, 1)."""
        ...


class SystemRandomSource:
    """random.Random-backed source; pass a seed for reproducible pricing."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def next_float(self) -> float:
        return self._rng.random()


class SequenceRandomSource:
    """Replays fixed values in order, cycling when exhausted. Useful in tests."""

    def __init__(self, values: Iterable[float]):
        self._values = list(values)
        if not self._values:
            raise ValueError("SequenceRandomSource needs at least one value")
        self._index = 0

    def next_float(self) -> float:
        value = self._values[self._index % len(self._values)]
        self._index += 1
        return value


def calculate_interest_rate(
    credit_score: int,
    lender: LenderProfile,
    rng: RandomSource,
) -> float:
    """
    850 maps to the lender's minimum rate and 300 to its maximum, plus a small
    per-lender jitter. The result always stays inside the lender's range.
    """
    min_rate, max_rate = lender.interest_rate_range
    score_factor = (MAX_CREDIT_SCORE - credit_score) / (MAX_CREDIT_SCORE - MIN_CREDIT_SCORE)
    adjustment = (rng.next_float() - 0.5) * RATE_JITTER

    rate = min_rate + (max_rate - min_rate) * score_factor + adjustment
    return round(max(min_rate, min(max_rate, rate)), 2)


def calculate_approval_probability(
    applicant: ApplicantProfile,
    lender: LenderProfile,
) -> float:
    probability = lender.approval_rate

    # Credit score
    if applicant.credit_score >= lender.min_credit_score + 100:
        probability += 0.15
    elif applicant.credit_score >= lender.min_credit_score + 50:
        probability += 0.08
    elif applicant.credit_score < lender.min_credit_score:
        probability -= 0.25

    # Debt-to-income
    if applicant.debt_to_income <= lender.max_dti - 0.15:
        probability += 0.10
    elif applicant.debt_to_income > lender.max_dti:
        probability -= 0.20

    # Income
    income_ratio = applicant.monthly_income / lender.min_monthly_income
    if income_ratio >= 2.0:
        probability += 0.10
    elif income_ratio < 1.0:
        probability -= 0.15

    # Lenders prefer loans in the middle of their amount range
    loan_range = lender.max_amount - lender.min_amount
    if loan_range > 0:
        position = (applicant.loan_amount - lender.min_amount) / loan_range
        if 0.2 < position < 0.8:
            probability += 0.05

    return max(MIN_APPROVAL_PROBABILITY, min(MAX_APPROVAL_PROBABILITY, probability))
