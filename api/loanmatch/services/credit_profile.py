"""
Derive an ApplicantProfile from the raw inputs the wizard collects.

There is no bureau integration: the credit score is a heuristic built from
income, savings and (when the applicant linked a bank account) transaction
signals.
"""

from __future__ import annotations

import logging

from loanmatch.models.applicants import (
    ApplicantFinancials,
    ApplicantProfile,
    MAX_CREDIT_SCORE,
    MIN_CREDIT_SCORE,
)

logger = logging.getLogger(__name__)

BASE_CREDIT_SCORE = 650

# Used when the wizard did not capture these values
DEFAULT_MONTHLY_INCOME = 50_000
DEFAULT_ACCOUNT_BALANCE = 100_000
ASSUMED_DEBT_SHARE = 0.20

# (threshold, points), checked from the highest threshold down
_INCOME_POINTS = [(80_000, 80), (50_000, 50), (30_000, 30), (20_000, 10)]
_BALANCE_POINTS = [(200_000, 50), (100_000, 30), (50_000, 20), (20_000, 10)]


def _points_for(value: float | None, table: list[tuple[int, int]]) -> int:
    if not value:
        return 0
    for threshold, points in table:
        if value >= threshold:
            return points
    return 0


def calculate_credit_score(
    monthly_income: float | None,
    account_balance: float | None,
    transaction_count: int | None = None,
    has_regular_deposits: bool = False,
    overdraft_count: int | None = None,
) -> int:
    score = BASE_CREDIT_SCORE
    score += _points_for(monthly_income, _INCOME_POINTS)
    score += _points_for(account_balance, _BALANCE_POINTS)

    # Linked-account signals
    if transaction_count is not None and transaction_count > 100:
        score += 20
    if has_regular_deposits:
        score += 30
    if overdraft_count == 0:
        score += 20

    return min(MAX_CREDIT_SCORE, max(MIN_CREDIT_SCORE, score))


def calculate_dti(monthly_income: float, monthly_debt_payments: float) -> float:
    if monthly_income == 0:
        return 1.0
    return monthly_debt_payments / monthly_income


def build_applicant_profile(financials: ApplicantFinancials) -> ApplicantProfile:
    income = financials.monthly_income or DEFAULT_MONTHLY_INCOME
    balance = financials.account_balance or DEFAULT_ACCOUNT_BALANCE

    if financials.monthly_debt_payments is not None:
        monthly_debt = financials.monthly_debt_payments
    else:
        monthly_debt = income * ASSUMED_DEBT_SHARE

    credit_score = calculate_credit_score(
        monthly_income=income,
        account_balance=balance,
        transaction_count=financials.transaction_count,
        has_regular_deposits=financials.has_regular_deposits,
        overdraft_count=financials.overdraft_count,
    )

    profile = ApplicantProfile(
        credit_score=credit_score,
        monthly_income=income,
        loan_amount=financials.loan_amount,
        loan_term=financials.loan_term,
        debt_to_income=calculate_dti(income, monthly_debt),
        employment_status=financials.employment_status,
        has_existing_loans=financials.has_existing_loans,
    )
    logger.debug("Built applicant profile: %s", profile)
    return profile
