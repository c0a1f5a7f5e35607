"""
Fixed-rate amortization for loan offers.

PMT = P * [r(1+r)^n] / [(1+r)^n - 1], with r the monthly rate.
"""

from __future__ import annotations

from pydantic import BaseModel

from loanmatch.core.errors import InvalidLoanInputError


class PaymentSummary(BaseModel):
    monthly_payment: float
    total_payment: float
    total_interest: float


def _validate(principal: float, annual_rate_percent: float, term_months: int) -> None:
    if principal <= 0:
        raise InvalidLoanInputError(f"principal must be positive, got {principal}")
    if annual_rate_percent < 0:
        raise InvalidLoanInputError(f"annual rate must not be negative, got {annual_rate_percent}")
    if isinstance(term_months, bool) or int(term_months) != term_months or term_months <= 0:
        raise InvalidLoanInputError(f"term must be a positive whole number of months, got {term_months}")


def calculate_monthly_payment(
    principal: float,
    annual_rate_percent: float,
    term_months: int,
) -> float:
    _validate(principal, annual_rate_percent, term_months)

    monthly_rate = annual_rate_percent / 100 / 12
    n = int(term_months)

    if monthly_rate == 0:
        # Straight-line repayment, left unrounded
        return principal / n

    growth = (1 + monthly_rate) ** n
    payment = principal * (monthly_rate * growth) / (growth - 1)
    return round(payment, 2)


def summarize_payment(
    principal: float,
    annual_rate_percent: float,
    term_months: int,
) -> PaymentSummary:
    """
    Monthly payment plus lifetime totals. Totals are derived from the rounded
    monthly payment so that total_payment == monthly_payment * term holds exactly.
    """
    monthly = calculate_monthly_payment(principal, annual_rate_percent, term_months)
    total_payment = monthly * term_months
    return PaymentSummary(
        monthly_payment=monthly,
        total_payment=total_payment,
        total_interest=total_payment - principal,
    )
