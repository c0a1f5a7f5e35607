from __future__ import annotations

from typing import List, Sequence

from loanmatch.models.applicants import ApplicantProfile
from loanmatch.models.lenders import LenderProfile
from loanmatch.models.offers import Offer

MAX_REASON_PHRASES = 2
VERY_HIGH_APPROVAL_PROBABILITY = 0.85
LOW_PROCESSING_FEE = 1.0
PREMIUM_CREDIT_SCORE = 700

FALLBACK_REASON = "Good balance of rate, terms, and approval probability for your profile"


def generate_recommendation_reason(
    applicant: ApplicantProfile,
    lender: LenderProfile,
    offer: Offer,
    all_offers: Sequence[Offer],
) -> str:
    """
    Explain in plain words why an offer is worth a look.

    Phrases are collected in priority order and the first two are joined with
    "and"; an offer with nothing notable gets a generic reason.
    """
    reasons: List[str] = []

    has_best_rate = offer.interest_rate == min(o.interest_rate for o in all_offers)
    has_best_monthly = offer.monthly_payment == min(o.monthly_payment for o in all_offers)

    if has_best_rate:
        reasons.append("lowest interest rate available")
    elif has_best_monthly:
        reasons.append("lowest monthly payment")

    if offer.approval_probability >= VERY_HIGH_APPROVAL_PROBABILITY:
        reasons.append("very high approval probability")

    if "hour" in lender.avg_approval_time or "24" in lender.avg_approval_time:
        reasons.append("fastest approval time")

    if lender.processing_fee <= LOW_PROCESSING_FEE:
        reasons.append("lowest processing fee")

    if lender.tier == "digital":
        reasons.append("fully digital process with mobile-first experience")

    if lender.tier == "universal" and applicant.credit_score >= PREMIUM_CREDIT_SCORE:
        reasons.append("premium bank with excellent service for qualified borrowers")

    if not reasons:
        return FALLBACK_REASON

    return " and ".join(reasons[:MAX_REASON_PHRASES])
