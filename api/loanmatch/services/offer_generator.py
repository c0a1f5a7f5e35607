"""
Offer generation: eligibility, pricing and recommendation across every
candidate lender for one applicant.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

from loanmatch.models.applicants import ApplicantProfile
from loanmatch.models.lenders import LenderProfile
from loanmatch.models.offers import Offer
from loanmatch.services.amortization import summarize_payment
from loanmatch.services.eligibility import filter_eligible_lenders
from loanmatch.services.pricing import (
    RandomSource,
    SystemRandomSource,
    calculate_approval_probability,
    calculate_interest_rate,
)
from loanmatch.services.recommendations import (
    VERY_HIGH_APPROVAL_PROBABILITY,
    generate_recommendation_reason,
)

logger = logging.getLogger(__name__)

AUTO_APPROVE_PROBABILITY = 0.70
DEFAULT_OFFER_VALIDITY_DAYS = 7


def _price_offer(
    applicant: ApplicantProfile,
    lender: LenderProfile,
    rng: RandomSource,
    expires_at: datetime,
) -> Offer:
    interest_rate = calculate_interest_rate(applicant.credit_score, lender, rng)
    payment = summarize_payment(applicant.loan_amount, interest_rate, applicant.loan_term)
    approval_probability = calculate_approval_probability(applicant, lender)

    return Offer(
        lender_id=lender.id,
        lender_name=lender.name,
        lender_logo_url=lender.logo_url,
        loan_amount=applicant.loan_amount,
        interest_rate=interest_rate,
        term=applicant.loan_term,
        monthly_payment=payment.monthly_payment,
        total_interest=payment.total_interest,
        total_payment=payment.total_payment,
        processing_fee=lender.processing_fee,
        processing_fee_amount=applicant.loan_amount * (lender.processing_fee / 100),
        approval_probability=approval_probability,
        estimated_approval_time=lender.avg_approval_time,
        is_recommended=False,
        status="approved" if approval_probability >= AUTO_APPROVE_PROBABILITY else "pending",
        expires_at=expires_at,
    )


def _select_recommendations(
    applicant: ApplicantProfile,
    offers: List[Offer],
    lenders_by_id: Dict[str, LenderProfile],
) -> None:
    """
    Flag up to three offers (already sorted by rate):
      - the best rate, always
      - the highest approval probability, if very high and not the rate leader
      - the first digital-tier lender not already picked
    """
    if not offers:
        return

    picked: List[Offer] = [offers[0]]

    best_approval = max(offers, key=lambda o: o.approval_probability)
    if best_approval is not offers[0] and best_approval.approval_probability >= VERY_HIGH_APPROVAL_PROBABILITY:
        picked.append(best_approval)

    digital_offer = next(
        (
            o for o in offers
            if lenders_by_id[o.lender_id].tier == "digital"
            and all(o is not p for p in picked)
        ),
        None,
    )
    if digital_offer is not None:
        picked.append(digital_offer)

    for offer in picked:
        offer.is_recommended = True
        offer.recommendation_reason = generate_recommendation_reason(
            applicant,
            lenders_by_id[offer.lender_id],
            offer,
            offers,
        )


def generate_bank_offers(
    applicant: ApplicantProfile,
    candidate_lenders: Sequence[LenderProfile],
    rng: Optional[RandomSource] = None,
    now: Optional[datetime] = None,
    validity_days: int = DEFAULT_OFFER_VALIDITY_DAYS,
) -> List[Offer]:
    """
    Price a loan with every eligible candidate lender.

    Returns offers sorted by interest rate (best first), with recommendations
    flagged. An empty list means no lender would take the applicant; callers
    must handle that case, it is not an error.
    """
    rng = rng or SystemRandomSource()
    now = now or datetime.now(timezone.utc)
    expires_at = now + timedelta(days=validity_days)

    eligible = filter_eligible_lenders(applicant, candidate_lenders)
    logger.info(
        "Eligible lenders: %d of %d candidates (score=%d, amount=%.2f, term=%d)",
        len(eligible),
        len(candidate_lenders),
        applicant.credit_score,
        applicant.loan_amount,
        applicant.loan_term,
    )

    offers = [_price_offer(applicant, lender, rng, expires_at) for lender in eligible]

    # Stable sort: candidate order breaks rate ties
    offers.sort(key=lambda o: o.interest_rate)

    _select_recommendations(applicant, offers, {lender.id: lender for lender in eligible})
    return offers
