from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from loanmatch.core.config import settings
from loanmatch.models.applicants import ApplicantProfile
from loanmatch.models.offers import Offer
from loanmatch.services.llm_client import get_lm_client

logger = logging.getLogger(__name__)


def _describe_offers(offers: Sequence[Offer]) -> str:
    lines: List[str] = []
    for o in offers:
        flag = " [recommended]" if o.is_recommended else ""
        lines.append(
            f"- {o.lender_name}{flag}: {o.interest_rate:.2f}% for {o.term} months, "
            f"monthly PHP {o.monthly_payment:,.2f}, total interest PHP {o.total_interest:,.2f}, "
            f"fee {o.processing_fee:.1f}%, approval odds {o.approval_probability:.0%}, "
            f"approval time {o.estimated_approval_time}"
        )
    return "\n".join(lines) or "No offers."


def _explain_with_llm(applicant: ApplicantProfile, offers: Sequence[Offer]) -> str:
    user_content = f"""
You are helping a borrower in the Philippines compare personal loan offers.

In 3–5 sentences of plain language, explain which offers stand out and why,
mentioning the trade-off between interest rate, monthly payment, fees and
approval odds. Do not invent offers or numbers that are not listed.

Applicant: credit score {applicant.credit_score}, monthly income PHP {applicant.monthly_income:,.2f},
debt-to-income {applicant.debt_to_income:.0%}, requesting PHP {applicant.loan_amount:,.2f} over {applicant.loan_term} months.

Offers (sorted by rate):
{_describe_offers(offers)}
    """.strip()

    lm_client = get_lm_client()
    response = lm_client.chat.completions.create(
        model=settings.lmstudio_model,
        messages=[
            {
                "role": "system",
                "content": "You are a concise, neutral loan comparison assistant. Avoid financial or legal advice.",
            },
            {"role": "user", "content": user_content},
        ],
        max_tokens=300,
        temperature=0.3,
    )

    text = response.choices[0].message.content or ""
    return text.strip()


def _explain_with_rules(offers: Sequence[Offer]) -> str:
    recommended = [o for o in offers if o.is_recommended]
    if not recommended:
        return "No lender was able to make an offer for this loan amount and term."
    return " ".join(f"{o.lender_name}: {o.recommendation_reason}." for o in recommended)


def explain_offers(applicant: ApplicantProfile, offers: Sequence[Offer]) -> Tuple[str, str]:
    """
    Narrative comparison of the offers, as (text, source).

    The LLM is best-effort: when it is disabled, unreachable, or returns
    nothing, the recommendation reasons are used instead.
    """
    if settings.llm_enabled and offers:
        try:
            text = _explain_with_llm(applicant, offers)
            if text:
                return text, "llm"
        except Exception as ex:
            logger.warning("LLM offer explanation failed, using recommendation reasons: %s", ex)

    return _explain_with_rules(offers), "rules"
