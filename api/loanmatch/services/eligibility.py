from __future__ import annotations

from typing import Iterable, List

from loanmatch.models.applicants import ApplicantProfile
from loanmatch.models.lenders import LenderProfile

# Soft margins: borderline applicants still get a priced offer, and their odds
# are reflected in the approval probability instead.
CREDIT_SCORE_MARGIN = 30
DTI_MARGIN = 0.10
INCOME_MARGIN = 0.80  # fraction of the lender's stated minimum income


def is_eligible_for_lender(applicant: ApplicantProfile, lender: LenderProfile) -> bool:
    if not lender.is_active:
        return False

    # Hard product limits
    if applicant.loan_amount < lender.min_amount or applicant.loan_amount > lender.max_amount:
        return False
    if applicant.loan_term < lender.min_term or applicant.loan_term > lender.max_term:
        return False

    if applicant.credit_score < lender.min_credit_score - CREDIT_SCORE_MARGIN:
        return False
    if applicant.debt_to_income > lender.max_dti + DTI_MARGIN:
        return False
    if applicant.monthly_income < lender.min_monthly_income * INCOME_MARGIN:
        return False

    return True


def filter_eligible_lenders(
    applicant: ApplicantProfile,
    lenders: Iterable[LenderProfile],
) -> List[LenderProfile]:
    """Eligible lenders, in candidate order."""
    return [lender for lender in lenders if is_eligible_for_lender(applicant, lender)]
