from __future__ import annotations

from typing import Optional


class LoanMatchError(Exception):
    """Base class for errors raised by the offer matching services."""


class InvalidLoanInputError(LoanMatchError, ValueError):
    """Loan parameters that would produce a meaningless calculation."""


class LenderNotFoundError(LoanMatchError):
    def __init__(self, lender_id: str):
        super().__init__(f"Lender not found: {lender_id}")
        self.lender_id = lender_id


class RecordNotFoundError(LoanMatchError):
    def __init__(self, kind: str, record_id: str):
        super().__init__(f"No {kind} record with id {record_id}")
        self.kind = kind
        self.record_id = record_id


class TrackerNotFoundError(LoanMatchError):
    def __init__(self, application_id: str):
        super().__init__(f"No offers have been generated for application {application_id}")
        self.application_id = application_id


class OfferNotFoundError(LoanMatchError):
    def __init__(self, application_id: str, lender_id: str):
        super().__init__(f"Application {application_id} has no offer from lender {lender_id}")
        self.application_id = application_id
        self.lender_id = lender_id


class OfferExpiredError(LoanMatchError):
    def __init__(self, lender_id: str):
        super().__init__(f"The offer from lender {lender_id} has expired")
        self.lender_id = lender_id


class OfferConflictError(LoanMatchError):
    """Raised when a different offer has already been accepted for the application."""

    def __init__(self, application_id: str, accepted_lender_id: str):
        super().__init__(
            f"Application {application_id} already accepted the offer from {accepted_lender_id}"
        )
        self.application_id = application_id
        self.accepted_lender_id = accepted_lender_id


class InvalidTransitionError(LoanMatchError):
    def __init__(self, lender_id: str, current: str, requested: str):
        super().__init__(
            f"Bank application for {lender_id} cannot move from '{current}' to '{requested}'"
        )
        self.lender_id = lender_id
        self.current = current
        self.requested = requested


class PersistenceError(LoanMatchError):
    """
    The record store rejected the accepted-offer update.

    In-memory offer and application states are already committed when this is
    raised; the caller decides whether to retry or notify the applicant.
    """

    def __init__(self, application_id: str, attempts: int, cause: Optional[BaseException] = None):
        super().__init__(
            f"Failed to persist accepted offer for application {application_id} "
            f"after {attempts} attempt(s): {cause}"
        )
        self.application_id = application_id
        self.attempts = attempts
        self.cause = cause
