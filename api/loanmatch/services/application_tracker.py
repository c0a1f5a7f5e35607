"""
Per-lender application tracking for one parent loan application.

An applicant applies to several lenders at once; each lender gets its own
BankApplication mirroring the generated Offer. Accepting one offer rejects
every sibling and copies the accepted terms onto the parent record.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, FrozenSet, List, Optional
from uuid import uuid4

from loanmatch.core.errors import (
    InvalidTransitionError,
    OfferConflictError,
    OfferExpiredError,
    OfferNotFoundError,
    PersistenceError,
    RecordNotFoundError,
    TrackerNotFoundError,
)
from loanmatch.models.offers import BankApplication, BankApplicationStatus, Offer
from loanmatch.services.record_store import Record, RecordStore

logger = logging.getLogger(__name__)

SIBLING_REJECTED_REASON = "Another offer was accepted"

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "submitted": frozenset({"under_review", "withdrawn"}),
    "under_review": frozenset({"approved", "rejected", "withdrawn"}),
    "approved": frozenset({"accepted", "rejected", "withdrawn"}),
    "accepted": frozenset({"pending_final_approval", "rejected", "withdrawn"}),
    "pending_final_approval": frozenset({"fully_approved", "rejected", "withdrawn"}),
    "fully_approved": frozenset({"disbursed", "withdrawn"}),
    "rejected": frozenset(),
    "withdrawn": frozenset(),
    "disbursed": frozenset(),
}

TERMINAL_STATES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)

# Once a sibling is in one of these, the application has a chosen lender
ACCEPTED_STATES = frozenset({"accepted", "pending_final_approval", "fully_approved", "disbursed"})

# Applications the applicant may still accept an offer on
ACCEPTABLE_STATES = frozenset({"submitted", "under_review", "approved", "accepted"})

DECISION_STATES = frozenset({"approved", "rejected", "accepted", "pending_final_approval"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MultiBankApplicationTracker:
    def __init__(
        self,
        application_id: str,
        offers: List[Offer],
        applications: Optional[List[BankApplication]] = None,
        record_store: Optional[RecordStore] = None,
        max_persist_attempts: int = 3,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.application_id = application_id
        self._offers: List[Offer] = list(offers)
        self._record_store = record_store
        self._max_persist_attempts = max(1, max_persist_attempts)
        self._clock = clock
        self._pending_update: Optional[Record] = None

        if applications is None:
            self._applications = self.materialize_applications()
        else:
            self._applications = list(applications)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def offers(self) -> List[Offer]:
        return list(self._offers)

    @property
    def applications(self) -> List[BankApplication]:
        return list(self._applications)

    @property
    def pending_persistence(self) -> bool:
        return self._pending_update is not None

    @property
    def accepted_lender_id(self) -> Optional[str]:
        for app in self._applications:
            if app.status in ACCEPTED_STATES:
                return app.lender_id
        for offer in self._offers:
            if offer.status == "accepted":
                return offer.lender_id
        return None

    def get_offer(self, lender_id: str) -> Offer:
        for offer in self._offers:
            if offer.lender_id == lender_id:
                return offer
        raise OfferNotFoundError(self.application_id, lender_id)

    def get_application(self, lender_id: str) -> BankApplication:
        for app in self._applications:
            if app.lender_id == lender_id:
                return app
        raise OfferNotFoundError(self.application_id, lender_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def materialize_applications(self) -> List[BankApplication]:
        """
        One BankApplication per offer. Lenders that pre-approved the applicant
        start as approved with the offer attached; the rest are under review.
        """
        now = self._clock()
        return [
            BankApplication(
                id=f"app-{offer.lender_id}-{uuid4().hex[:12]}",
                application_id=self.application_id,
                lender_id=offer.lender_id,
                lender_name=offer.lender_name,
                applied_amount=offer.loan_amount,
                applied_term=offer.term,
                status="approved" if offer.status == "approved" else "under_review",
                status_updated_at=now,
                offer=offer if offer.status == "approved" else None,
                submitted_at=now,
            )
            for offer in self._offers
        ]

    def transition(
        self,
        lender_id: str,
        new_status: BankApplicationStatus,
        notes: Optional[str] = None,
        rejection_reason: Optional[str] = None,
    ) -> BankApplication:
        """Move one lender's application along the state machine."""
        app = self.get_application(lender_id)
        # Acceptance also rejects the siblings, so it only goes through accept_offer
        if new_status == "accepted" or new_status not in ALLOWED_TRANSITIONS[app.status]:
            raise InvalidTransitionError(lender_id, app.status, new_status)

        now = self._clock()
        updates: Dict[str, object] = {"status": new_status, "status_updated_at": now}
        if app.status == "under_review":
            updates["reviewed_at"] = now
        if new_status in DECISION_STATES:
            updates["decided_at"] = now
        if notes is not None:
            updates["notes"] = notes
        if rejection_reason is not None:
            updates["rejection_reason"] = rejection_reason

        offer = self.get_offer(lender_id)
        offer_updates: Dict[str, object] = {}
        if new_status == "approved":
            offer_updates["status"] = "approved"
        elif new_status == "rejected":
            offer_updates["status"] = "rejected"
            offer_updates["rejected_reason"] = rejection_reason
        elif new_status == "fully_approved":
            offer_updates["status"] = "awaiting_disbursement"

        new_offer = offer.model_copy(update=offer_updates) if offer_updates else offer
        if new_status == "approved" or app.offer is not None:
            updates["offer"] = new_offer

        new_app = app.model_copy(update=updates)
        self._replace(new_app, new_offer)
        logger.info(
            "Application %s: %s moved %s -> %s", self.application_id, lender_id, app.status, new_status
        )
        return new_app

    def withdraw(self, lender_id: str, notes: Optional[str] = None) -> BankApplication:
        return self.transition(lender_id, "withdrawn", notes=notes)

    def accept_offer(self, lender_id: str) -> Offer:
        """
        Accept one lender's offer and reject every sibling.

        All new states are staged first and committed together. The accepted
        terms are then written onto the parent loan application; if that write
        keeps failing, the committed in-memory state stays as it is and
        PersistenceError is raised so the caller can retry_persistence().
        """
        offer = self.get_offer(lender_id)
        app = self.get_application(lender_id)

        already_accepted = self.accepted_lender_id
        if already_accepted is not None:
            if already_accepted != lender_id:
                raise OfferConflictError(self.application_id, already_accepted)
            # Double submit of the same choice
            if self._pending_update is not None:
                self.retry_persistence()
            return offer

        now = self._clock()
        if offer.is_expired(now):
            raise OfferExpiredError(lender_id)
        if app.status not in ACCEPTABLE_STATES or offer.status in ("rejected", "expired"):
            raise InvalidTransitionError(lender_id, app.status, "pending_final_approval")

        # Stage
        accepted_offer = offer.model_copy(update={"status": "accepted", "accepted_at": now})
        staged_offers = [
            accepted_offer
            if o.lender_id == lender_id
            else o.model_copy(update={"status": "rejected", "rejected_reason": SIBLING_REJECTED_REASON})
            for o in self._offers
        ]
        staged_apps = []
        for a in self._applications:
            if a.lender_id == lender_id:
                staged_apps.append(
                    a.model_copy(
                        update={
                            "status": "pending_final_approval",
                            "status_updated_at": now,
                            "decided_at": now,
                            "offer": accepted_offer,
                        }
                    )
                )
            elif a.status in TERMINAL_STATES:
                staged_apps.append(a)
            else:
                staged_apps.append(
                    a.model_copy(
                        update={
                            "status": "rejected",
                            "status_updated_at": now,
                            "decided_at": now,
                            "rejection_reason": SIBLING_REJECTED_REASON,
                        }
                    )
                )

        # Commit
        self._offers = staged_offers
        self._applications = staged_apps
        logger.info(
            "Application %s accepted offer from %s; %d sibling offer(s) rejected",
            self.application_id,
            lender_id,
            len(staged_offers) - 1,
        )

        if self._record_store is not None:
            self._pending_update = self._acceptance_snapshot(accepted_offer)
            self._flush_pending_update()
        return accepted_offer

    def retry_persistence(self) -> bool:
        """Re-attempt a failed accepted-offer write. Returns False when nothing was pending."""
        if self._pending_update is None:
            return False
        self._flush_pending_update()
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _replace(self, app: BankApplication, offer: Offer) -> None:
        self._applications = [app if a.lender_id == app.lender_id else a for a in self._applications]
        self._offers = [offer if o.lender_id == offer.lender_id else o for o in self._offers]

    def _acceptance_snapshot(self, offer: Offer) -> Record:
        return {
            "status": "pending_final_approval",
            "accepted_bank_id": offer.lender_id,
            "accepted_bank_name": offer.lender_name,
            "accepted_bank_logo": offer.lender_logo_url,
            "accepted_offer_rate": offer.interest_rate,
            "accepted_offer_term": offer.term,
            "accepted_offer_amount": offer.loan_amount,
            "accepted_offer_monthly_payment": offer.monthly_payment,
            "accepted_offer_total_interest": offer.total_interest,
            "accepted_offer_processing_fee": offer.processing_fee,
            "accepted_at": offer.accepted_at,
        }

    def _flush_pending_update(self) -> None:
        if self._record_store is None or self._pending_update is None:
            return

        last_error: Optional[Exception] = None
        attempts = 0
        while attempts < self._max_persist_attempts:
            attempts += 1
            try:
                self._record_store.update_record(
                    "loan_application", self.application_id, self._pending_update
                )
            except RecordNotFoundError as ex:
                # Retrying cannot create the parent record
                last_error = ex
                break
            except Exception as ex:
                last_error = ex
                logger.warning(
                    "Saving accepted offer for %s failed (attempt %d/%d): %s",
                    self.application_id,
                    attempts,
                    self._max_persist_attempts,
                    ex,
                )
                continue
            self._pending_update = None
            logger.info("Accepted offer saved to application %s", self.application_id)
            return

        logger.error("Giving up saving accepted offer for %s: %s", self.application_id, last_error)
        raise PersistenceError(self.application_id, attempts, last_error)


class TrackerRegistry:
    """In-process map of parent application id -> tracker, one per applicant session."""

    def __init__(self) -> None:
        self._trackers: Dict[str, MultiBankApplicationTracker] = {}

    def register(self, tracker: MultiBankApplicationTracker) -> MultiBankApplicationTracker:
        self._trackers[tracker.application_id] = tracker
        return tracker

    def get(self, application_id: str) -> MultiBankApplicationTracker:
        tracker = self._trackers.get(application_id)
        if tracker is None:
            raise TrackerNotFoundError(application_id)
        return tracker

    def remove(self, application_id: str) -> None:
        self._trackers.pop(application_id, None)

    def __contains__(self, application_id: str) -> bool:
        return application_id in self._trackers
