"""Tests for the multi-bank application tracker and the accept-offer transition."""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from loanmatch.core.errors import (
    InvalidTransitionError,
    OfferConflictError,
    OfferExpiredError,
    OfferNotFoundError,
    PersistenceError,
    TrackerNotFoundError,
)
from loanmatch.models.records import LoanApplication
from loanmatch.services.application_tracker import (
    SIBLING_REJECTED_REASON,
    MultiBankApplicationTracker,
    TrackerRegistry,
)
from loanmatch.services.loan_applications import create_loan_application
from loanmatch.services.offer_generator import generate_bank_offers
from loanmatch.services.pricing import SequenceRandomSource

from conftest import FIXED_NOW


@pytest.fixture
def offers(make_applicant, lender_panel):
    return generate_bank_offers(
        make_applicant(),
        lender_panel,
        rng=SequenceRandomSource([0.5]),
        now=FIXED_NOW,
    )


@pytest.fixture
def parent_id(record_store):
    application = create_loan_application(
        record_store,
        LoanApplication(loan_amount=500_000, interest_rate=7.5, loan_term=36, monthly_payment=15_553.0),
    )
    return application.id


def _tracker(offers, application_id="loan-1", **kw):
    kw.setdefault("clock", lambda: FIXED_NOW)
    return MultiBankApplicationTracker(application_id, offers, **kw)


class TestMaterializeApplications:
    def test_one_application_per_offer(self, offers):
        tracker = _tracker(offers)
        apps = tracker.applications
        assert [a.lender_id for a in apps] == [o.lender_id for o in offers]
        assert all(a.application_id == "loan-1" for a in apps)
        assert len({a.id for a in apps}) == len(apps)
        assert all(a.submitted_at == FIXED_NOW for a in apps)

    def test_approved_offers_start_approved(self, offers):
        app = _tracker(offers).get_application("metro")
        assert app.status == "approved"
        assert app.offer is not None and app.offer.lender_id == "metro"
        assert app.applied_amount == 500_000
        assert app.applied_term == 36

    def test_pending_offers_start_under_review(self, offers):
        pending = offers[0].model_copy(update={"status": "pending"})
        app = _tracker([pending]).get_application(pending.lender_id)
        assert app.status == "under_review"
        assert app.offer is None


class TestAcceptOffer:
    def test_accept_one_rejects_the_rest(self, offers):
        tracker = _tracker(offers)
        accepted = tracker.accept_offer("swift")

        assert accepted.status == "accepted"
        assert accepted.accepted_at == FIXED_NOW

        statuses = {o.lender_id: o.status for o in tracker.offers}
        assert statuses == {"grand": "rejected", "metro": "rejected", "swift": "accepted", "cashly": "rejected"}
        for offer in tracker.offers:
            if offer.lender_id != "swift":
                assert offer.rejected_reason == SIBLING_REJECTED_REASON

        app_statuses = {a.lender_id: a.status for a in tracker.applications}
        assert app_statuses == {
            "grand": "rejected",
            "metro": "rejected",
            "swift": "pending_final_approval",
            "cashly": "rejected",
        }
        assert all(a.decided_at == FIXED_NOW for a in tracker.applications)

        chosen = tracker.get_application("swift")
        assert chosen.offer.status == "accepted"
        assert chosen.offer.interest_rate == accepted.interest_rate
        assert tracker.accepted_lender_id == "swift"

    def test_pending_offer_can_be_accepted(self, offers):
        pending = [o.model_copy(update={"status": "pending"}) for o in offers]
        tracker = _tracker(pending)
        tracker.accept_offer("cashly")
        assert tracker.get_application("cashly").status == "pending_final_approval"
        assert tracker.get_application("grand").status == "rejected"

    def test_second_acceptance_of_other_lender_conflicts(self, offers):
        tracker = _tracker(offers)
        tracker.accept_offer("grand")
        with pytest.raises(OfferConflictError) as excinfo:
            tracker.accept_offer("metro")

        assert excinfo.value.accepted_lender_id == "grand"
        assert tracker.get_offer("grand").status == "accepted"
        assert tracker.get_offer("metro").status == "rejected"

    def test_repeat_acceptance_is_a_no_op(self, offers):
        tracker = _tracker(offers)
        first = tracker.accept_offer("grand")
        before = tracker.applications
        again = tracker.accept_offer("grand")
        assert again == first
        assert tracker.applications == before

    def test_unknown_lender(self, offers):
        with pytest.raises(OfferNotFoundError):
            _tracker(offers).accept_offer("nobody")

    def test_expired_offer_cannot_be_accepted(self, offers):
        tracker = _tracker(offers, clock=lambda: FIXED_NOW + timedelta(days=8))
        with pytest.raises(OfferExpiredError):
            tracker.accept_offer("grand")
        assert tracker.accepted_lender_id is None
        assert all(o.status == "approved" for o in tracker.offers)

    def test_withdrawn_application_cannot_be_accepted(self, offers):
        tracker = _tracker(offers)
        tracker.withdraw("metro")
        with pytest.raises(InvalidTransitionError):
            tracker.accept_offer("metro")

    def test_withdrawn_sibling_stays_withdrawn(self, offers):
        tracker = _tracker(offers)
        tracker.withdraw("cashly", notes="Found a better deal")
        tracker.accept_offer("grand")
        assert tracker.get_application("cashly").status == "withdrawn"
        assert tracker.get_application("metro").status == "rejected"


class TestAcceptOfferPersistence:
    def test_accepted_terms_copied_to_parent(self, offers, record_store, parent_id):
        tracker = _tracker(offers, application_id=parent_id, record_store=record_store)
        accepted = tracker.accept_offer("metro")

        record = record_store.get_record("loan_application", parent_id)
        assert record["status"] == "pending_final_approval"
        assert record["accepted_bank_id"] == "metro"
        assert record["accepted_bank_name"] == "Metro Commercial"
        assert record["accepted_bank_logo"] == "/logos/acme.svg"
        assert record["accepted_offer_rate"] == accepted.interest_rate
        assert record["accepted_offer_term"] == 36
        assert record["accepted_offer_amount"] == 500_000
        assert record["accepted_offer_monthly_payment"] == accepted.monthly_payment
        assert record["accepted_offer_total_interest"] == accepted.total_interest
        assert record["accepted_offer_processing_fee"] == 2.0
        assert record["accepted_at"] == FIXED_NOW
        assert tracker.pending_persistence is False

    def test_failure_is_surfaced_after_bounded_retries(self, offers):
        store = MagicMock()
        store.update_record.side_effect = ConnectionError("store unavailable")
        tracker = _tracker(offers, record_store=store, max_persist_attempts=3)

        with pytest.raises(PersistenceError) as excinfo:
            tracker.accept_offer("grand")

        assert excinfo.value.attempts == 3
        assert store.update_record.call_count == 3
        # In-memory transition already committed
        assert tracker.get_offer("grand").status == "accepted"
        assert tracker.get_application("metro").status == "rejected"
        assert tracker.pending_persistence is True

    def test_retry_after_failure(self, offers):
        store = MagicMock()
        store.update_record.side_effect = ConnectionError("store unavailable")
        tracker = _tracker(offers, record_store=store, max_persist_attempts=2)
        with pytest.raises(PersistenceError):
            tracker.accept_offer("grand")

        store.update_record.side_effect = None
        assert tracker.retry_persistence() is True
        assert tracker.pending_persistence is False

        kind, application_id, update = store.update_record.call_args.args
        assert kind == "loan_application"
        assert application_id == "loan-1"
        assert update["accepted_bank_id"] == "grand"
        assert tracker.retry_persistence() is False

    def test_repeat_acceptance_retries_pending_write(self, offers):
        store = MagicMock()
        store.update_record.side_effect = [ConnectionError("down"), {}]
        tracker = _tracker(offers, record_store=store, max_persist_attempts=1)
        with pytest.raises(PersistenceError):
            tracker.accept_offer("grand")

        tracker.accept_offer("grand")
        assert tracker.pending_persistence is False

    def test_missing_parent_record_is_not_retried(self, offers, record_store):
        tracker = _tracker(offers, application_id="does-not-exist", record_store=record_store)
        with pytest.raises(PersistenceError) as excinfo:
            tracker.accept_offer("grand")
        assert excinfo.value.attempts == 1
        assert tracker.get_offer("grand").status == "accepted"


class TestTransitions:
    def test_review_then_approve(self, offers):
        pending = offers[0].model_copy(update={"status": "pending"})
        tracker = _tracker([pending])
        lender_id = pending.lender_id

        app = tracker.transition(lender_id, "approved", notes="Income verified")
        assert app.status == "approved"
        assert app.reviewed_at == FIXED_NOW
        assert app.decided_at == FIXED_NOW
        assert app.notes == "Income verified"
        assert app.offer is not None and app.offer.status == "approved"
        assert tracker.get_offer(lender_id).status == "approved"

    def test_lender_rejection_updates_offer(self, offers):
        tracker = _tracker(offers)
        app = tracker.transition("cashly", "rejected", rejection_reason="Incomplete documents")
        assert app.rejection_reason == "Incomplete documents"
        offer = tracker.get_offer("cashly")
        assert offer.status == "rejected"
        assert offer.rejected_reason == "Incomplete documents"

    def test_full_lifecycle_after_acceptance(self, offers):
        tracker = _tracker(offers)
        tracker.accept_offer("grand")
        tracker.transition("grand", "fully_approved")
        assert tracker.get_offer("grand").status == "awaiting_disbursement"
        app = tracker.transition("grand", "disbursed")
        assert app.status == "disbursed"
        assert tracker.accepted_lender_id == "grand"

    def test_cannot_skip_states(self, offers):
        tracker = _tracker(offers)
        with pytest.raises(InvalidTransitionError):
            tracker.transition("grand", "disbursed")

    def test_acceptance_only_through_accept_offer(self, offers):
        tracker = _tracker(offers)
        with pytest.raises(InvalidTransitionError):
            tracker.transition("grand", "accepted")

    def test_terminal_states_are_final(self, offers):
        tracker = _tracker(offers)
        tracker.withdraw("grand")
        with pytest.raises(InvalidTransitionError):
            tracker.transition("grand", "under_review")
        with pytest.raises(InvalidTransitionError):
            tracker.withdraw("grand")


class TestTrackerRegistry:
    def test_register_and_get(self, offers):
        registry = TrackerRegistry()
        tracker = registry.register(_tracker(offers))
        assert registry.get("loan-1") is tracker
        assert "loan-1" in registry

    def test_missing(self):
        with pytest.raises(TrackerNotFoundError):
            TrackerRegistry().get("loan-404")

    def test_remove(self, offers):
        registry = TrackerRegistry()
        registry.register(_tracker(offers))
        registry.remove("loan-1")
        assert "loan-1" not in registry
