from datetime import datetime, timezone
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

from loanmatch.api.dependencies import get_lenders, get_record_store, get_tracker_registry
from loanmatch.main import app
from loanmatch.models.applicants import ApplicantProfile
from loanmatch.models.lenders import LenderProfile
from loanmatch.services.application_tracker import TrackerRegistry
from loanmatch.services.lender_directory import LenderDirectory
from loanmatch.services.record_store import InMemoryRecordStore

FIXED_NOW = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def make_lender() -> Callable[..., LenderProfile]:
    def _make(**overrides: Any) -> LenderProfile:
        data = dict(
            id="acme",
            name="Acme Bank",
            logo_url="/logos/acme.svg",
            tier="commercial",
            min_credit_score=650,
            max_dti=0.40,
            min_monthly_income=30000,
            min_amount=50000,
            max_amount=2000000,
            min_term=12,
            max_term=60,
            interest_rate_range=(8.0, 14.0),
            avg_approval_time="3-5 days",
            approval_rate=0.65,
            processing_fee=2.0,
        )
        data.update(overrides)
        return LenderProfile(**data)

    return _make


@pytest.fixture
def make_applicant() -> Callable[..., ApplicantProfile]:
    def _make(**overrides: Any) -> ApplicantProfile:
        data = dict(
            credit_score=720,
            monthly_income=60000,
            loan_amount=500000,
            loan_term=36,
            debt_to_income=0.20,
        )
        data.update(overrides)
        return ApplicantProfile(**data)

    return _make


@pytest.fixture
def lender_panel(make_lender) -> list[LenderProfile]:
    """A small mixed-tier panel used across offer and tracker tests."""
    return [
        make_lender(id="grand", name="Grand Universal", tier="universal",
                    min_credit_score=700, interest_rate_range=(6.5, 12.0),
                    avg_approval_time="5-7 days", approval_rate=0.55, processing_fee=1.5),
        make_lender(id="metro", name="Metro Commercial", tier="commercial",
                    interest_rate_range=(8.0, 14.0), approval_rate=0.68),
        make_lender(id="swift", name="Swift Digital", tier="digital",
                    min_credit_score=620, interest_rate_range=(10.5, 18.0),
                    avg_approval_time="1-2 hours", approval_rate=0.75, processing_fee=0.0),
        make_lender(id="cashly", name="Cashly", tier="fintech",
                    min_credit_score=580, interest_rate_range=(18.0, 30.0),
                    avg_approval_time="Same day", approval_rate=0.82, processing_fee=4.0),
    ]


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def client(lender_panel, record_store):
    registry = TrackerRegistry()
    directory = LenderDirectory(lender_panel)

    app.dependency_overrides[get_lenders] = lambda: directory
    app.dependency_overrides[get_record_store] = lambda: record_store
    app.dependency_overrides[get_tracker_registry] = lambda: registry
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
