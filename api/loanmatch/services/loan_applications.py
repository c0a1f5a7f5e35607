"""
Loan application bookkeeping on top of the record store: status history,
AI assessment scores and approver decisions are mirrored onto the parent
application record.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from loanmatch.models.records import (
    AIAssessment,
    ApproverAction,
    LoanApplication,
    LoanApplicationUpdate,
    StatusHistoryEntry,
)
from loanmatch.services.record_store import RecordStore

logger = logging.getLogger(__name__)


def add_status_history(
    store: RecordStore,
    application_id: str,
    status: str,
    notes: Optional[str] = None,
) -> StatusHistoryEntry:
    entry = StatusHistoryEntry(application_id=application_id, status=status, notes=notes)
    record = store.create_record("status_history", entry.model_dump(exclude={"id", "created_at"}))
    return StatusHistoryEntry(**record)


def get_status_history(store: RecordStore, application_id: str) -> List[StatusHistoryEntry]:
    return [
        StatusHistoryEntry(**r)
        for r in store.list_records("status_history")
        if r["application_id"] == application_id
    ]


def create_loan_application(store: RecordStore, application: LoanApplication) -> LoanApplication:
    data = application.model_dump(exclude={"id", "created_at", "updated_at"})
    record = store.create_record("loan_application", data)
    add_status_history(store, record["id"], record["status"], "Application submitted")
    logger.info("Created loan application %s", record["id"])
    return LoanApplication(**record)


def get_loan_application(store: RecordStore, application_id: str) -> LoanApplication:
    return LoanApplication(**store.get_record("loan_application", application_id))


def list_loan_applications(store: RecordStore) -> List[LoanApplication]:
    return [LoanApplication(**r) for r in store.list_records("loan_application")]


def update_loan_application(
    store: RecordStore,
    application_id: str,
    updates: LoanApplicationUpdate,
) -> LoanApplication:
    data = updates.model_dump(exclude_unset=True, exclude={"status_notes"})
    record = store.update_record("loan_application", application_id, data)
    if updates.status:
        add_status_history(store, application_id, updates.status, updates.status_notes)
    return LoanApplication(**record)


def create_ai_assessment(store: RecordStore, assessment: AIAssessment) -> AIAssessment:
    # Fail before writing anything if the parent does not exist
    store.get_record("loan_application", assessment.application_id)

    record = store.create_record(
        "ai_assessment",
        assessment.model_dump(exclude={"id", "created_at"}),
    )
    store.update_record(
        "loan_application",
        assessment.application_id,
        {
            "ai_score": assessment.overall_score,
            "ai_recommendation": assessment.recommendation,
            "ai_confidence": assessment.confidence,
        },
    )
    return AIAssessment(**record)


def get_latest_ai_assessment(store: RecordStore, application_id: str) -> Optional[AIAssessment]:
    for record in store.list_records("ai_assessment"):
        if record["application_id"] == application_id:
            return AIAssessment(**record)
    return None


def create_approver_action(store: RecordStore, action: ApproverAction) -> ApproverAction:
    store.get_record("loan_application", action.application_id)

    record = store.create_record(
        "approver_action",
        action.model_dump(exclude={"id", "created_at"}),
    )
    store.update_record("loan_application", action.application_id, {"status": action.action})
    add_status_history(
        store,
        action.application_id,
        action.action,
        f"{action.action.capitalize()} by {action.approver_name}: {action.justification}",
    )
    logger.info("Application %s %s by %s", action.application_id, action.action, action.approver_email)
    return ApproverAction(**record)


def get_approver_actions(store: RecordStore, application_id: str) -> List[ApproverAction]:
    return [
        ApproverAction(**r)
        for r in store.list_records("approver_action")
        if r["application_id"] == application_id
    ]
