"""
Generic create/read/update storage for loan application records.

The offer services only depend on the RecordStore protocol. InMemoryRecordStore
backs local runs and tests; a database-backed store can be swapped in at
application start-up.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Protocol, get_args
from uuid import uuid4

from loanmatch.core.errors import RecordNotFoundError
from loanmatch.models.records import RecordKind

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

RECORD_KINDS = set(get_args(RecordKind))


class RecordStore(Protocol):
    def create_record(self, kind: RecordKind, data: Record) -> Record: ...

    def get_record(self, kind: RecordKind, record_id: str) -> Record: ...

    def update_record(self, kind: RecordKind, record_id: str, partial: Record) -> Record: ...

    def list_records(self, kind: RecordKind) -> List[Record]: ...


def _check_kind(kind: str) -> None:
    if kind not in RECORD_KINDS:
        raise ValueError(f"Unknown record kind: {kind}")


class InMemoryRecordStore:
    def __init__(self) -> None:
        self._tables: Dict[str, Dict[str, Record]] = {kind: {} for kind in RECORD_KINDS}

    def create_record(self, kind: RecordKind, data: Record) -> Record:
        _check_kind(kind)
        now = datetime.now(timezone.utc)
        record = {k: v for k, v in data.items() if v is not None}
        record["id"] = record.get("id") or str(uuid4())
        record.setdefault("created_at", now)
        record["updated_at"] = now
        self._tables[kind][record["id"]] = record
        logger.debug("Created %s record %s", kind, record["id"])
        return copy.deepcopy(record)

    def get_record(self, kind: RecordKind, record_id: str) -> Record:
        _check_kind(kind)
        record = self._tables[kind].get(record_id)
        if record is None:
            raise RecordNotFoundError(kind, record_id)
        return copy.deepcopy(record)

    def update_record(self, kind: RecordKind, record_id: str, partial: Record) -> Record:
        _check_kind(kind)
        record = self._tables[kind].get(record_id)
        if record is None:
            raise RecordNotFoundError(kind, record_id)
        record.update(partial)
        record["id"] = record_id
        record["updated_at"] = datetime.now(timezone.utc)
        return copy.deepcopy(record)

    def list_records(self, kind: RecordKind) -> List[Record]:
        _check_kind(kind)
        # Newest first
        records = sorted(
            self._tables[kind].values(),
            key=lambda r: r["created_at"],
            reverse=True,
        )
        return [copy.deepcopy(r) for r in records]
