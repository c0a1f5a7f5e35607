from functools import lru_cache

from loanmatch.services.application_tracker import TrackerRegistry
from loanmatch.services.lender_directory import LenderDirectory, get_lender_directory
from loanmatch.services.record_store import InMemoryRecordStore, RecordStore


@lru_cache(maxsize=1)
def get_record_store() -> RecordStore:
    return InMemoryRecordStore()


@lru_cache(maxsize=1)
def get_tracker_registry() -> TrackerRegistry:
    return TrackerRegistry()


def get_lenders() -> LenderDirectory:
    return get_lender_directory()
