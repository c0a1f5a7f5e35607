from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from loanmatch.core.config import settings
from loanmatch.core.errors import LenderNotFoundError
from loanmatch.models.lenders import LenderProfile

logger = logging.getLogger(__name__)


class LenderDirectory:
    """
    Read-only collection of partner lenders.

    The offer services take a directory (or a plain list of lenders) as an
    argument rather than reading a global, so any set of lenders can be matched.
    """

    def __init__(self, lenders: Iterable[LenderProfile]):
        self._lenders: List[LenderProfile] = list(lenders)

    @classmethod
    def from_json_file(cls, path: str | Path) -> "LenderDirectory":
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(raw, list):
            raise ValueError(f"Lender file {path} must contain a JSON array")
        lenders = [LenderProfile(**item) for item in raw]
        logger.info("Loaded %d lenders from %s", len(lenders), path)
        return cls(lenders)

    def all(self) -> List[LenderProfile]:
        return list(self._lenders)

    def active(self) -> List[LenderProfile]:
        return [lender for lender in self._lenders if lender.is_active]

    def get(self, lender_id: str) -> LenderProfile:
        lender = self.find(lender_id)
        if lender is None:
            raise LenderNotFoundError(lender_id)
        return lender

    def find(self, lender_id: str) -> Optional[LenderProfile]:
        return next((lender for lender in self._lenders if lender.id == lender_id), None)

    def select(self, lender_ids: Sequence[str]) -> List[LenderProfile]:
        """
        Active lenders among the applicant's selection, in directory order.
        Falls back to every active lender when nothing usable was selected.
        """
        wanted = set(lender_ids)
        selected = [lender for lender in self.active() if lender.id in wanted]
        if not selected:
            return self.active()
        return selected


@lru_cache(maxsize=1)
def get_lender_directory() -> LenderDirectory:
    return LenderDirectory.from_json_file(settings.lenders_file)
