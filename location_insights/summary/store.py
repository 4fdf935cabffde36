"""Persistence for derived borrower summaries."""

from __future__ import annotations

import copy
from typing import Any, Dict, Mapping, Optional, Protocol


LOCATION_SUMMARY_FIELD = "locationSummary"


class SummaryStore(Protocol):
    """Borrower-keyed document store with merge-style writes.

    ``merge`` overwrites each top-level field it is given and leaves the
    borrower's other fields untouched. Failures propagate to the caller.
    """

    def merge(self, borrower_id: str, fields: Mapping[str, Any]) -> None:
        ...


class InMemorySummaryStore:
    """Dict-backed :class:`SummaryStore`, used by tests and local tooling."""

    def __init__(self):
        self._documents: Dict[str, Dict[str, Any]] = {}
        self.writes = 0

    def merge(self, borrower_id: str, fields: Mapping[str, Any]) -> None:
        document = self._documents.setdefault(borrower_id, {})
        document.update(copy.deepcopy(dict(fields)))
        self.writes += 1

    def get(self, borrower_id: str) -> Optional[Dict[str, Any]]:
        document = self._documents.get(borrower_id)
        return copy.deepcopy(document) if document is not None else None

    def get_location_summary(self, borrower_id: str) -> Optional[Dict[str, Any]]:
        document = self._documents.get(borrower_id) or {}
        summary = document.get(LOCATION_SUMMARY_FIELD)
        return copy.deepcopy(summary) if summary is not None else None
