"""Frequent-area ranking and the persisted borrower location summary."""

from .frequent_areas import derive_frequent_areas, rank_frequent_areas, to_frequent_area
from .store import LOCATION_SUMMARY_FIELD, InMemorySummaryStore, SummaryStore
from .refresh import (
    LocationSummaryService,
    build_summary_payload,
    refresh_borrower_location_summary,
)

__all__ = [
    "derive_frequent_areas",
    "rank_frequent_areas",
    "to_frequent_area",
    "LOCATION_SUMMARY_FIELD",
    "InMemorySummaryStore",
    "SummaryStore",
    "LocationSummaryService",
    "build_summary_payload",
    "refresh_borrower_location_summary",
]
