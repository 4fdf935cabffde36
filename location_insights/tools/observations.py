"""Observation source: mapping raw capture records into observations."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple

from pydantic import ValidationError

from ..schemas.models import Observation
from ..scoring.normalization import parse_timestamp, to_iso_millis


logger = logging.getLogger(__name__)


DEFAULT_OBSERVATION_LIMIT = 20
DEFAULT_SOURCE = "manual"
DEFAULT_LABEL = "Location"
MISSING_TIMESTAMP = "N/A"


class ObservationSource(Protocol):
    def get_observations(self, borrower_id: str, limit: int = DEFAULT_OBSERVATION_LIMIT) -> List[Observation]:
        ...


def format_captured_at(value: Any) -> str:
    """
    Normalise a stored capture time into a string.

    Strings keep their date part only, datetimes become ISO-8601 UTC, and
    ``{"_seconds": ...}`` epoch mappings are converted. Anything else is
    ``"N/A"``, which downstream scoring treats as "no recency signal".
    """
    if not value:
        return MISSING_TIMESTAMP
    if isinstance(value, str):
        return value.split("T")[0]
    if isinstance(value, datetime):
        return to_iso_millis(value)
    if isinstance(value, Mapping):
        seconds = value.get("_seconds", value.get("seconds"))
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
            return to_iso_millis(datetime.fromtimestamp(seconds, tz=timezone.utc))
    return MISSING_TIMESTAMP


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def build_geo_point(data: Mapping[str, Any]) -> Dict[str, float]:
    """Extract ``{lat, lng}`` from the shapes capture records come in."""
    geo = data.get("geo")
    if isinstance(geo, Mapping):
        if _is_number(geo.get("latitude")):
            return {"lat": geo.get("latitude"), "lng": geo.get("longitude", 0)}
        if _is_number(geo.get("lat")):
            return {"lat": geo.get("lat"), "lng": geo.get("lng", 0)}

    if _is_number(data.get("lat")) and _is_number(data.get("lng")):
        return {"lat": data["lat"], "lng": data["lng"]}

    return {"lat": 0.0, "lng": 0.0}


def observation_from_record(doc_id: str, data: Mapping[str, Any]) -> Observation:
    """
    Map a raw capture document to an :class:`Observation`.

    Raises:
        pydantic.ValidationError: If the coordinates are non-finite or out of
            range, or the accuracy is negative
    """

    def _optional(key: str, kind) -> Optional[Any]:
        value = data.get(key)
        if kind is float:
            return value if _is_number(value) and math.isfinite(value) else None
        return value if isinstance(value, kind) else None

    return Observation(
        id=doc_id,
        source=data["source"] if isinstance(data.get("source"), str) else DEFAULT_SOURCE,
        captured_at=format_captured_at(data.get("capturedAt")),
        label=data["label"] if isinstance(data.get("label"), str) else DEFAULT_LABEL,
        geo=build_geo_point(data),
        accuracy_meters=_optional("accuracyMeters", float),
        created_by=_optional("createdByUserId", str),
        notes=_optional("notes", str),
        confidence_score=_optional("confidenceScore", float),
    )


def _newest_first_key(observation: Observation) -> Tuple[int, float]:
    parsed = parse_timestamp(observation.captured_at)
    if parsed is None:
        return (1, 0.0)
    return (0, -parsed.timestamp())


class InMemoryObservationSource:
    """Observation source backed by a dict of borrower id -> observations."""

    def __init__(self, observations: Optional[Mapping[str, Iterable[Observation]]] = None):
        self._observations: Dict[str, List[Observation]] = {
            borrower_id: list(items) for borrower_id, items in (observations or {}).items()
        }

    @classmethod
    def from_records(
        cls,
        records: Mapping[str, Mapping[str, Mapping[str, Any]]],
    ) -> "InMemoryObservationSource":
        """
        Build a source from raw documents keyed by borrower id, then doc id.

        Records with unusable coordinates are skipped with a warning.
        """
        observations: Dict[str, List[Observation]] = {}
        for borrower_id, docs in records.items():
            mapped: List[Observation] = []
            for doc_id, data in docs.items():
                try:
                    mapped.append(observation_from_record(doc_id, data))
                except ValidationError as e:
                    logger.warning(
                        f"Skipping observation {doc_id} for borrower {borrower_id}: "
                        f"{e.error_count()} validation error(s)"
                    )
            observations[borrower_id] = mapped
        return cls(observations)

    def add(self, borrower_id: str, observation: Observation) -> None:
        self._observations.setdefault(borrower_id, []).append(observation)

    def get_observations(self, borrower_id: str, limit: int = DEFAULT_OBSERVATION_LIMIT) -> List[Observation]:
        """Newest ``limit`` observations, newest first; unparsable times last."""
        if not borrower_id:
            return []
        items = sorted(self._observations.get(borrower_id, []), key=_newest_first_key)
        return items[:limit]
