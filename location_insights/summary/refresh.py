"""
Borrower location summary refresh.

Recomputes a borrower's frequent areas from their current observations and
writes the result under the borrower's ``locationSummary`` field. The write
overwrites that field wholesale, so repeated refreshes are idempotent apart
from ``updatedAt``. Refreshes run when a profile is viewed, not when an
observation is captured; concurrent refreshes for the same borrower simply
race and the last write wins, since observations stay the source of truth.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from ..schemas.models import (
    ClusterOptions,
    DerivedLocationSummary,
    FrequentArea,
    GeoPoint,
    LocationSummaryPayload,
    Observation,
    TopAreaEntry,
    TopAreaGeo,
)
from ..scoring.normalization import to_iso_millis, utc_now
from ..scoring.weights import ConfidenceWeights, DEFAULT_CONFIDENCE_WEIGHTS, load_weights_from_yaml
from ..tools.config_loader import ClusterConfig, ClusterConfigProvider
from ..tools.observations import ObservationSource
from .frequent_areas import derive_frequent_areas
from .store import LOCATION_SUMMARY_FIELD, SummaryStore


logger = logging.getLogger(__name__)


DEFAULT_PROFILE_OBSERVATION_LIMIT = 30


def build_summary_payload(frequent_areas: List[FrequentArea], updated_at: str) -> LocationSummaryPayload:
    top = frequent_areas[0]
    payload = LocationSummaryPayload(
        usual_area_label=top.label,
        confidence_score=top.confidence,
        top_areas=[
            TopAreaEntry(
                label=area.label,
                confidence_score=area.confidence,
                last_seen=area.last_seen,
                lat=area.lat,
                lng=area.lng,
            )
            for area in frequent_areas
        ],
        updated_at=updated_at,
    )
    if top.representative is not None:
        payload.usual_area_geo = GeoPoint(lat=top.representative.geo.lat, lng=top.representative.geo.lng)
    return payload


def _top_area_geo(area: FrequentArea) -> Optional[TopAreaGeo]:
    representative = area.representative
    if representative is None:
        return None
    return TopAreaGeo(
        lat=representative.geo.lat,
        lng=representative.geo.lng,
        label=representative.label,
        captured_at=representative.captured_at,
        accuracy_meters=representative.accuracy_meters,
    )


def refresh_borrower_location_summary(
    borrower_id: str,
    observations: Sequence[Observation],
    config: ClusterConfig,
    *,
    store: SummaryStore,
    now: Optional[datetime] = None,
    weights: ConfidenceWeights = DEFAULT_CONFIDENCE_WEIGHTS,
    index: str = "pairwise",
) -> Optional[DerivedLocationSummary]:
    """
    Recompute and persist a borrower's location summary.

    Args:
        borrower_id: Borrower document id
        observations: The borrower's current observations
        config: Resolved cluster configuration
        store: Destination for the ``locationSummary`` field
        now: Reference time for recency and ``updatedAt``
        weights: Confidence weights
        index: Region-query backend for clustering

    Returns:
        The derived summary, or None when there is nothing to summarize (no
        borrower id, no observations, or a zero limit). Nothing is written in
        that case.

    Raises:
        Whatever ``store.merge`` raises; the write is not retried.
    """
    if not borrower_id or not observations:
        return None

    now = now or utc_now()
    frequent_areas = derive_frequent_areas(
        observations,
        ClusterOptions(
            radius_meters=config.radius_meters,
            min_points=config.min_points,
            limit=config.limit,
            index=index,
        ),
        now=now,
        weights=weights,
    )
    if not frequent_areas:
        return None

    payload = build_summary_payload(frequent_areas, to_iso_millis(now))
    try:
        store.merge(borrower_id, {LOCATION_SUMMARY_FIELD: payload.to_document()})
    except Exception:
        logger.exception(f"Failed to persist location summary for borrower {borrower_id}")
        raise

    top = frequent_areas[0]
    logger.info(
        f"Refreshed location summary for borrower {borrower_id}: "
        f"'{top.label}' confidence={top.confidence:.3f} areas={len(frequent_areas)}"
    )

    return DerivedLocationSummary(
        top_area_label=payload.usual_area_label,
        confidence_score=payload.confidence_score,
        updated_at=payload.updated_at,
        frequent_areas=frequent_areas,
        source_count=top.count,
        top_area_geo=_top_area_geo(top),
        low_confidence=config.is_low_confidence(payload.confidence_score),
    )


class LocationSummaryService:
    """
    Profile-view entry point: pull observations and config, then refresh.

    Confidence weights come from ``weights`` when given, otherwise from
    ``weights_path`` (default ``configs/weights.yaml``).

    Usage:
        service = LocationSummaryService(source, ClusterConfigProvider(), store)
        summary = service.refresh("borrower-123")
    """

    def __init__(
        self,
        observation_source: ObservationSource,
        config_provider: ClusterConfigProvider,
        store: SummaryStore,
        *,
        weights: Optional[ConfidenceWeights] = None,
        weights_path: Optional[str] = None,
        index: str = "pairwise",
    ):
        self.observation_source = observation_source
        self.config_provider = config_provider
        self.store = store
        self.weights = weights if weights is not None else load_weights_from_yaml(weights_path)
        self.index = index

    def refresh(
        self,
        borrower_id: str,
        *,
        limit: int = DEFAULT_PROFILE_OBSERVATION_LIMIT,
        now: Optional[datetime] = None,
    ) -> Optional[DerivedLocationSummary]:
        if not borrower_id:
            return None
        observations = self.observation_source.get_observations(borrower_id, limit)
        config = self.config_provider.get_cluster_config()
        return refresh_borrower_location_summary(
            borrower_id,
            observations,
            config,
            store=self.store,
            now=now,
            weights=self.weights,
            index=self.index,
        )
