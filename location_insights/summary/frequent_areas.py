"""Ranking cluster summaries into frequent-area records."""

from __future__ import annotations

from datetime import datetime
from typing import List, Mapping, Optional, Sequence, Union

from ..schemas.models import ClusterOptions, FrequentArea, Observation, RepresentativeObservation
from ..scoring.summarizer import ClusterSummary
from ..scoring.weights import ConfidenceWeights, DEFAULT_CONFIDENCE_WEIGHTS
from ..spatial.clustering import cluster_observations, resolve_options
from ..tools.config_loader import ClusterConfig, DEFAULT_CLUSTER_CONFIG


def to_frequent_area(summary: ClusterSummary) -> FrequentArea:
    """Project a summary; ``lat``/``lng`` come from the representative capture."""
    representative = RepresentativeObservation.from_observation(summary.representative)
    return FrequentArea(
        label=summary.label,
        confidence=summary.confidence,
        last_seen=summary.last_seen,
        count=summary.count,
        lat=representative.geo.lat,
        lng=representative.geo.lng,
        representative=representative,
    )


def rank_frequent_areas(summaries: Sequence[ClusterSummary], limit: int) -> List[FrequentArea]:
    ranked = sorted(summaries, key=lambda summary: summary.confidence, reverse=True)
    return [to_frequent_area(summary) for summary in ranked[: max(limit, 0)]]


def derive_frequent_areas(
    observations: Sequence[Observation],
    options: Union[ClusterOptions, Mapping, None] = None,
    *,
    now: Optional[datetime] = None,
    weights: ConfidenceWeights = DEFAULT_CONFIDENCE_WEIGHTS,
    defaults: ClusterConfig = DEFAULT_CLUSTER_CONFIG,
) -> List[FrequentArea]:
    """
    Cluster ``observations`` and return the top areas.

    Args:
        observations: Borrower observations in any order
        options: radius/min points/limit overrides; unset values use defaults
        now: Reference time for recency scoring
        weights: Confidence weights
        defaults: Provider configuration filling unset options

    Returns:
        At most ``limit`` areas ordered by descending confidence
    """
    resolved = resolve_options(options, defaults)
    summaries = cluster_observations(observations, resolved, now=now, weights=weights)
    return rank_frequent_areas(summaries, resolved.limit)
