"""
Cluster Summarizer

Turns one group of observations into a :class:`ClusterSummary`: centroid,
display label, composite confidence, recency and the single most
trustworthy member observation.

The centroid is a flat arithmetic mean of latitudes and longitudes. That is
only sound at sub-kilometre radii, which is the regime the radius and
recency constants are tuned for; do not replace it with a geodesic mean
without retuning them.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

import numpy as np

from ..schemas.models import GeoPoint, Observation
from .normalization import (
    accuracy_score,
    age_score,
    bounded_accuracy,
    clamp,
    count_score,
    parse_timestamp,
    to_iso_millis,
    utc_now,
)
from .weights import ConfidenceWeights, DEFAULT_CONFIDENCE_WEIGHTS


@dataclass
class ClusterSummary:
    """Summary of a single cluster (not persisted)."""

    centroid: GeoPoint
    label: str
    confidence: float
    last_seen: str
    count: int
    representative: Observation
    members: List[Observation] = field(default_factory=list)


def centroid_of(observations: Sequence[Observation], indexes: Sequence[int]) -> GeoPoint:
    lats = np.array([observations[i].geo.lat for i in indexes], dtype=float)
    lngs = np.array([observations[i].geo.lng for i in indexes], dtype=float)
    return GeoPoint(lat=float(lats.mean()), lng=float(lngs.mean()))


def determine_label(
    observations: Sequence[Observation],
    indexes: Sequence[int],
    centroid: GeoPoint,
) -> str:
    """
    Most frequent non-empty label among members.

    ``Counter.most_common`` keeps first-encountered order for equal counts,
    which gives the tie-break. Without any usable label the centroid is
    rendered instead.
    """
    counts: Counter = Counter()
    for i in indexes:
        raw = (observations[i].label or "").strip()
        if raw:
            counts[raw] += 1

    if counts:
        return counts.most_common(1)[0][0]

    return f"Lat {centroid.lat:.4f}, Lng {centroid.lng:.4f}"


def observation_score(
    observation: Observation,
    now: datetime,
    weights: ConfidenceWeights = DEFAULT_CONFIDENCE_WEIGHTS,
) -> float:
    """Trust score of a single observation from its own accuracy and age."""
    age = age_score(parse_timestamp(observation.captured_at), now)
    accuracy = accuracy_score(bounded_accuracy(observation.accuracy_meters))
    return weights.rep_w_accuracy * accuracy + weights.rep_w_age * age


def select_representative(
    observations: Sequence[Observation],
    indexes: Sequence[int],
    now: datetime,
    weights: ConfidenceWeights = DEFAULT_CONFIDENCE_WEIGHTS,
) -> Observation:
    best_index = indexes[0]
    best_score = float("-inf")
    for i in indexes:
        score = observation_score(observations[i], now, weights)
        if score > best_score:
            best_score = score
            best_index = i
    return observations[best_index]


def summarize_cluster(
    observations: Sequence[Observation],
    indexes: Sequence[int],
    min_points: int,
    *,
    now: Optional[datetime] = None,
    weights: ConfidenceWeights = DEFAULT_CONFIDENCE_WEIGHTS,
) -> ClusterSummary:
    """
    Summarize the observations at ``indexes``.

    Args:
        observations: Full observation list the indexes refer to
        indexes: Member indexes of one cluster (non-empty)
        min_points: Density threshold; the size score saturates at twice this
        now: Reference time for recency (defaults to current UTC time)
        weights: Confidence weights

    Returns:
        ClusterSummary with confidence clamped to [0, 1]
    """
    if not indexes:
        raise ValueError("Cannot summarize an empty cluster")
    now = now or utc_now()

    centroid = centroid_of(observations, indexes)
    label = determine_label(observations, indexes, centroid)

    latest: Optional[datetime] = None
    accuracies: List[float] = []
    for i in indexes:
        parsed = parse_timestamp(observations[i].captured_at)
        if parsed is not None and (latest is None or parsed > latest):
            latest = parsed
        accuracies.append(bounded_accuracy(observations[i].accuracy_meters))

    confidence = clamp(
        weights.w_accuracy * accuracy_score(float(np.mean(accuracies)))
        + weights.w_age * age_score(latest, now)
        + weights.w_count * count_score(len(indexes), min_points),
        0.0,
        1.0,
    )

    return ClusterSummary(
        centroid=centroid,
        label=label,
        confidence=confidence,
        last_seen=to_iso_millis(latest) if latest is not None else observations[indexes[0]].captured_at,
        count=len(indexes),
        representative=select_representative(observations, indexes, now, weights),
        members=[observations[i] for i in indexes],
    )
