"""
Density-based clustering of location observations with fallback.

This module provides:
1. DBSCAN-style grouping over haversine distance (explicit frontier queue)
2. A whole-set fallback cluster when nothing meets the density threshold
3. Diagnostics describing how the grouping came out
4. ``cluster_observations``: grouping + summarizing, sorted by confidence

A point is *core* when at least ``min_points`` observations (itself
included) lie within ``radius_meters``. Clusters grow from core points;
border points are absorbed but never seed a cluster of their own. A border
point reachable from two clusters is listed in both.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Mapping, Optional, Sequence, Set, Tuple, Union

from ..schemas.models import ClusterOptions, Observation
from ..scoring.normalization import utc_now
from ..scoring.summarizer import ClusterSummary, summarize_cluster
from ..scoring.weights import ConfidenceWeights, DEFAULT_CONFIDENCE_WEIGHTS
from ..tools.config_loader import ClusterConfig, DEFAULT_CLUSTER_CONFIG
from .index import build_region_index


logger = logging.getLogger(__name__)


@dataclass
class ClusteringDiagnostics:
    """How a clustering run turned out."""

    num_points: int
    """Total number of observations provided."""

    num_clusters: int
    """Number of density clusters found (0 when the fallback was used)."""

    num_noise: int
    """Observations not absorbed by any density cluster."""

    cluster_sizes: List[int] = field(default_factory=list)
    """Size of each returned group."""

    fallback_triggered: bool = False
    """Whether the whole set was returned as a single group."""

    fallback_reason: Optional[str] = None

    index: str = "pairwise"
    """Region-query backend used."""


def _expand_cluster(region, seed_neighbors: List[int], visited: Set[int], min_points: int) -> List[int]:
    """Grow a cluster from a core point's neighbourhood.

    Members keep discovery order; ``in_cluster`` deduplicates by index.
    """
    members = list(seed_neighbors)
    in_cluster = set(members)
    frontier = deque(members)

    while frontier:
        idx = frontier.popleft()
        if idx in visited:
            continue
        visited.add(idx)
        neighbors = region.region_query(idx)
        if len(neighbors) < min_points:
            continue
        for neighbor in neighbors:
            if neighbor not in in_cluster:
                in_cluster.add(neighbor)
                members.append(neighbor)
                frontier.append(neighbor)

    return members


def build_clusters(
    observations: Sequence[Observation],
    radius_meters: float,
    min_points: int,
    *,
    index: str = "pairwise",
) -> Tuple[List[List[int]], ClusteringDiagnostics]:
    """
    Group observations into density-connected clusters.

    Args:
        observations: Observations in any order
        radius_meters: Neighbourhood radius (epsilon)
        min_points: Neighbours (self included) needed for a core point
        index: Region-query backend, "pairwise" or "h3"

    Returns:
        (clusters, diagnostics) where each cluster is a list of indexes into
        ``observations``. With at least one observation the list is never
        empty: if no point is core, every observation forms one fallback group.
    """
    if min_points < 1:
        raise ValueError(f"min_points must be >= 1, got {min_points}")

    num_points = len(observations)
    if num_points == 0:
        return [], ClusteringDiagnostics(num_points=0, num_clusters=0, num_noise=0, index=index)

    region = build_region_index(observations, radius_meters, index)
    visited: Set[int] = set()
    clusters: List[List[int]] = []

    for seed in range(num_points):
        if seed in visited:
            continue
        visited.add(seed)
        neighbors = region.region_query(seed)
        if len(neighbors) < min_points:
            continue
        clusters.append(_expand_cluster(region, neighbors, visited, min_points))

    if not clusters:
        reason = (
            f"No observation has {min_points} neighbours within {radius_meters:g}m; "
            f"using all {num_points} observations as one group"
        )
        logger.debug(reason)
        return [list(range(num_points))], ClusteringDiagnostics(
            num_points=num_points,
            num_clusters=0,
            num_noise=num_points,
            cluster_sizes=[num_points],
            fallback_triggered=True,
            fallback_reason=reason,
            index=index,
        )

    assigned = {i for members in clusters for i in members}
    diagnostics = ClusteringDiagnostics(
        num_points=num_points,
        num_clusters=len(clusters),
        num_noise=num_points - len(assigned),
        cluster_sizes=[len(members) for members in clusters],
        index=index,
    )
    return clusters, diagnostics


def _coerce_options(options: Union[ClusterOptions, Mapping, None]) -> ClusterOptions:
    if options is None:
        return ClusterOptions()
    if isinstance(options, ClusterOptions):
        return options
    return ClusterOptions.model_validate(dict(options))


def resolve_options(
    options: Union[ClusterOptions, Mapping, None] = None,
    defaults: ClusterConfig = DEFAULT_CLUSTER_CONFIG,
) -> ClusterOptions:
    """Fill unset options from ``defaults`` (a :class:`ClusterConfig`)."""
    return _coerce_options(options).with_defaults(defaults)


def cluster_observations(
    observations: Sequence[Observation],
    options: Union[ClusterOptions, Mapping, None] = None,
    *,
    now: Optional[datetime] = None,
    weights: ConfidenceWeights = DEFAULT_CONFIDENCE_WEIGHTS,
    defaults: ClusterConfig = DEFAULT_CLUSTER_CONFIG,
) -> List[ClusterSummary]:
    """
    Cluster and summarize observations.

    Options left unset are taken from ``defaults``.

    Returns:
        Cluster summaries sorted by confidence, highest first. Equal
        confidences keep discovery order. Empty input gives an empty list.
    """
    if not observations:
        return []

    resolved = resolve_options(options, defaults)
    now = now or utc_now()
    groups, diagnostics = build_clusters(
        observations,
        resolved.radius_meters,
        resolved.min_points,
        index=resolved.index,
    )

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"Clustering diagnostics: {diagnostics}")

    summaries = [
        summarize_cluster(observations, members, resolved.min_points, now=now, weights=weights)
        for members in groups
    ]
    summaries.sort(key=lambda summary: summary.confidence, reverse=True)
    return summaries
