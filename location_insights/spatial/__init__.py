"""
location_insights.spatial: distance, region queries and density clustering.

This module groups borrower location observations into density clusters with
a whole-set fallback for sparse input.
"""

from .distance import (
    EARTH_RADIUS_METERS,
    haversine_meters,
    haversine_to_many,
    pairwise_haversine_meters,
)
from .index import H3GridIndex, PairwiseIndex, build_region_index
from .clustering import (
    ClusteringDiagnostics,
    build_clusters,
    cluster_observations,
    resolve_options,
)

__all__ = [
    "EARTH_RADIUS_METERS",
    "haversine_meters",
    "haversine_to_many",
    "pairwise_haversine_meters",
    "H3GridIndex",
    "PairwiseIndex",
    "build_region_index",
    "ClusteringDiagnostics",
    "build_clusters",
    "cluster_observations",
    "resolve_options",
]
