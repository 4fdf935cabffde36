"""
Borrower location insights.

Clusters a borrower's location captures into "usual areas", scores them,
and keeps a denormalized summary on the borrower record.

Usage:
    from location_insights import (
        ClusterConfigProvider,
        InMemorySummaryStore,
        derive_frequent_areas,
        refresh_borrower_location_summary,
    )

    areas = derive_frequent_areas(observations, {"radius_meters": 150, "min_points": 3})
    summary = refresh_borrower_location_summary(
        "borrower-123",
        observations,
        ClusterConfigProvider().get_cluster_config(),
        store=InMemorySummaryStore(),
    )
"""

from .schemas.models import (
    ClusterOptions,
    DerivedLocationSummary,
    FrequentArea,
    GeoPoint,
    Observation,
)
from .scoring.summarizer import ClusterSummary
from .spatial.clustering import build_clusters, cluster_observations
from .spatial.distance import haversine_meters
from .summary.frequent_areas import derive_frequent_areas
from .summary.refresh import LocationSummaryService, refresh_borrower_location_summary
from .summary.store import InMemorySummaryStore, SummaryStore
from .tools.config_loader import ClusterConfig, ClusterConfigProvider, DEFAULT_CLUSTER_CONFIG
from .tools.observations import InMemoryObservationSource, ObservationSource

__version__ = "0.1.0"

__all__ = [
    "ClusterOptions",
    "DerivedLocationSummary",
    "FrequentArea",
    "GeoPoint",
    "Observation",
    "ClusterSummary",
    "build_clusters",
    "cluster_observations",
    "haversine_meters",
    "derive_frequent_areas",
    "LocationSummaryService",
    "refresh_borrower_location_summary",
    "InMemorySummaryStore",
    "SummaryStore",
    "ClusterConfig",
    "ClusterConfigProvider",
    "DEFAULT_CLUSTER_CONFIG",
    "InMemoryObservationSource",
    "ObservationSource",
]
