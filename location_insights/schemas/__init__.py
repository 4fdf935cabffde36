"""Data models shared across the location insights package."""

from .models import (
    ClusterOptions,
    DerivedLocationSummary,
    FrequentArea,
    GeoPoint,
    LocationSummaryPayload,
    Observation,
    RepresentativeObservation,
    TopAreaEntry,
    TopAreaGeo,
)

__all__ = [
    "ClusterOptions",
    "DerivedLocationSummary",
    "FrequentArea",
    "GeoPoint",
    "LocationSummaryPayload",
    "Observation",
    "RepresentativeObservation",
    "TopAreaEntry",
    "TopAreaGeo",
]
