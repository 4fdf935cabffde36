"""Pydantic models for borrower location observations and derived summaries."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class GeoPoint(BaseModel):
    """Latitude/longitude pair in decimal degrees.

    Non-finite or out-of-range coordinates are rejected here, so every
    observation that reaches clustering carries a usable position.
    """

    lat: float = Field(..., ge=-90.0, le=90.0, allow_inf_nan=False, description="Latitude in decimal degrees")
    lng: float = Field(..., ge=-180.0, le=180.0, allow_inf_nan=False, description="Longitude in decimal degrees")

    model_config = {"frozen": True}


class Observation(BaseModel):
    """One raw position capture for a borrower."""

    id: str = Field(..., alias="observationId")
    source: str = "manual"
    captured_at: str = Field(..., alias="capturedAt")
    label: Optional[str] = None
    geo: GeoPoint
    accuracy_meters: Optional[float] = Field(default=None, ge=0.0, allow_inf_nan=False, alias="accuracyMeters")
    created_by: Optional[str] = Field(default=None, alias="createdBy")
    notes: Optional[str] = None
    confidence_score: Optional[float] = Field(default=None, alias="confidenceScore")

    model_config = {"populate_by_name": True, "frozen": True}


class ClusterOptions(BaseModel):
    """Per-call clustering overrides. ``None`` means "use the configured default"."""

    radius_meters: Optional[float] = Field(default=None, gt=0.0, alias="radiusMeters")
    min_points: Optional[int] = Field(default=None, ge=1, alias="minPoints")
    limit: Optional[int] = Field(default=None, ge=0)
    index: Literal["pairwise", "h3"] = "pairwise"

    model_config = {"populate_by_name": True}

    def with_defaults(self, defaults: Any) -> "ClusterOptions":
        """Return a copy with every unset field taken from ``defaults``."""

        return ClusterOptions(
            radius_meters=self.radius_meters if self.radius_meters is not None else defaults.radius_meters,
            min_points=self.min_points if self.min_points is not None else defaults.min_points,
            limit=self.limit if self.limit is not None else defaults.limit,
            index=self.index,
        )


class RepresentativeObservation(BaseModel):
    observation_id: str = Field(..., alias="observationId")
    source: str
    captured_at: str = Field(..., alias="capturedAt")
    label: Optional[str] = None
    geo: GeoPoint
    accuracy_meters: Optional[float] = Field(default=None, alias="accuracyMeters")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_observation(cls, observation: Observation) -> "RepresentativeObservation":
        return cls(
            observation_id=observation.id,
            source=observation.source,
            captured_at=observation.captured_at,
            label=observation.label,
            geo=GeoPoint(lat=observation.geo.lat, lng=observation.geo.lng),
            accuracy_meters=observation.accuracy_meters,
        )


class FrequentArea(BaseModel):
    """Ranked projection of one cluster, ready for display."""

    label: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    last_seen: str = Field(..., alias="lastSeen")
    count: int = Field(0, ge=0)
    lat: Optional[float] = None
    lng: Optional[float] = None
    representative: Optional[RepresentativeObservation] = None

    model_config = {"populate_by_name": True}


class TopAreaGeo(BaseModel):
    lat: float
    lng: float
    label: Optional[str] = None
    captured_at: Optional[str] = Field(default=None, alias="capturedAt")
    accuracy_meters: Optional[float] = Field(default=None, alias="accuracyMeters")

    model_config = {"populate_by_name": True}


class TopAreaEntry(BaseModel):
    """Persisted subset of a :class:`FrequentArea`."""

    label: str
    confidence_score: float = Field(..., alias="confidenceScore")
    last_seen: str = Field(..., alias="lastSeen")
    lat: Optional[float] = None
    lng: Optional[float] = None

    model_config = {"populate_by_name": True}


class LocationSummaryPayload(BaseModel):
    """Document written under the borrower's ``locationSummary`` field."""

    usual_area_label: str = Field(..., alias="usualAreaLabel")
    confidence_score: float = Field(..., alias="confidenceScore")
    top_areas: List[TopAreaEntry] = Field(default_factory=list, alias="topAreas")
    updated_at: str = Field(..., alias="updatedAt")
    usual_area_geo: Optional[GeoPoint] = Field(default=None, alias="usualAreaGeo")

    model_config = {"populate_by_name": True}

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class DerivedLocationSummary(BaseModel):
    """Full refresh result handed back to the caller.

    ``source_count``, ``top_area_geo`` and ``low_confidence`` are returned
    for immediate rendering but are not part of the persisted payload.
    """

    top_area_label: Optional[str] = Field(default=None, alias="topAreaLabel")
    confidence_score: Optional[float] = Field(default=None, alias="confidenceScore")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")
    frequent_areas: List[FrequentArea] = Field(default_factory=list, alias="frequentAreas")
    source_count: int = Field(0, alias="sourceCount")
    top_area_geo: Optional[TopAreaGeo] = Field(default=None, alias="topAreaGeo")
    low_confidence: bool = Field(False, alias="lowConfidence")

    model_config = {"populate_by_name": True}
