"""Region-query backends used by the cluster builder.

Both backends answer the same question: which observations lie within
``radius_meters`` of observation ``i`` (itself included), returned as
ascending indices. The pairwise backend scans a precomputed distance matrix.
The H3 backend buckets observations into hexagons roughly one radius wide
and only measures candidates in nearby cells, which keeps the query cheap
once a borrower accumulates many captures.
"""

from __future__ import annotations

import math
from collections import defaultdict
from typing import Dict, List, Optional, Sequence

import h3
import numpy as np

from ..schemas.models import Observation
from .distance import haversine_to_many, pairwise_haversine_meters


# Ring steps searched around a cell. Cells are at least one radius wide, so
# three rings leave room for H3's area distortion between resolutions.
GRID_DISK_STEPS = 3

MAX_H3_RESOLUTION = 15


def _coordinates(observations: Sequence[Observation]):
    lats = np.array([obs.geo.lat for obs in observations], dtype=float)
    lngs = np.array([obs.geo.lng for obs in observations], dtype=float)
    return lats, lngs


def resolution_for_radius(radius_m: float) -> Optional[int]:
    """Finest H3 resolution whose average edge is at least ``radius_m``.

    Returns None when the radius is wider than the coarsest hexagon.
    """
    for res in range(MAX_H3_RESOLUTION, -1, -1):
        if h3.average_hexagon_edge_length(res, unit="m") >= radius_m:
            return res
    return None


class PairwiseIndex:
    """Exhaustive O(n^2) region query over a distance matrix."""

    name = "pairwise"

    def __init__(self, observations: Sequence[Observation], radius_meters: float):
        lats, lngs = _coordinates(observations)
        self.radius_meters = radius_meters
        self._distances = pairwise_haversine_meters(lats, lngs)

    def region_query(self, index: int) -> List[int]:
        return np.flatnonzero(self._distances[index] <= self.radius_meters).tolist()


class H3GridIndex:
    """Region query restricted to observations in neighbouring H3 cells."""

    name = "h3"

    def __init__(self, observations: Sequence[Observation], radius_meters: float):
        self.radius_meters = radius_meters
        self._lats, self._lngs = _coordinates(observations)
        self.resolution = resolution_for_radius(radius_meters)

        self._cells: List[str] = []
        self._buckets: Dict[str, List[int]] = defaultdict(list)
        if self.resolution is not None:
            for i, obs in enumerate(observations):
                cell = h3.latlng_to_cell(obs.geo.lat, obs.geo.lng, self.resolution)
                self._cells.append(cell)
                self._buckets[cell].append(i)

    def _candidates(self, index: int) -> np.ndarray:
        if self.resolution is None:
            return np.arange(len(self._lats))
        found: List[int] = []
        for cell in h3.grid_disk(self._cells[index], GRID_DISK_STEPS):
            found.extend(self._buckets.get(cell, ()))
        return np.array(sorted(found), dtype=int)

    def region_query(self, index: int) -> List[int]:
        candidates = self._candidates(index)
        if candidates.size == 0:
            return []
        distances = haversine_to_many(
            self._lats[index],
            self._lngs[index],
            self._lats[candidates],
            self._lngs[candidates],
        )
        return candidates[distances <= self.radius_meters].tolist()


REGION_INDEXES = {
    PairwiseIndex.name: PairwiseIndex,
    H3GridIndex.name: H3GridIndex,
}


def build_region_index(
    observations: Sequence[Observation],
    radius_meters: float,
    index: str = "pairwise",
):
    """Instantiate the named region-query backend."""
    if index not in REGION_INDEXES:
        raise ValueError(
            f"Unknown region index '{index}'. Available: {', '.join(sorted(REGION_INDEXES))}"
        )
    if not math.isfinite(radius_meters) or radius_meters <= 0:
        raise ValueError(f"radius_meters must be a positive number, got {radius_meters!r}")
    return REGION_INDEXES[index](observations, radius_meters)
