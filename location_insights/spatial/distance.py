"""Great-circle distance helpers (haversine, spherical Earth)."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np


EARTH_RADIUS_METERS = 6_371_000.0


def haversine_meters(a, b) -> float:
    """
    Distance in metres between two points exposing ``lat``/``lng`` in degrees.

    The haversine term is clamped to 1.0 so rounding on identical or
    near-antipodal points never pushes ``asin`` outside its domain.
    """
    lat_a = math.radians(a.lat)
    lat_b = math.radians(b.lat)
    delta_lat = lat_b - lat_a
    delta_lng = math.radians(b.lng - a.lng)

    sin_lat = math.sin(delta_lat / 2)
    sin_lng = math.sin(delta_lng / 2)
    h = sin_lat * sin_lat + math.cos(lat_a) * math.cos(lat_b) * sin_lng * sin_lng

    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(min(1.0, h)))


def haversine_to_many(
    lat: float,
    lng: float,
    lats: Sequence[float],
    lngs: Sequence[float],
) -> np.ndarray:
    """Vectorised distances from one origin to each ``(lats[i], lngs[i])``."""
    lat0 = math.radians(lat)
    lats_rad = np.radians(np.asarray(lats, dtype=float))
    delta_lat = lats_rad - lat0
    delta_lng = np.radians(np.asarray(lngs, dtype=float) - lng)

    h = np.sin(delta_lat / 2) ** 2 + math.cos(lat0) * np.cos(lats_rad) * np.sin(delta_lng / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * np.arcsin(np.sqrt(np.minimum(h, 1.0)))


def pairwise_haversine_meters(lats: Sequence[float], lngs: Sequence[float]) -> np.ndarray:
    """
    Full ``n x n`` distance matrix in metres.

    Args:
        lats: Latitudes in degrees
        lngs: Longitudes in degrees

    Returns:
        Symmetric matrix with zeros on the diagonal
    """
    lats_rad = np.radians(np.asarray(lats, dtype=float))
    lngs_deg = np.asarray(lngs, dtype=float)
    if lats_rad.size == 0:
        return np.zeros((0, 0), dtype=float)

    delta_lat = lats_rad[None, :] - lats_rad[:, None]
    delta_lng = np.radians(lngs_deg[None, :] - lngs_deg[:, None])
    cos_lat = np.cos(lats_rad)

    h = np.sin(delta_lat / 2) ** 2 + np.outer(cos_lat, cos_lat) * np.sin(delta_lng / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * np.arcsin(np.sqrt(np.minimum(h, 1.0)))
