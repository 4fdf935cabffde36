"""
Pytest configuration and shared fixtures for location-insights tests.

This file provides:
- A fixed reference time so recency scores are deterministic
- An observation factory and canned observation sets
- A clean cluster-config environment
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

import pytest

from location_insights.schemas.models import GeoPoint, Observation
from location_insights.summary.store import InMemorySummaryStore
from location_insights.tools.config_loader import CONFIG_KEYS


MAKATI = (14.5547, 121.0244)

# Roughly 1 metre of latitude
ONE_METRE_DEG = 1.0 / 111_195


# ==============================================================================
# Time & Environment
# ==============================================================================

@pytest.fixture
def now() -> datetime:
    """Fixed reference time for recency scoring."""
    return datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clean_cluster_env(monkeypatch):
    """Keep developer environment overrides out of the tests."""
    for _, _, env_var in CONFIG_KEYS.values():
        monkeypatch.delenv(env_var, raising=False)
    monkeypatch.delenv("LOCATION_CLUSTER_PROFILE", raising=False)


# ==============================================================================
# Observations
# ==============================================================================

@pytest.fixture
def make_observation(now) -> Callable[..., Observation]:
    """Factory for observations captured relative to ``now``."""
    counter = {"n": 0}

    def _make(
        lat: float,
        lng: float,
        *,
        label: Optional[str] = None,
        accuracy: Optional[float] = None,
        age: Optional[timedelta] = timedelta(hours=1),
        captured_at: Optional[str] = None,
        obs_id: Optional[str] = None,
        source: str = "gps",
    ) -> Observation:
        counter["n"] += 1
        if captured_at is None:
            captured_at = (now - age).isoformat().replace("+00:00", "Z") if age is not None else "N/A"
        return Observation(
            id=obs_id or f"obs_{counter['n']}",
            source=source,
            captured_at=captured_at,
            label=label,
            geo=GeoPoint(lat=lat, lng=lng),
            accuracy_meters=accuracy,
        )

    return _make


@pytest.fixture
def makati_observations(make_observation) -> List[Observation]:
    """Four tightly grouped captures labelled 'Makati City - Ayala'."""
    lat, lng = MAKATI
    ages = [timedelta(hours=1), timedelta(hours=6), timedelta(days=1), timedelta(days=2)]
    return [
        make_observation(
            lat + i * ONE_METRE_DEG,
            lng,
            label="Makati City - Ayala",
            accuracy=20,
            age=age,
        )
        for i, age in enumerate(ages)
    ]


@pytest.fixture
def near_group_with_outlier(make_observation) -> List[Observation]:
    """Five captures within a metre of each other plus one ~10 km away."""
    lat, lng = MAKATI
    near = [
        make_observation(lat + i * 0.2 * ONE_METRE_DEG, lng, label="Home", accuracy=10)
        for i in range(5)
    ]
    outlier = make_observation(lat + 10_000 * ONE_METRE_DEG, lng, label="Office", accuracy=10)
    return near + [outlier]


@pytest.fixture
def scattered_observations(make_observation) -> List[Observation]:
    """Three captures about 1 km apart; none is dense enough for a cluster."""
    lat, lng = MAKATI
    return [
        make_observation(lat + i * 1000 * ONE_METRE_DEG, lng, label=None, accuracy=50)
        for i in range(3)
    ]


@pytest.fixture
def five_cluster_observations(make_observation) -> List[Observation]:
    """Five separated groups of three, each with a different accuracy."""
    lat, lng = MAKATI
    observations = []
    for group, accuracy in enumerate([10, 20, 30, 40, 50]):
        base_lat = lat + group * 10_000 * ONE_METRE_DEG
        for i in range(3):
            observations.append(
                make_observation(
                    base_lat + i * ONE_METRE_DEG,
                    lng,
                    label=f"Area {group}",
                    accuracy=accuracy,
                )
            )
    return observations


# ==============================================================================
# Persistence
# ==============================================================================

@pytest.fixture
def summary_store() -> InMemorySummaryStore:
    return InMemorySummaryStore()
