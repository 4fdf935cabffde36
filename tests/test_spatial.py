"""
Unit Tests for Spatial Module (location_insights.spatial)

Tests haversine distance, region-query backends, density clustering and the
whole-set fallback.
"""

import math

import numpy as np
import pytest
import h3

from location_insights.schemas.models import ClusterOptions, GeoPoint
from location_insights.spatial.distance import (
    EARTH_RADIUS_METERS,
    haversine_meters,
    haversine_to_many,
    pairwise_haversine_meters,
)
from location_insights.spatial.index import (
    H3GridIndex,
    PairwiseIndex,
    build_region_index,
    resolution_for_radius,
)
from location_insights.spatial.clustering import (
    ClusteringDiagnostics,
    build_clusters,
    cluster_observations,
    resolve_options,
)
from location_insights.tools.config_loader import DEFAULT_CLUSTER_CONFIG


# ==============================================================================
# Distance Tests
# ==============================================================================

class TestHaversine:
    """Test great-circle distance."""

    def test_identical_points_are_zero(self):
        point = GeoPoint(lat=14.5547, lng=121.0244)
        assert haversine_meters(point, point) == 0.0

    def test_one_degree_of_longitude_at_equator(self):
        a = GeoPoint(lat=0.0, lng=0.0)
        b = GeoPoint(lat=0.0, lng=1.0)
        expected = 2 * math.pi * EARTH_RADIUS_METERS / 360
        assert haversine_meters(a, b) == pytest.approx(expected, rel=1e-9)

    def test_antipodal_points_do_not_raise(self):
        """Clamping keeps asin in its domain for antipodal points."""
        a = GeoPoint(lat=0.0, lng=0.0)
        b = GeoPoint(lat=0.0, lng=180.0)
        assert haversine_meters(a, b) == pytest.approx(math.pi * EARTH_RADIUS_METERS, rel=1e-9)

    def test_symmetry(self):
        a = GeoPoint(lat=14.5547, lng=121.0244)
        b = GeoPoint(lat=14.6091, lng=121.0223)
        assert haversine_meters(a, b) == pytest.approx(haversine_meters(b, a))

    def test_pairwise_matrix_matches_scalar(self):
        points = [
            GeoPoint(lat=14.5547, lng=121.0244),
            GeoPoint(lat=14.6091, lng=121.0223),
            GeoPoint(lat=-33.8688, lng=151.2093),
        ]
        matrix = pairwise_haversine_meters([p.lat for p in points], [p.lng for p in points])

        assert matrix.shape == (3, 3)
        assert np.allclose(np.diag(matrix), 0.0)
        assert np.allclose(matrix, matrix.T)
        for i, a in enumerate(points):
            for j, b in enumerate(points):
                assert matrix[i, j] == pytest.approx(haversine_meters(a, b), rel=1e-9, abs=1e-6)

    def test_pairwise_matrix_empty(self):
        assert pairwise_haversine_meters([], []).shape == (0, 0)

    def test_to_many_matches_scalar(self):
        origin = GeoPoint(lat=14.5547, lng=121.0244)
        others = [GeoPoint(lat=14.5550, lng=121.0250), GeoPoint(lat=0.0, lng=-59.0)]
        distances = haversine_to_many(origin.lat, origin.lng, [o.lat for o in others], [o.lng for o in others])
        for distance, other in zip(distances, others):
            assert distance == pytest.approx(haversine_meters(origin, other), rel=1e-9)


# ==============================================================================
# Region Index Tests
# ==============================================================================

class TestRegionIndex:
    """Test region-query backends."""

    def test_pairwise_includes_self(self, scattered_observations):
        index = PairwiseIndex(scattered_observations, radius_meters=150)
        for i in range(len(scattered_observations)):
            assert index.region_query(i) == [i]

    def test_pairwise_boundary_is_inclusive(self, make_observation):
        a = make_observation(0.0, 0.0)
        b = make_observation(0.0, 0.001)
        distance = haversine_meters(a.geo, b.geo)
        index = PairwiseIndex([a, b], radius_meters=distance + 1e-6)
        assert index.region_query(0) == [0, 1]

    def test_resolution_for_radius(self):
        res = resolution_for_radius(150)
        assert res is not None
        assert h3.average_hexagon_edge_length(res, unit="m") >= 150
        if res < 15:
            assert h3.average_hexagon_edge_length(res + 1, unit="m") < 150

    def test_resolution_for_huge_radius(self):
        assert resolution_for_radius(50_000_000) is None

    @pytest.mark.parametrize("fixture_name", [
        "makati_observations",
        "near_group_with_outlier",
        "scattered_observations",
        "five_cluster_observations",
    ])
    def test_h3_matches_pairwise(self, request, fixture_name):
        observations = request.getfixturevalue(fixture_name)
        pairwise = PairwiseIndex(observations, radius_meters=150)
        grid = H3GridIndex(observations, radius_meters=150)
        for i in range(len(observations)):
            assert grid.region_query(i) == pairwise.region_query(i)

    def test_h3_huge_radius_scans_everything(self, scattered_observations):
        grid = H3GridIndex(scattered_observations, radius_meters=50_000_000)
        assert grid.region_query(0) == [0, 1, 2]

    def test_unknown_index_rejected(self, makati_observations):
        with pytest.raises(ValueError, match="Unknown region index"):
            build_region_index(makati_observations, 150, index="kd-tree")

    def test_non_positive_radius_rejected(self, makati_observations):
        with pytest.raises(ValueError, match="radius_meters"):
            build_region_index(makati_observations, 0)


# ==============================================================================
# Cluster Builder Tests
# ==============================================================================

class TestBuildClusters:
    """Test density clustering and fallback."""

    def test_empty_input(self):
        clusters, diagnostics = build_clusters([], 150, 3)
        assert clusters == []
        assert diagnostics.num_points == 0
        assert not diagnostics.fallback_triggered

    def test_density_excludes_outlier(self, near_group_with_outlier):
        clusters, diagnostics = build_clusters(near_group_with_outlier, 150, 3)

        assert len(clusters) == 1
        assert sorted(clusters[0]) == [0, 1, 2, 3, 4]
        assert diagnostics.num_clusters == 1
        assert diagnostics.num_noise == 1
        assert not diagnostics.fallback_triggered

    def test_fallback_when_nothing_is_dense(self, scattered_observations):
        clusters, diagnostics = build_clusters(scattered_observations, 150, 3)

        assert clusters == [[0, 1, 2]]
        assert diagnostics.fallback_triggered
        assert diagnostics.num_clusters == 0
        assert "3 neighbours" in diagnostics.fallback_reason

    def test_single_observation_falls_back(self, make_observation):
        clusters, diagnostics = build_clusters([make_observation(14.0, 121.0)], 150, 3)
        assert clusters == [[0]]
        assert diagnostics.fallback_triggered

    def test_min_points_one_makes_singletons(self, scattered_observations):
        clusters, diagnostics = build_clusters(scattered_observations, 150, 1)
        assert clusters == [[0], [1], [2]]
        assert not diagnostics.fallback_triggered

    def test_chain_expansion(self, make_observation):
        """Core points reachable through each other merge into one cluster."""
        # 100 m steps: each interior point sees both neighbours within 150 m
        step = 100 / 111_195
        chain = [make_observation(14.0 + i * step, 121.0) for i in range(6)]
        clusters, _ = build_clusters(chain, 150, 3)

        assert len(clusters) == 1
        assert sorted(clusters[0]) == list(range(6))

    def test_border_point_not_a_seed(self, make_observation):
        """A border point joins the cluster but does not seed one of its own."""
        step = 100 / 111_195
        border = make_observation(14.0 + 2 * step, 121.0)
        bridge = make_observation(14.0 + step, 121.0)
        core = [make_observation(14.0, 121.0 + i * 1e-6) for i in range(3)]
        clusters, diagnostics = build_clusters([border, bridge] + core, 150, 3)

        assert len(clusters) == 1
        assert sorted(clusters[0]) == [0, 1, 2, 3, 4]
        assert diagnostics.cluster_sizes == [5]
        assert diagnostics.num_noise == 0

    def test_members_are_unique(self, five_cluster_observations):
        clusters, _ = build_clusters(five_cluster_observations, 150, 3)
        for members in clusters:
            assert len(members) == len(set(members))

    def test_h3_backend_same_groups(self, five_cluster_observations):
        pairwise, _ = build_clusters(five_cluster_observations, 150, 3)
        grid, diagnostics = build_clusters(five_cluster_observations, 150, 3, index="h3")
        assert grid == pairwise
        assert diagnostics.index == "h3"

    def test_invalid_min_points(self, makati_observations):
        with pytest.raises(ValueError, match="min_points"):
            build_clusters(makati_observations, 150, 0)

    def test_diagnostics_type(self, makati_observations):
        _, diagnostics = build_clusters(makati_observations, 150, 3)
        assert isinstance(diagnostics, ClusteringDiagnostics)
        assert diagnostics.cluster_sizes == [4]


# ==============================================================================
# cluster_observations Tests
# ==============================================================================

class TestClusterObservations:
    """Test grouping + summarizing end to end."""

    def test_makati_scenario(self, makati_observations, now):
        summaries = cluster_observations(
            makati_observations, {"radius_meters": 150, "min_points": 3}, now=now
        )

        assert len(summaries) == 1
        top = summaries[0]
        assert top.label == "Makati City - Ayala"
        assert top.count == 4
        assert top.confidence > 0.8

    def test_confidence_bounds(self, five_cluster_observations, scattered_observations, now):
        options = ClusterOptions(radius_meters=150, min_points=3)
        for observations in (five_cluster_observations, scattered_observations):
            for summary in cluster_observations(observations, options, now=now):
                assert 0.0 <= summary.confidence <= 1.0
                assert summary.count == len(summary.members)

    def test_sorted_by_confidence(self, five_cluster_observations, now):
        summaries = cluster_observations(
            five_cluster_observations, {"radius_meters": 150, "min_points": 3}, now=now
        )
        confidences = [s.confidence for s in summaries]
        assert confidences == sorted(confidences, reverse=True)
        assert [s.label for s in summaries] == [f"Area {i}" for i in range(5)]

    def test_deterministic(self, five_cluster_observations, now):
        options = {"radius_meters": 150, "min_points": 3}
        first = cluster_observations(five_cluster_observations, options, now=now)
        second = cluster_observations(five_cluster_observations, options, now=now)

        assert [(s.label, s.confidence, s.count) for s in first] == [
            (s.label, s.confidence, s.count) for s in second
        ]
        assert [[m.id for m in s.members] for s in first] == [[m.id for m in s.members] for s in second]

    def test_fallback_cluster_holds_everything(self, scattered_observations, now):
        summaries = cluster_observations(
            scattered_observations, {"radius_meters": 150, "min_points": 3}, now=now
        )
        assert len(summaries) == 1
        assert summaries[0].count == 3

    def test_empty_input(self):
        assert cluster_observations([]) == []

    def test_defaults_resolved_from_config(self):
        resolved = resolve_options(None)
        assert resolved.radius_meters == DEFAULT_CLUSTER_CONFIG.radius_meters
        assert resolved.min_points == DEFAULT_CLUSTER_CONFIG.min_points
        assert resolved.limit == DEFAULT_CLUSTER_CONFIG.limit

    def test_partial_options_keep_overrides(self):
        resolved = resolve_options({"radius_meters": 150})
        assert resolved.radius_meters == 150
        assert resolved.min_points == DEFAULT_CLUSTER_CONFIG.min_points
