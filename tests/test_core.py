"""Tests for core services: geometry, edge cost, proximity guard, evaluator, elevation oracles."""

from math import exp, inf, isfinite, nan
from pathlib import Path

import numpy as np
import pytest
import rasterio
import requests
from hypothesis import given, settings, strategies as st
from rasterio.transform import from_origin

from conftest import M, MockElevationOracle, make_straight_trail
from trail_explorer.constants import CostConfig
from trail_explorer.core.dem_service import (
    CachedElevationOracle,
    DEMService,
    ElevationOracle,
    download_dem_from_huggingface,
)
from trail_explorer.core.edge_cost import EdgeCostModel
from trail_explorer.core.geo_calculator import GeoCalculator
from trail_explorer.core.proximity_guard import ProximityGuard
from trail_explorer.core.trail_evaluator import TrailEvaluator
from trail_explorer.exceptions import ElevationUnavailableError
from trail_explorer.model.coordinate import Coordinate
from trail_explorer.model.trail import Trail
from trail_explorer.model.waypoint import Waypoint


class TestGeoCalculator:
    """GeoCalculator great-circle math."""

    def test_sphere_radius(self) -> None:
        assert GeoCalculator.EARTH_RADIUS_M == 6_371_000

    def test_distance_one_degree_latitude(self) -> None:
        """One degree of latitude is 2πR / 360 = 111,194.93m on the 6,371km sphere."""
        d = GeoCalculator.haversine_distance_m(lat1=0.0, lon1=0.0, lat2=1.0, lon2=0.0)
        assert d == pytest.approx(111_194.93, abs=0.01)

    def test_distance_to_self_is_zero(self) -> None:
        assert GeoCalculator.haversine_distance_m(lat1=35.7, lon1=-81.7, lat2=35.7, lon2=-81.7) == 0.0

    def test_nc_route_distance(self) -> None:
        """The NC field route is a bit over 2km as the crow flies."""
        d = GeoCalculator.haversine_distance_m(lat1=35.75649, lon1=-81.74787, lat2=35.77422, lon2=-81.75507)
        assert 2000 < d < 2150

    def test_cardinal_bearings(self) -> None:
        """North, east, south, west from the origin."""
        assert GeoCalculator.initial_bearing_deg(lat1=0, lon1=0, lat2=1, lon2=0) == pytest.approx(0.0, abs=1e-9)
        assert GeoCalculator.initial_bearing_deg(lat1=0, lon1=0, lat2=0, lon2=1) == pytest.approx(90.0)
        assert GeoCalculator.initial_bearing_deg(lat1=0, lon1=0, lat2=-1, lon2=0) == pytest.approx(180.0)
        assert GeoCalculator.initial_bearing_deg(lat1=0, lon1=0, lat2=0, lon2=-1) == pytest.approx(270.0)

    def test_destination_north(self) -> None:
        """Travelling 1000m north only changes latitude."""
        lat, lon = GeoCalculator.destination(lat=0.0, lon=0.0, bearing_deg=0.0, distance_m=1000.0)
        assert lat == pytest.approx(1000 / 111_194.93, rel=1e-7)
        assert lon == pytest.approx(0.0, abs=1e-12)

    def test_angular_difference_wraparound(self) -> None:
        """350° vs 10° is 20°, not 340°."""
        assert GeoCalculator.angular_difference_deg(350.0, 10.0) == pytest.approx(20.0)
        assert GeoCalculator.angular_difference_deg(0.0, 180.0) == pytest.approx(180.0)
        assert GeoCalculator.angular_difference_deg(90.0, 90.0) == 0.0

    @given(
        lat=st.floats(min_value=-80.0, max_value=80.0, allow_nan=False),
        lon=st.floats(min_value=-179.0, max_value=179.0, allow_nan=False),
        bearing=st.floats(min_value=0.0, max_value=359.99, allow_nan=False),
        distance=st.floats(min_value=1.0, max_value=100_000.0, allow_nan=False),
    )
    @settings(max_examples=200)
    def test_destination_distance_round_trip(self, lat: float, lon: float, bearing: float, distance: float) -> None:
        """distance(p, destination(p, b, d)) ≈ d."""
        lat2, lon2 = GeoCalculator.destination(lat=lat, lon=lon, bearing_deg=bearing, distance_m=distance)
        measured = GeoCalculator.haversine_distance_m(lat1=lat, lon1=lon, lat2=lat2, lon2=lon2)
        assert measured == pytest.approx(distance, rel=1e-6, abs=1e-3)

    @given(
        lat1=st.floats(min_value=-89.0, max_value=89.0, allow_nan=False),
        lon1=st.floats(min_value=-180.0, max_value=180.0, allow_nan=False),
        lat2=st.floats(min_value=-89.0, max_value=89.0, allow_nan=False),
        lon2=st.floats(min_value=-180.0, max_value=180.0, allow_nan=False),
    )
    @settings(max_examples=200)
    def test_distance_symmetric_and_bearing_in_range(self, lat1: float, lon1: float, lat2: float, lon2: float) -> None:
        """Distance is symmetric and non-negative; bearings stay in [0, 360)."""
        d_ab = GeoCalculator.haversine_distance_m(lat1=lat1, lon1=lon1, lat2=lat2, lon2=lon2)
        d_ba = GeoCalculator.haversine_distance_m(lat1=lat2, lon1=lon2, lat2=lat1, lon2=lon1)
        assert d_ab >= 0
        assert d_ab == pytest.approx(d_ba, abs=1e-6)

        bearing = GeoCalculator.initial_bearing_deg(lat1=lat1, lon1=lon1, lat2=lat2, lon2=lon2)
        assert 0 <= bearing < 360


class TestEdgeCostModel:
    """EdgeCostModel factor tables and weight guarantees."""

    def test_slope_factor_tiers(self) -> None:
        """Each tier multiplier times the continuous decay."""
        assert EdgeCostModel.slope_factor(0.0) == pytest.approx(2.0)
        assert EdgeCostModel.slope_factor(5.0) == pytest.approx(2.0 * exp(-0.5))
        assert EdgeCostModel.slope_factor(8.0) == pytest.approx(0.5 * exp(-0.8))
        assert EdgeCostModel.slope_factor(15.0) == pytest.approx(0.05 * exp(-1.5))
        assert EdgeCostModel.slope_factor(25.0) == pytest.approx(0.005 * exp(-2.5))
        assert EdgeCostModel.slope_factor(45.0) == pytest.approx(0.0005 * exp(-4.5))

    def test_slope_factor_symmetric(self) -> None:
        """Uphill and downhill of the same grade weigh the same."""
        assert EdgeCostModel.slope_factor(-12.0) == EdgeCostModel.slope_factor(12.0)

    def test_slope_factor_vanishes_for_vertical_edges(self) -> None:
        """Positive for any finite slope, zero for an infinite one."""
        assert EdgeCostModel.slope_factor(500.0) > 0
        assert EdgeCostModel.slope_factor(inf) == 0.0
        assert EdgeCostModel.slope_factor(-inf) == 0.0

    def test_slope_factor_decreases_with_steepness(self) -> None:
        slopes = [0.0, 4.0, 6.0, 12.0, 22.0, 35.0, 80.0]
        factors = [EdgeCostModel.slope_factor(s) for s in slopes]
        assert factors == sorted(factors, reverse=True)

    def test_alignment_factor_bands(self) -> None:
        """Proportional reward, neutral band, partial and severe penalties."""
        assert EdgeCostModel.alignment_factor(0.0, 0.0) == pytest.approx(2.0)
        assert EdgeCostModel.alignment_factor(350.0, 10.0) == pytest.approx(1.0 + (1.0 - 20.0 / 45.0))
        assert EdgeCostModel.alignment_factor(45.0, 0.0) == pytest.approx(1.0)
        assert EdgeCostModel.alignment_factor(60.0, 0.0) == 1.0
        assert EdgeCostModel.alignment_factor(100.0, 0.0) == CostConfig.PARTIAL_PENALTY
        assert EdgeCostModel.alignment_factor(180.0, 0.0) == CostConfig.SEVERE_PENALTY

    def test_strong_factor_grows_near_destination(self) -> None:
        assert EdgeCostModel.strong_factor(10.0) == 1024.0
        assert EdgeCostModel.strong_factor(25.0) == 256.0
        assert EdgeCostModel.strong_factor(75.0) == 16.0
        assert EdgeCostModel.strong_factor(200.0) == 4.0
        assert EdgeCostModel.strong_factor(1000.0) == 2.0

    def test_progress_factor(self) -> None:
        """Improvement multiplies, no improvement divides, large steps earn extra."""
        assert EdgeCostModel.progress_factor(1000.0, 995.0) == 2.0
        assert EdgeCostModel.progress_factor(1000.0, 970.0) == 4.0
        assert EdgeCostModel.progress_factor(120.0, 90.0) == 32.0
        assert EdgeCostModel.progress_factor(1000.0, 1000.5) == 0.5
        assert EdgeCostModel.progress_factor(60.0, 80.0) == pytest.approx(1 / 16)

    def test_weight_straight_toward_destination(self, origin: Coordinate) -> None:
        """Flat edge aimed at a destination 1km north: 2.0 × 2.0 × (2 × 2)."""
        current = Waypoint(coordinate=origin, bearing_deg=0.0, elevation_m=1000.0, slope_pct=0.0)
        candidate = Waypoint(
            coordinate=origin.destination(bearing_deg=0.0, distance_m=35.0),
            bearing_deg=0.0,
            elevation_m=1000.0,
            slope_pct=0.0,
        )
        destination = Coordinate(lat=1000 / M, lon=0.0)

        weight = EdgeCostModel().weight(current=current, candidate=candidate, destination=destination)
        assert weight == pytest.approx(16.0, rel=1e-3)

    def test_weight_prefers_forward_over_backward(self, origin: Coordinate) -> None:
        current = Waypoint(coordinate=origin, bearing_deg=0.0, elevation_m=1000.0, slope_pct=0.0)
        destination = Coordinate(lat=1000 / M, lon=0.0)
        model = EdgeCostModel()

        def weight_at(bearing: float) -> float:
            proposal = Waypoint(
                coordinate=origin.destination(bearing_deg=bearing, distance_m=35.0),
                bearing_deg=bearing,
                elevation_m=1000.0,
                slope_pct=0.0,
            )
            return model.weight(current=current, candidate=proposal, destination=destination)

        assert weight_at(0.0) > weight_at(60.0) > weight_at(180.0)

    @pytest.mark.parametrize("slope", [inf, -inf, nan, 1e308, -1e308])
    def test_weight_extreme_slopes_stay_at_floor(self, origin: Coordinate, slope: float) -> None:
        """Degenerate slopes never produce zero, NaN, or infinite weights."""
        current = Waypoint(coordinate=origin, bearing_deg=0.0, elevation_m=1000.0, slope_pct=0.0)
        candidate = Waypoint(
            coordinate=origin.destination(bearing_deg=90.0, distance_m=35.0),
            bearing_deg=90.0,
            elevation_m=1000.0,
            slope_pct=slope,
        )
        weight = EdgeCostModel().weight(current=current, candidate=candidate, destination=Coordinate(lat=0.01, lon=0))
        assert isfinite(weight)
        assert weight >= CostConfig.FLOOR

    @given(
        slope=st.floats(allow_nan=True, allow_infinity=True),
        bearing=st.floats(min_value=0.0, max_value=359.0, allow_nan=False),
    )
    @settings(max_examples=100)
    def test_weight_never_below_floor(self, slope: float, bearing: float) -> None:
        origin = Coordinate(lat=0.0, lon=0.0)
        current = Waypoint(coordinate=origin, bearing_deg=0.0, elevation_m=1000.0, slope_pct=0.0)
        candidate = Waypoint(
            coordinate=origin.destination(bearing_deg=bearing, distance_m=35.0),
            bearing_deg=bearing,
            elevation_m=1000.0,
            slope_pct=slope,
        )
        weight = EdgeCostModel().weight(current=current, candidate=candidate, destination=Coordinate(lat=0.005, lon=0))
        assert isfinite(weight)
        assert weight >= CostConfig.FLOOR

    def test_invalid_floor_rejected(self) -> None:
        with pytest.raises(ValueError):
            EdgeCostModel(floor=0.0)


class TestProximityGuard:
    """ProximityGuard self-avoidance rules."""

    def test_skip_last_n(self) -> None:
        """ceil(33 / 35 × 1.7) + 2 = 4."""
        assert ProximityGuard(edge_length_m=35.0).skip_last_n(min_distance_m=33.0) == 4

    def test_empty_trail_never_too_close(self, origin: Coordinate) -> None:
        assert ProximityGuard(edge_length_m=35.0).too_close(origin, Trail(), min_distance_m=33.0) is False

    def test_far_candidate_accepted(self, straight_north_trail: Trail) -> None:
        far = Coordinate(lat=0.0, lon=2000 / M)
        assert ProximityGuard(edge_length_m=35.0).too_close(far, straight_north_trail, min_distance_m=33.0) is False

    def test_continuing_straight_accepted(self, straight_north_trail: Trail) -> None:
        """The natural next step one edge ahead passes the shrinking radii."""
        ahead = straight_north_trail.end.coordinate.destination(bearing_deg=0.0, distance_m=35.0)
        assert ProximityGuard(edge_length_m=35.0).too_close(ahead, straight_north_trail, min_distance_m=33.0) is False

    def test_right_angle_turn_accepted(self, straight_north_trail: Trail) -> None:
        """A 90° switchback keeps ~49.5m from the second newest point (radius 49m)."""
        east = straight_north_trail.end.coordinate.destination(bearing_deg=90.0, distance_m=35.0)
        assert ProximityGuard(edge_length_m=35.0).too_close(east, straight_north_trail, min_distance_m=33.0) is False

    def test_doubling_back_rejected(self, straight_north_trail: Trail) -> None:
        """Stepping straight back lands on the previous point."""
        back = straight_north_trail.end.coordinate.destination(bearing_deg=180.0, distance_m=35.0)
        assert ProximityGuard(edge_length_m=35.0).too_close(back, straight_north_trail, min_distance_m=33.0) is True

    def test_sharp_turn_rejected(self, straight_north_trail: Trail) -> None:
        """A 150° turn passes ~18m from the second newest point."""
        sharp = straight_north_trail.end.coordinate.destination(bearing_deg=150.0, distance_m=35.0)
        assert ProximityGuard(edge_length_m=35.0).too_close(sharp, straight_north_trail, min_distance_m=33.0) is True

    def test_old_prefix_uses_min_distance(self, straight_north_trail: Trail) -> None:
        """A candidate 10m beside the first waypoint violates min distance."""
        beside_start = straight_north_trail.start.coordinate.destination(bearing_deg=90.0, distance_m=10.0)
        guard = ProximityGuard(edge_length_m=35.0)
        assert guard.too_close(beside_start, straight_north_trail, min_distance_m=33.0) is True

    def test_old_prefix_allows_distant_parallel(self, origin: Coordinate) -> None:
        """A parallel track 40m away from a long trail is allowed."""
        trail = make_straight_trail(start=origin, bearing_deg=0.0, count=12)
        parallel = trail[3].coordinate.destination(bearing_deg=90.0, distance_m=40.0)
        assert ProximityGuard(edge_length_m=35.0).too_close(parallel, trail, min_distance_m=33.0) is False

    def test_invalid_edge_length_rejected(self) -> None:
        with pytest.raises(ValueError):
            ProximityGuard(edge_length_m=0.0)


class TestTrailEvaluator:
    """TrailEvaluator scoring and unit conversion."""

    def test_failed_attempt_scores_negative(self, sloped_trail_3_edges: Trail) -> None:
        assert TrailEvaluator(edge_length_m=35.0).score(sloped_trail_3_edges, succeeded=False) == -1.0

    def test_single_point_trail_scores_negative(self, origin: Coordinate) -> None:
        trail = Trail()
        trail.append(Waypoint(coordinate=origin, bearing_deg=0.0, elevation_m=1000.0, slope_pct=0.0))
        assert TrailEvaluator(edge_length_m=35.0).score(trail, succeeded=True) == -1.0

    def test_score_is_mean_abs_slope(self, sloped_trail_3_edges: Trail) -> None:
        """Edges at +10%, -20%, 0% average to 10; the start's slope is not counted."""
        assert TrailEvaluator(edge_length_m=35.0).score(sloped_trail_3_edges, succeeded=True) == pytest.approx(10.0)

    def test_length_penalty(self, sloped_trail_3_edges: Trail) -> None:
        """105m trail with 2 points per km penalty."""
        evaluator = TrailEvaluator(edge_length_m=35.0, length_penalty_per_km=2.0)
        assert evaluator.score(sloped_trail_3_edges, succeeded=True) == pytest.approx(10.0 + 2.0 * 0.105)

    def test_length_in_units(self, sloped_trail_3_edges: Trail) -> None:
        evaluator = TrailEvaluator(edge_length_m=35.0)
        assert evaluator.length_in_units(sloped_trail_3_edges, unit="m") == pytest.approx(105.0)
        assert evaluator.length_in_units(sloped_trail_3_edges, unit="km") == pytest.approx(0.105)
        assert evaluator.length_in_units(sloped_trail_3_edges, unit="mi") == pytest.approx(105.0 / 1609.344)
        assert evaluator.length_in_units(sloped_trail_3_edges, unit="ft") == pytest.approx(105.0 / 0.3048)

    def test_unknown_unit_rejected(self, sloped_trail_3_edges: Trail) -> None:
        with pytest.raises(ValueError, match="Unknown unit"):
            TrailEvaluator(edge_length_m=35.0).length_in_units(sloped_trail_3_edges, unit="furlong")

    def test_summary(self, sloped_trail_3_edges: Trail) -> None:
        summary = TrailEvaluator(edge_length_m=35.0).summary(sloped_trail_3_edges)
        assert summary.length_m == pytest.approx(105.0)
        assert summary.total_ascent_m == pytest.approx(3.5)
        assert summary.total_descent_m == pytest.approx(7.0)
        assert summary.mean_abs_slope_pct == pytest.approx(10.0)
        assert summary.max_abs_slope_pct == pytest.approx(20.0)

    def test_summary_of_empty_trail(self) -> None:
        summary = TrailEvaluator(edge_length_m=35.0).summary(Trail())
        assert summary.length_m == 0.0
        assert summary.mean_abs_slope_pct == 0.0


class TestCachedElevationOracle:
    """CachedElevationOracle memoization."""

    def test_repeated_lookup_hits_cache(self, origin: Coordinate) -> None:
        inner = MockElevationOracle(base_elevation=750.0)
        cached = CachedElevationOracle(inner)

        assert cached.elevation(origin) == 750.0
        assert cached.elevation(Coordinate(lat=0.0, lon=0.0)) == 750.0
        assert inner.calls == 1
        assert (cached.hits, cached.misses) == (1, 1)

    def test_failures_are_cached(self, origin: Coordinate) -> None:
        inner = MockElevationOracle(no_data=lambda c: True)
        cached = CachedElevationOracle(inner)

        for _ in range(3):
            with pytest.raises(LookupError):
                cached.elevation(origin)
        assert inner.calls == 1

    def test_clear(self, origin: Coordinate) -> None:
        inner = MockElevationOracle()
        cached = CachedElevationOracle(inner)
        cached.elevation(origin)
        cached.clear()
        cached.elevation(origin)
        assert inner.calls == 2
        assert cached.misses == 1

    def test_satisfies_oracle_protocol(self) -> None:
        assert isinstance(CachedElevationOracle(MockElevationOracle()), ElevationOracle)
        assert isinstance(MockElevationOracle(), ElevationOracle)


@pytest.fixture
def tiny_dem(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> DEMService:
    """10×10 WGS84 GeoTIFF at 0.001° resolution, north-west corner (47.0, 10.0).

    Cell (row, col) holds 1000 + 10 × row + col; cell (0, 0) is no-data.
    The DEMService singleton is reset so the test gets its own instance.
    """
    data = (np.arange(100, dtype="float32").reshape(10, 10) + 1000.0).astype("float32")
    data[0, 0] = -9999.0
    dem_path = tmp_path / "tiny_dem.tif"
    with rasterio.open(
        dem_path,
        "w",
        driver="GTiff",
        height=10,
        width=10,
        count=1,
        dtype="float32",
        crs="EPSG:4326",
        transform=from_origin(10.0, 47.0, 0.001, 0.001),
        nodata=-9999.0,
    ) as dst:
        dst.write(data, 1)

    monkeypatch.setattr(DEMService, "_instance", None)
    return DEMService(dem_path=dem_path)


class TestDEMService:
    """DEMService lookups against a small generated raster."""

    def test_lookup_returns_cell_value(self, tiny_dem: DEMService) -> None:
        """Row 1, column 2 -> 1012m."""
        assert tiny_dem.elevation(Coordinate(lat=46.9985, lon=10.0025)) == pytest.approx(1012.0)
        assert tiny_dem.is_loaded

    def test_nodata_raises_lookup_error(self, tiny_dem: DEMService) -> None:
        with pytest.raises(ElevationUnavailableError):
            tiny_dem.elevation(Coordinate(lat=46.9995, lon=10.0005))

    def test_outside_raster_raises_lookup_error(self, tiny_dem: DEMService) -> None:
        with pytest.raises(LookupError):
            tiny_dem.elevation(Coordinate(lat=48.0, lon=10.0005))

    def test_just_outside_north_edge_raises(self, tiny_dem: DEMService) -> None:
        """Half a cell above the raster is outside, not row 0."""
        with pytest.raises(ElevationUnavailableError):
            tiny_dem.elevation(Coordinate(lat=47.0005, lon=10.0055))

    def test_bounds(self, tiny_dem: DEMService) -> None:
        west, south, east, north = tiny_dem.bounds
        assert west == pytest.approx(10.0)
        assert south == pytest.approx(46.99)
        assert east == pytest.approx(10.01)
        assert north == pytest.approx(47.0)

    def test_download_skipped_when_present(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        existing = tmp_path / "dem.tif"
        existing.write_bytes(b"already here")

        def fail_get(*args, **kwargs):
            raise AssertionError("no network access expected")

        monkeypatch.setattr(requests, "get", fail_get)
        assert download_dem_from_huggingface(target_path=existing) == existing

    def test_missing_file_raises(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(DEMService, "_instance", None)
        dem = DEMService(dem_path=tmp_path / "missing.tif")
        with pytest.raises(FileNotFoundError):
            dem.elevation(Coordinate(lat=47.0, lon=10.0))
