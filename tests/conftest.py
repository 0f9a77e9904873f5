"""Shared pytest fixtures for trail_explorer tests.

Provides MockElevationOracle and reusable route fixtures for all tests.

COORDINATE SYSTEM:
    Most tests use coordinates near the equator (lat~0) and prime meridian
    (lon~0) where 1 degree ≈ 111,320 meters in both directions, so the mock
    terrain needs no GeoCalculator (which would test with tested code).
    The end-to-end scenario uses the North Carolina route from the field
    trials; its mock terrain is measured relative to the start point.
"""

from math import cos, radians
from typing import Callable, Optional

import pytest

from trail_explorer.constants import MapConfig
from trail_explorer.exceptions import ElevationUnavailableError
from trail_explorer.model.coordinate import Bounds, Coordinate
from trail_explorer.model.exploration_config import ExplorationConfig
from trail_explorer.model.trail import Trail
from trail_explorer.model.waypoint import Waypoint

M = MapConfig.METERS_PER_DEGREE_EQUATOR


# =============================================================================
# MOCK ELEVATION ORACLE
# =============================================================================


class MockElevationOracle:
    """Mock oracle returning a tilted plane.

    Elevation formula (offsets in meters from the origin):
        elevation = base_elev + north_m * slope_ns_pct / 100 + east_m * slope_ew_pct / 100

    Positive slope_ns_pct climbs going north, positive slope_ew_pct climbs
    going east. The east offset is scaled by cos(origin latitude).

    Args:
        base_elevation: Elevation at the origin
        slope_ns_pct: North-south grade in percent
        slope_ew_pct: East-west grade in percent
        origin: Reference point (default 0, 0)
        no_data: Optional predicate; coordinates where it is True raise
            ElevationUnavailableError like a raster hole would
    """

    def __init__(
        self,
        base_elevation: float = 1000.0,
        slope_ns_pct: float = 0.0,
        slope_ew_pct: float = 0.0,
        origin: Optional[Coordinate] = None,
        no_data: Optional[Callable[[Coordinate], bool]] = None,
    ) -> None:
        self.base_elevation = base_elevation
        self.slope_ns_pct = slope_ns_pct
        self.slope_ew_pct = slope_ew_pct
        self.origin = origin or Coordinate(lat=0.0, lon=0.0)
        self.no_data = no_data
        self.calls = 0

    def elevation(self, coordinate: Coordinate) -> float:
        self.calls += 1
        if self.no_data is not None and self.no_data(coordinate):
            raise ElevationUnavailableError(f"Mock terrain has no data at {coordinate}")
        north_m = (coordinate.lat - self.origin.lat) * M
        east_m = (coordinate.lon - self.origin.lon) * M * cos(radians(self.origin.lat))
        return self.base_elevation + north_m * self.slope_ns_pct / 100 + east_m * self.slope_ew_pct / 100


class RecordingSink:
    """Visualization sink that remembers every update."""

    def __init__(self) -> None:
        self.updates: list[tuple[dict, bool]] = []

    def show(self, feature_collection: dict, final: bool = False) -> None:
        self.updates.append((feature_collection, final))


class BrokenSink:
    """Visualization sink that always fails."""

    def __init__(self) -> None:
        self.calls = 0

    def show(self, feature_collection: dict, final: bool = False) -> None:
        self.calls += 1
        raise RuntimeError("display went away")


# =============================================================================
# ORACLE FIXTURES
# =============================================================================


@pytest.fixture
def flat_oracle() -> MockElevationOracle:
    """Flat terrain at 1000m everywhere: every edge has 0% slope."""
    return MockElevationOracle(base_elevation=1000.0)


@pytest.fixture
def gentle_north_oracle() -> MockElevationOracle:
    """Terrain climbing 4% going north (gentle tier of the slope factor)."""
    return MockElevationOracle(base_elevation=1000.0, slope_ns_pct=4.0)


@pytest.fixture
def dead_oracle() -> MockElevationOracle:
    """Terrain with no data anywhere."""
    return MockElevationOracle(no_data=lambda c: True)


# =============================================================================
# ROUTE FIXTURES
# =============================================================================


@pytest.fixture
def origin() -> Coordinate:
    return Coordinate(lat=0.0, lon=0.0)


@pytest.fixture
def short_route_config(origin: Coordinate) -> ExplorationConfig:
    """Route 150m due north of the origin with a coarse 10° sweep.

    36 neighbors per node keeps attempts fast while still leaving enough
    choice for the walk to reach the destination.
    """
    return ExplorationConfig(
        start=origin,
        end=Coordinate(lat=150 / M, lon=0.0),
        edge_length_m=35.0,
        angle_increment_deg=10.0,
        min_distance_m=33.0,
        max_iterations=300,
    )


@pytest.fixture
def nc_scenario_config() -> ExplorationConfig:
    """North Carolina field route (~2.1 km), default exploration parameters.

    Edge 35m, 1° sweep (360 neighbors per node), min distance 33m, cap 1000.
    """
    return ExplorationConfig(
        start=Coordinate(lat=35.75649, lon=-81.74787),
        end=Coordinate(lat=35.77422, lon=-81.75507),
        edge_length_m=35.0,
        angle_increment_deg=1.0,
        min_distance_m=33.0,
        max_iterations=1000,
    )


@pytest.fixture
def nc_terrain(nc_scenario_config: ExplorationConfig) -> MockElevationOracle:
    """Hillside around the NC route: 3% up to the north, 2% down to the east."""
    return MockElevationOracle(
        base_elevation=400.0,
        slope_ns_pct=3.0,
        slope_ew_pct=-2.0,
        origin=nc_scenario_config.start,
    )


@pytest.fixture
def wide_bounds() -> Bounds:
    """Large rectangle around the origin (~11km each way)."""
    return Bounds(min_lat=-0.1, max_lat=0.1, min_lon=-0.1, max_lon=0.1)


# =============================================================================
# TRAIL FIXTURES
# =============================================================================


def make_straight_trail(start: Coordinate, bearing_deg: float, count: int, edge_length_m: float = 35.0) -> Trail:
    """Trail of count waypoints spaced edge_length_m apart along one bearing."""
    trail = Trail()
    coordinate = start
    for i in range(count):
        if i > 0:
            coordinate = coordinate.destination(bearing_deg=bearing_deg, distance_m=edge_length_m)
        trail.append(Waypoint(coordinate=coordinate, bearing_deg=bearing_deg, elevation_m=1000.0, slope_pct=0.0))
    return trail


@pytest.fixture
def straight_north_trail(origin: Coordinate) -> Trail:
    """10 waypoints heading due north from the origin, 35m apart (315m long)."""
    return make_straight_trail(start=origin, bearing_deg=0.0, count=10)


@pytest.fixture
def sloped_trail_3_edges(origin: Coordinate) -> Trail:
    """4 waypoints with arrival slopes 0 (start), +10%, -20%, 0%.

    Elevations 1000 -> 1003.5 -> 996.5 -> 996.5 for 35m edges.
    """
    elevations = [1000.0, 1003.5, 996.5, 996.5]
    slopes = [0.0, 10.0, -20.0, 0.0]
    trail = Trail()
    coordinate = origin
    for i, (elevation, slope) in enumerate(zip(elevations, slopes)):
        if i > 0:
            coordinate = coordinate.destination(bearing_deg=0.0, distance_m=35.0)
        trail.append(Waypoint(coordinate=coordinate, bearing_deg=0.0, elevation_m=elevation, slope_pct=slope))
    return trail
