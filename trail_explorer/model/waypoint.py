"""Waypoint and CandidateNeighbor - nodes of the lazily generated route graph.

A CandidateNeighbor is created for every accepted neighbor during expansion
and sits on the exploration stack. Once popped and committed, its Waypoint
becomes part of the Trail.
"""

from dataclasses import dataclass
from math import isnan

from trail_explorer.model.coordinate import Coordinate


@dataclass(frozen=True)
class Waypoint:
    """A point on a trail with its arrival bearing, elevation, and slope.

    Attributes:
        coordinate: Position (lat, lon)
        bearing_deg: Bearing of arrival (0-360, clockwise from North)
        elevation_m: Terrain height in meters
        slope_pct: Signed percent grade of the arriving edge (uphill positive)

    Example:
        wp = Waypoint(coordinate=Coordinate(lat=35.7565, lon=-81.7479), bearing_deg=0.0,
                      elevation_m=402.0, slope_pct=0.0)
    """

    coordinate: Coordinate
    bearing_deg: float
    elevation_m: float
    slope_pct: float

    def __post_init__(self) -> None:
        if isnan(self.elevation_m):
            raise ValueError(f"Waypoint cannot have NaN elevation at {self.coordinate}")

    @property
    def lat(self) -> float:
        return self.coordinate.lat

    @property
    def lon(self) -> float:
        return self.coordinate.lon

    def distance_to(self, other: "Waypoint") -> float:
        """Great-circle distance to another waypoint in meters."""
        return self.coordinate.distance_to(other.coordinate)

    def to_dict(self) -> dict[str, float]:
        return {
            "lat": self.lat,
            "lon": self.lon,
            "bearing_deg": self.bearing_deg,
            "elevation_m": self.elevation_m,
            "slope_pct": self.slope_pct,
        }

    def __repr__(self) -> str:
        return (
            f"Waypoint(lat={self.lat:.6f}, lon={self.lon:.6f}, brg={self.bearing_deg:.0f}°, "
            f"elev={self.elevation_m:.1f}m, slope={self.slope_pct:.1f}%)"
        )


@dataclass(frozen=True)
class CandidateNeighbor:
    """A not-yet-committed waypoint proposal with its selection weight.

    Attributes:
        waypoint: The proposed waypoint
        weight: Selection weight from the edge cost model (always > 0)
    """

    waypoint: Waypoint
    weight: float

    def __post_init__(self) -> None:
        if not self.weight > 0:
            raise ValueError(f"Candidate weight must be positive, got {self.weight}")

    @property
    def coordinate(self) -> Coordinate:
        return self.waypoint.coordinate
