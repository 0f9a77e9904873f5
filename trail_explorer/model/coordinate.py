"""Coordinate and Bounds - geometry atoms for route exploration.

Coordinate is the single source of truth for location throughout the system.
Bounds is the search rectangle every generated neighbor must fall inside.
"""

from dataclasses import dataclass
from math import cos, isfinite, radians

from trail_explorer.constants import CoordinateConfig, MapConfig
from trail_explorer.core.geo_calculator import GeoCalculator
from trail_explorer.exceptions import ConfigurationError, InvalidBoundsError


@dataclass(frozen=True)
class Coordinate:
    """An immutable (lat, lon) position in decimal degrees.

    Example:
        start = Coordinate(lat=35.75649, lon=-81.74787)
        start.distance_to(Coordinate(lat=35.77422, lon=-81.75507))  # ~2070m
    """

    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not (isfinite(self.lat) and isfinite(self.lon)):
            raise ConfigurationError(f"Coordinate must be finite, got ({self.lat}, {self.lon})")

    @property
    def lat_lon(self) -> tuple[float, float]:
        """Return (lat, lon) tuple - standard geographic order."""
        return (self.lat, self.lon)

    @property
    def lon_lat(self) -> tuple[float, float]:
        """Return (lon, lat) tuple - GeoJSON/Pydeck order."""
        return (self.lon, self.lat)

    def key(self, decimals: int = CoordinateConfig.KEY_DECIMALS) -> str:
        """Canonical string key used by the visited set."""
        # + 0.0 folds -0.0 into 0.0 so both spell the same key
        return f"{round(self.lat, decimals) + 0.0:.{decimals}f},{round(self.lon, decimals) + 0.0:.{decimals}f}"

    def distance_to(self, other: "Coordinate") -> float:
        """Great-circle distance to another coordinate in meters."""
        return GeoCalculator.haversine_distance_m(lat1=self.lat, lon1=self.lon, lat2=other.lat, lon2=other.lon)

    def bearing_to(self, other: "Coordinate") -> float:
        """Initial bearing toward another coordinate (0-360)."""
        return GeoCalculator.initial_bearing_deg(lat1=self.lat, lon1=self.lon, lat2=other.lat, lon2=other.lon)

    def destination(self, bearing_deg: float, distance_m: float) -> "Coordinate":
        """Project a new coordinate along a bearing."""
        lat, lon = GeoCalculator.destination(lat=self.lat, lon=self.lon, bearing_deg=bearing_deg, distance_m=distance_m)
        return Coordinate(lat=lat, lon=lon)

    def __repr__(self) -> str:
        return f"Coordinate(lat={self.lat:.6f}, lon={self.lon:.6f})"


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned lat/lon rectangle (edges inclusive).

    Raises:
        InvalidBoundsError: If min > max on either axis.
    """

    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def __post_init__(self) -> None:
        if self.min_lat > self.max_lat:
            raise InvalidBoundsError(f"min_lat {self.min_lat} > max_lat {self.max_lat}")
        if self.min_lon > self.max_lon:
            raise InvalidBoundsError(f"min_lon {self.min_lon} > max_lon {self.max_lon}")

    def contains(self, coordinate: Coordinate) -> bool:
        """Check whether a coordinate lies inside the rectangle."""
        return self.min_lat <= coordinate.lat <= self.max_lat and self.min_lon <= coordinate.lon <= self.max_lon

    @classmethod
    def around(cls, a: Coordinate, b: Coordinate, padding_m: float) -> "Bounds":
        """Smallest rectangle enclosing two points, grown by padding_m on every side.

        Uses the flat-earth approximation for the padding (fine at trail scale).
        """
        pad_lat = padding_m / MapConfig.METERS_PER_DEGREE_EQUATOR
        mid_lat = (a.lat + b.lat) / 2
        pad_lon = padding_m / (MapConfig.METERS_PER_DEGREE_EQUATOR * max(cos(radians(mid_lat)), 1e-6))
        return cls(
            min_lat=min(a.lat, b.lat) - pad_lat,
            max_lat=max(a.lat, b.lat) + pad_lat,
            min_lon=min(a.lon, b.lon) - pad_lon,
            max_lon=max(a.lon, b.lon) + pad_lon,
        )
