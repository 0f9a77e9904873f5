"""Spherical-earth geometry kernel for route exploration.

Everything the search needs to move across the map:
- great-circle distance between two points
- initial bearing from one point toward another
- the point reached by walking a distance along a bearing
- the unsigned gap between two bearings

Angles are decimal degrees, bearings clockwise from true North, lengths in
meters. The earth is a sphere of radius 6,371 km.
"""

from math import asin, atan2, cos, degrees, radians, sin, sqrt

# Earth's radius in meters (spherical approximation)
EARTH_RADIUS_M = 6_371_000


class GeoCalculator:
    """Stateless great-circle helpers.

    Example:
        d = GeoCalculator.haversine_distance_m(lat1=35.75649, lon1=-81.74787, lat2=35.77422, lon2=-81.75507)
        lat, lon = GeoCalculator.destination(lat=35.75649, lon=-81.74787, bearing_deg=340.0, distance_m=35.0)
    """

    EARTH_RADIUS_M = EARTH_RADIUS_M

    @staticmethod
    def haversine_distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Great-circle distance between two points (Haversine formula).

        Args:
            lat1: Latitude of first point (decimal degrees)
            lon1: Longitude of first point (decimal degrees)
            lat2: Latitude of second point (decimal degrees)
            lon2: Longitude of second point (decimal degrees)

        Returns:
            Distance in meters; >= 0, symmetric, 0 for identical points.
        """
        phi1, phi2 = radians(lat1), radians(lat2)
        half_dphi = (phi2 - phi1) / 2
        half_dlambda = radians(lon2 - lon1) / 2

        h = sin(half_dphi) ** 2 + cos(phi1) * cos(phi2) * sin(half_dlambda) ** 2
        # Float noise near antipodes can leave h slightly outside [0, 1]
        h = min(1.0, max(0.0, h))
        return 2 * EARTH_RADIUS_M * asin(sqrt(h))

    @staticmethod
    def initial_bearing_deg(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Heading to leave point 1 on the great circle through point 2.

        Args:
            lat1: Latitude of start point (decimal degrees)
            lon1: Longitude of start point (decimal degrees)
            lat2: Latitude of end point (decimal degrees)
            lon2: Longitude of end point (decimal degrees)

        Returns:
            Bearing in degrees [0, 360), clockwise from North.
        """
        phi1, phi2 = radians(lat1), radians(lat2)
        dlambda = radians(lon2 - lon1)

        east = sin(dlambda) * cos(phi2)
        north = cos(phi1) * sin(phi2) - sin(phi1) * cos(phi2) * cos(dlambda)
        bearing = degrees(atan2(east, north)) % 360
        # A tiny negative angle wraps to 360.0 exactly
        return 0.0 if bearing >= 360 else bearing

    @staticmethod
    def destination(lat: float, lon: float, bearing_deg: float, distance_m: float) -> tuple[float, float]:
        """Walk distance_m from (lat, lon) along bearing_deg.

        Longitude is left unwrapped, so a walk across the antimeridian ends
        slightly beyond ±180.

        Args:
            lat: Latitude of start point (decimal degrees)
            lon: Longitude of start point (decimal degrees)
            bearing_deg: Bearing in degrees (clockwise from North)
            distance_m: Distance to travel in meters

        Returns:
            Tuple (lat, lon) of the end point in decimal degrees.
        """
        phi1 = radians(lat)
        theta = radians(bearing_deg)
        delta = distance_m / EARTH_RADIUS_M

        sin_phi2 = sin(phi1) * cos(delta) + cos(phi1) * sin(delta) * cos(theta)
        phi2 = asin(min(1.0, max(-1.0, sin_phi2)))
        dlambda = atan2(sin(theta) * sin(delta) * cos(phi1), cos(delta) - sin(phi1) * sin_phi2)
        return degrees(phi2), lon + degrees(dlambda)

    @staticmethod
    def angular_difference_deg(bearing_a: float, bearing_b: float) -> float:
        """Smallest absolute angle between two bearings.

        Handles the wraparound at 0°/360°, e.g. 350° vs 10° is 20°.

        Args:
            bearing_a: First bearing in degrees
            bearing_b: Second bearing in degrees

        Returns:
            Difference in degrees [0, 180].
        """
        gap = abs(bearing_a - bearing_b) % 360
        return 360 - gap if gap > 180 else gap
