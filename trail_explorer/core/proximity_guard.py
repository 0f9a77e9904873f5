"""Proximity guard - keeps a trail from running into itself.

The trail splits into an old prefix and a recent suffix of skip_last_n points:

    skip_last_n = ceil(min_distance / edge_length × ADJUSTMENT_FACTOR) + EXTRA_SKIPPED

Old prefix: a candidate closer than min_distance to any point is rejected.

Recent suffix: walking backward from the newest point, the k-th most recent
point (k = 1 for the newest) excludes a radius of k × edge_length × TURNING_FACTOR.
The newest point sits exactly one edge away from a fresh neighbor, so the
strict rule would always fire there. The shrinking radius still allows sharp
switchbacks but blocks doubling back over the tail.
"""

import logging
from math import ceil

from trail_explorer.constants import ProximityConfig
from trail_explorer.model.coordinate import Coordinate
from trail_explorer.model.trail import Trail

logger = logging.getLogger(__name__)


class ProximityGuard:
    """Self-intersection check for candidates against the committed trail.

    Example:
        guard = ProximityGuard(edge_length_m=35.0)
        if guard.too_close(candidate=coord, trail=trail, min_distance_m=33.0):
            ...  # discard candidate
    """

    def __init__(
        self,
        edge_length_m: float,
        adjustment_factor: float = ProximityConfig.ADJUSTMENT_FACTOR,
        extra_skipped: int = ProximityConfig.EXTRA_SKIPPED,
        turning_factor: float = ProximityConfig.TURNING_FACTOR,
    ) -> None:
        if edge_length_m <= 0:
            raise ValueError(f"edge_length_m must be positive, got {edge_length_m}")
        self.edge_length_m = edge_length_m
        self.adjustment_factor = adjustment_factor
        self.extra_skipped = extra_skipped
        self.turning_factor = turning_factor

    def skip_last_n(self, min_distance_m: float) -> int:
        """Number of most recent points checked with the relaxed radius.

        Args:
            min_distance_m: Minimum allowed distance to older trail sections

        Returns:
            ceil(min_distance_m / edge_length_m × adjustment_factor) + extra_skipped.
        """
        return ceil(min_distance_m / self.edge_length_m * self.adjustment_factor) + self.extra_skipped

    def too_close(self, candidate: Coordinate, trail: Trail, min_distance_m: float) -> bool:
        """Check whether committing candidate would bring the trail too close to itself.

        Args:
            candidate: Coordinate about to be committed
            trail: Committed trail of the current attempt
            min_distance_m: Minimum allowed distance to older trail sections

        Returns:
            True if the candidate must be discarded. Always False for an empty trail.
        """
        if trail.is_empty:
            return False

        waypoints = trail.waypoints
        split = max(0, len(waypoints) - self.skip_last_n(min_distance_m))

        for waypoint in waypoints[:split]:
            if candidate.distance_to(waypoint.coordinate) < min_distance_m:
                logger.debug(f"Candidate {candidate} within {min_distance_m}m of older trail point {waypoint}")
                return True

        recent = waypoints[split:]
        for k, waypoint in enumerate(reversed(recent), start=1):
            radius = k * self.edge_length_m * self.turning_factor
            if candidate.distance_to(waypoint.coordinate) < radius:
                logger.debug(f"Candidate {candidate} doubles back onto tail point #{k} (radius {radius:.1f}m)")
                return True

        return False
