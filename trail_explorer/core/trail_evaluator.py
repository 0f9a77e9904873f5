"""Trail evaluation for comparing independent attempts.

score = mean |slope| over committed edges + LENGTH_PENALTY_PER_KM × length_km

Lower is better. Failed or too-short trails get the negative FAILED_SCORE
sentinel so they can never be mistaken for a good trail.
"""

import logging
from dataclasses import dataclass

from trail_explorer.constants import EvaluatorConfig
from trail_explorer.model.trail import Trail

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrailSummary:
    """Elevation statistics of a trail.

    Attributes:
        length_m: Nominal length (segments × edge length)
        total_ascent_m: Sum of positive elevation changes
        total_descent_m: Sum of negative elevation changes (positive number)
        mean_abs_slope_pct: Mean |slope| across edges
        max_abs_slope_pct: Steepest edge
    """

    length_m: float
    total_ascent_m: float
    total_descent_m: float
    mean_abs_slope_pct: float
    max_abs_slope_pct: float


class TrailEvaluator:
    """Scores trails produced with a fixed edge length.

    Example:
        evaluator = TrailEvaluator(edge_length_m=35.0)
        score = evaluator.score(trail, succeeded=True)
        miles = evaluator.length_in_units(trail, unit="mi")
    """

    def __init__(
        self,
        edge_length_m: float,
        length_penalty_per_km: float = EvaluatorConfig.LENGTH_PENALTY_PER_KM,
    ) -> None:
        self.edge_length_m = edge_length_m
        self.length_penalty_per_km = length_penalty_per_km

    def score(self, trail: Trail, succeeded: bool) -> float:
        """Score a trail; lower is better.

        Returns:
            FAILED_SCORE (-1) if not succeeded or fewer than MIN_TRAIL_POINTS,
            otherwise a non-negative real.
        """
        if not succeeded or len(trail) < EvaluatorConfig.MIN_TRAIL_POINTS:
            return EvaluatorConfig.FAILED_SCORE

        slopes = trail.slopes
        mean_abs_slope = sum(abs(s) for s in slopes) / len(slopes)
        length_km = self.length_in_units(trail, unit="km")
        return mean_abs_slope + self.length_penalty_per_km * length_km

    def length_in_units(self, trail: Trail, unit: str = "m") -> float:
        """Trail length (segments × edge length) in m, km, mi or ft.

        Raises:
            ValueError: For an unknown unit.
        """
        if unit not in EvaluatorConfig.UNIT_METERS:
            raise ValueError(f"Unknown unit '{unit}', expected one of {sorted(EvaluatorConfig.UNIT_METERS)}")
        return trail.length_m(self.edge_length_m) / EvaluatorConfig.UNIT_METERS[unit]

    def summary(self, trail: Trail) -> TrailSummary:
        """Ascent, descent, and slope statistics for display."""
        ascent = 0.0
        descent = 0.0
        for previous, current in zip(trail.waypoints, trail.waypoints[1:]):
            delta = current.elevation_m - previous.elevation_m
            if delta > 0:
                ascent += delta
            else:
                descent -= delta

        abs_slopes = [abs(s) for s in trail.slopes]
        return TrailSummary(
            length_m=trail.length_m(self.edge_length_m),
            total_ascent_m=ascent,
            total_descent_m=descent,
            mean_abs_slope_pct=sum(abs_slopes) / len(abs_slopes) if abs_slopes else 0.0,
            max_abs_slope_pct=max(abs_slopes, default=0.0),
        )
