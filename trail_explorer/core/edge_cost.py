"""Edge cost model for weighted neighbor selection.

Each candidate edge gets a positive selection weight built from three
independent multiplicative factors:

    weight = max(FLOOR, slope_factor × alignment_factor × progress_factor)

Slope Factor:
    Tiered on |slope| (near flat rewarded, steep tiers shrink by an order of
    magnitude each), times exp(-|slope| / SLOPE_DECAY_PCT) so neighbouring
    slopes on either side of a tier boundary stay comparable.

Alignment Factor:
    Deviation between the candidate's arrival bearing and the bearing from the
    candidate toward the destination. Inside half the bias window the reward
    grows linearly with alignment; beyond the window a partial penalty, and
    beyond the secondary band a severe one.

Progress Factor:
    Distance reduction toward the destination. Improvement multiplies by a
    strong factor that grows as the destination gets close; no improvement
    divides by it. Large reductions earn an extra flat multiplier.

All tier boundaries and multipliers live in CostConfig.
"""

import logging
from math import exp, isfinite

from trail_explorer.constants import CostConfig
from trail_explorer.core.geo_calculator import GeoCalculator
from trail_explorer.model.coordinate import Coordinate
from trail_explorer.model.waypoint import Waypoint

logger = logging.getLogger(__name__)


class EdgeCostModel:
    """Computes selection weights for candidate edges.

    Example:
        model = EdgeCostModel()
        w = model.weight(current=node, candidate=neighbor, destination=end)
    """

    def __init__(self, floor: float = CostConfig.FLOOR) -> None:
        if not floor > 0:
            raise ValueError(f"Weight floor must be positive, got {floor}")
        self.floor = floor

    @staticmethod
    def slope_factor(slope_pct: float) -> float:
        """Tiered slope multiplier with continuous exponential decay.

        Args:
            slope_pct: Signed edge slope in percent (uphill positive)

        Returns:
            Multiplier > 0 for finite slopes; 0 for an infinite slope.
        """
        steepness = abs(slope_pct)
        tier = CostConfig.STEEPEST_MULTIPLIER
        for upper_bound, multiplier in CostConfig.SLOPE_TIERS:
            if steepness <= upper_bound:
                tier = multiplier
                break
        return tier * exp(-steepness / CostConfig.SLOPE_DECAY_PCT)

    @staticmethod
    def alignment_factor(arrival_bearing_deg: float, bearing_to_destination_deg: float) -> float:
        """Reward for heading toward the destination, penalty for heading away.

        Args:
            arrival_bearing_deg: Bearing the candidate was reached on
            bearing_to_destination_deg: Bearing from the candidate to the destination

        Returns:
            Multiplier: 1 + ALIGNMENT_GAIN when dead on, 1.0 inside the bias
            window, then PARTIAL_PENALTY and finally SEVERE_PENALTY.
        """
        deviation = GeoCalculator.angular_difference_deg(arrival_bearing_deg, bearing_to_destination_deg)
        half_window = CostConfig.MAX_BIAS_WINDOW_DEG / 2

        if deviation <= half_window:
            return 1.0 + (1.0 - deviation / half_window) * CostConfig.ALIGNMENT_GAIN
        if deviation <= CostConfig.MAX_BIAS_WINDOW_DEG:
            return 1.0
        if deviation <= CostConfig.SECONDARY_BAND_DEG:
            return CostConfig.PARTIAL_PENALTY
        return CostConfig.SEVERE_PENALTY

    @staticmethod
    def strong_factor(remaining_m: float) -> float:
        """Progress multiplier, growing sharply near the destination.

        Args:
            remaining_m: Distance from the candidate to the destination

        Returns:
            Factor of the first STRONG_FACTOR_TIERS entry below remaining_m,
            else STRONG_FACTOR_DEFAULT.
        """
        for below_m, factor in CostConfig.STRONG_FACTOR_TIERS:
            if remaining_m < below_m:
                return factor
        return CostConfig.STRONG_FACTOR_DEFAULT

    @staticmethod
    def progress_factor(distance_before_m: float, distance_after_m: float) -> float:
        """Multiplier from the change in distance to the destination.

        Args:
            distance_before_m: Distance from the expanded node to the destination
            distance_after_m: Distance from the candidate to the destination

        Returns:
            The strong factor (with the extra multiplier for large reductions)
            when the candidate gets closer, else its reciprocal.
        """
        reduction = distance_before_m - distance_after_m
        strong = EdgeCostModel.strong_factor(distance_after_m)

        if reduction > CostConfig.IMPROVEMENT_THRESHOLD_M:
            factor = strong
            if reduction > CostConfig.MUCH_IMPROVEMENT_THRESHOLD_M:
                factor *= CostConfig.MUCH_IMPROVEMENT_MULTIPLIER
            return factor
        return 1.0 / strong

    def weight(self, current: Waypoint, candidate: Waypoint, destination: Coordinate) -> float:
        """Selection weight of the edge current -> candidate.

        Args:
            current: Node being expanded
            candidate: Proposed neighbor (arrival bearing and slope already set)
            destination: Route destination

        Returns:
            Weight >= floor; never zero or NaN, even for infinite slopes.
        """
        bearing_to_destination = candidate.coordinate.bearing_to(destination)
        distance_before = current.coordinate.distance_to(destination)
        distance_after = candidate.coordinate.distance_to(destination)

        product = (
            self.slope_factor(candidate.slope_pct)
            * self.alignment_factor(candidate.bearing_deg, bearing_to_destination)
            * self.progress_factor(distance_before, distance_after)
        )
        if not isfinite(product):
            return self.floor
        return max(self.floor, product)
