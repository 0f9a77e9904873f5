"""ExplorationConfig and OrchestratorConfig - validated input records.

Validation runs at construction time so a malformed request fails before
any elevation lookups are spent on it.
"""

from dataclasses import dataclass, field
from math import isfinite
from typing import Optional

from trail_explorer.constants import ExplorationDefaults, OrchestratorDefaults
from trail_explorer.exceptions import ConfigurationError
from trail_explorer.model.coordinate import Bounds, Coordinate


@dataclass(frozen=True)
class ExplorationConfig:
    """Parameters for a single exploration attempt.

    Attributes:
        start: Start coordinate
        end: Destination coordinate
        bounds: Search rectangle; defaults to a padded box around start/end
        min_distance_m: Minimum distance between non-adjacent trail sections
        edge_length_m: Distance from a node to each generated neighbor
        angle_increment_deg: Bearing sweep step (neighbors per node = 360 / step)
        max_iterations: Hard cap on stack pops per attempt
        success_radius_m: Destination reached within this radius
        progress_every: Notify the progress sink every N expansions (0 disables)

    Raises:
        ConfigurationError: On non-positive lengths, an angle increment outside
            (0, 360], a start or end outside bounds, or a non-positive cap.
    """

    start: Coordinate
    end: Coordinate
    bounds: Optional[Bounds] = None
    min_distance_m: float = ExplorationDefaults.MIN_DISTANCE_M
    edge_length_m: float = ExplorationDefaults.EDGE_LENGTH_M
    angle_increment_deg: float = ExplorationDefaults.ANGLE_INCREMENT_DEG
    max_iterations: int = ExplorationDefaults.MAX_ITERATIONS
    success_radius_m: float = ExplorationDefaults.SUCCESS_RADIUS_M
    progress_every: int = ExplorationDefaults.PROGRESS_EVERY_N

    def __post_init__(self) -> None:
        if self.bounds is None:
            # Frozen dataclass: bypass __setattr__ for the derived default
            object.__setattr__(
                self,
                "bounds",
                Bounds.around(self.start, self.end, padding_m=ExplorationDefaults.BOUNDS_PADDING_M),
            )

        for name in ("edge_length_m", "success_radius_m"):
            value = getattr(self, name)
            if not (isfinite(value) and value > 0):
                raise ConfigurationError(f"{name} must be a positive number, got {value}")
        if not (isfinite(self.min_distance_m) and self.min_distance_m >= 0):
            raise ConfigurationError(f"min_distance_m must be >= 0, got {self.min_distance_m}")
        if not (0 < self.angle_increment_deg <= 360):
            raise ConfigurationError(f"angle_increment_deg must be in (0, 360], got {self.angle_increment_deg}")
        if self.max_iterations < 1:
            raise ConfigurationError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.progress_every < 0:
            raise ConfigurationError(f"progress_every must be >= 0, got {self.progress_every}")
        if not self.bounds.contains(self.start):
            raise ConfigurationError(f"Start {self.start} lies outside {self.bounds}")
        if not self.bounds.contains(self.end):
            raise ConfigurationError(f"End {self.end} lies outside {self.bounds}")

    @property
    def bearings(self) -> list[float]:
        """Sweep angles 0, inc, 2*inc, ... strictly below 360."""
        count = int(360 // self.angle_increment_deg)
        if count * self.angle_increment_deg >= 360:
            count -= 1
        return [i * self.angle_increment_deg for i in range(count + 1)]


@dataclass(frozen=True)
class OrchestratorConfig:
    """Stopping rule and policy for repeated attempts.

    Attributes:
        min_attempts: Never stop before this many attempts
        max_attempts: Hard stop regardless of quality
        acceptable_score: Stop after min_attempts once best score <= this
        abort_on_start_error: Re-raise start elevation failures instead of
            counting them as failed attempts
        seed: Base seed; attempt i uses seed + i (None = nondeterministic)
    """

    min_attempts: int = OrchestratorDefaults.MIN_ATTEMPTS
    max_attempts: int = OrchestratorDefaults.MAX_ATTEMPTS
    acceptable_score: float = OrchestratorDefaults.ACCEPTABLE_SCORE
    abort_on_start_error: bool = False
    seed: Optional[int] = field(default=None)

    def __post_init__(self) -> None:
        if self.min_attempts < 1:
            raise ConfigurationError(f"min_attempts must be >= 1, got {self.min_attempts}")
        if self.max_attempts < self.min_attempts:
            raise ConfigurationError(
                f"max_attempts ({self.max_attempts}) must be >= min_attempts ({self.min_attempts})"
            )
