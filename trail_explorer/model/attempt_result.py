"""AttemptResult and OrchestrationResult - outcomes of route exploration."""

from dataclasses import dataclass, field
from typing import Any, Optional

from trail_explorer.model.trail import Trail


@dataclass
class AttemptResult:
    """Outcome of one exploration attempt.

    Attributes:
        trail: Committed waypoints (possibly partial when not succeeded)
        succeeded: Whether the trail ends within the success radius
        score: Evaluator score (lower is better, negative = failed)
        iterations: Stack pops performed
        expansions: Nodes expanded (neighbors generated)
        attempt_index: Position in the orchestrator run (0 for standalone)
        error: Message when the attempt could not start
    """

    trail: Trail
    succeeded: bool
    score: float
    iterations: int = 0
    expansions: int = 0
    attempt_index: int = 0
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "succeeded": self.succeeded,
            "score": self.score,
            "iterations": self.iterations,
            "expansions": self.expansions,
            "attempt_index": self.attempt_index,
            "error": self.error,
            "trail": self.trail.to_dict(),
        }


@dataclass
class OrchestrationResult:
    """Best trail across attempts plus the per-attempt history.

    Attributes:
        best: Lowest-score successful attempt, or None when all failed
        attempts: Every attempt in run order
    """

    best: Optional[AttemptResult] = None
    attempts: list[AttemptResult] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.best is not None

    @property
    def success_count(self) -> int:
        return sum(1 for a in self.attempts if a.succeeded)
