"""AttemptOrchestrator - best-of-N trail selection.

Runs independent exploration attempts, each with a fresh context and its own
seeded random source, and keeps the lowest-score successful trail.

Stopping rule:
    - Never before min_attempts
    - After min_attempts, as soon as the best score <= acceptable_score
    - Always at max_attempts

A start without elevation data counts as a failed attempt unless
abort_on_start_error is set. Attempts share no mutable state; graph
knowledge is not reused across attempts (wrap the oracle in
CachedElevationOracle to at least share elevation lookups).
"""

import logging
import random
import threading
from typing import Callable, Optional

from trail_explorer.core.dem_service import ElevationOracle
from trail_explorer.core.edge_cost import EdgeCostModel
from trail_explorer.core.explorer import ExplorationEngine
from trail_explorer.core.proximity_guard import ProximityGuard
from trail_explorer.core.trail_evaluator import TrailEvaluator
from trail_explorer.core.visualization_sink import BestEffortSink, VisualizationSink
from trail_explorer.constants import EvaluatorConfig
from trail_explorer.exceptions import StartElevationError
from trail_explorer.model.attempt_result import AttemptResult, OrchestrationResult
from trail_explorer.model.exploration_config import ExplorationConfig, OrchestratorConfig
from trail_explorer.model.trail import Trail

logger = logging.getLogger(__name__)


class AttemptOrchestrator:
    """Repeats exploration attempts and keeps the best successful trail.

    Example:
        orchestrator = AttemptOrchestrator(
            config=ExplorationConfig(start=start, end=end),
            oracle=DEMService(),
            orchestrator_config=OrchestratorConfig(seed=42),
        )
        result = orchestrator.run()
        if result.best:
            print(result.best.score, len(result.best.trail))
    """

    def __init__(
        self,
        config: ExplorationConfig,
        oracle: ElevationOracle,
        orchestrator_config: Optional[OrchestratorConfig] = None,
        cost_model: Optional[EdgeCostModel] = None,
        evaluator: Optional[TrailEvaluator] = None,
        sink: Optional[VisualizationSink] = None,
        cancel_event: Optional[threading.Event] = None,
        on_attempt: Optional[Callable[[AttemptResult], None]] = None,
    ) -> None:
        """Initialize orchestrator.

        Args:
            config: Exploration parameters shared by all attempts
            oracle: Elevation source
            orchestrator_config: Stopping rule and seed
            cost_model: Edge weighting shared by all attempts (stateless)
            evaluator: Trail scorer
            sink: Display sink; gets non-final progress updates from every attempt,
                then one final update with the best trail (empty if none succeeded)
            cancel_event: Stops the current attempt and the run when set
            on_attempt: Callback after every attempt (e.g. UI progress bar)
        """
        self.config = config
        self.oracle = oracle
        self.orchestrator_config = orchestrator_config or OrchestratorConfig()
        self.cost_model = cost_model or EdgeCostModel()
        self.evaluator = evaluator or TrailEvaluator(edge_length_m=config.edge_length_m)
        self.sink = sink
        self.cancel_event = cancel_event
        self.on_attempt = on_attempt

    def _rng_for(self, attempt_index: int) -> random.Random:
        seed = self.orchestrator_config.seed
        return random.Random(None if seed is None else seed + attempt_index)

    def _make_engine(self, attempt_index: int) -> ExplorationEngine:
        return ExplorationEngine(
            config=self.config,
            oracle=self.oracle,
            cost_model=self.cost_model,
            guard=ProximityGuard(edge_length_m=self.config.edge_length_m),
            evaluator=self.evaluator,
            rng=self._rng_for(attempt_index),
            progress_sink=self.sink,
            cancel_event=self.cancel_event,
            final_update=False,
        )

    def run_attempt(self, attempt_index: int) -> AttemptResult:
        """Run one attempt, converting a start elevation failure into a failed result.

        Raises:
            StartElevationError: Only when abort_on_start_error is set.
        """
        engine = self._make_engine(attempt_index)
        try:
            return engine.explore(attempt_index=attempt_index)
        except StartElevationError as e:
            if self.orchestrator_config.abort_on_start_error:
                raise
            logger.warning(f"Attempt {attempt_index} failed to start: {e}")
            return AttemptResult(
                trail=Trail(),
                succeeded=False,
                score=EvaluatorConfig.FAILED_SCORE,
                attempt_index=attempt_index,
                error=str(e),
            )

    def should_stop(self, attempts_done: int, best: Optional[AttemptResult]) -> bool:
        """Apply the stopping rule after attempts_done attempts."""
        oc = self.orchestrator_config
        if attempts_done >= oc.max_attempts:
            return True
        if attempts_done < oc.min_attempts:
            return False
        return best is not None and best.score <= oc.acceptable_score

    def run(self) -> OrchestrationResult:
        """Run attempts until the stopping rule fires."""
        result = OrchestrationResult()

        attempt_index = 0
        while True:
            if self.cancel_event is not None and self.cancel_event.is_set():
                logger.info(f"Run cancelled after {attempt_index} attempts")
                break

            attempt = self.run_attempt(attempt_index)
            result.attempts.append(attempt)
            attempt_index += 1

            if attempt.succeeded and attempt.score >= 0:
                if result.best is None or attempt.score < result.best.score:
                    logger.info(f"Attempt {attempt.attempt_index}: new best score {attempt.score:.2f}")
                    result.best = attempt

            if self.on_attempt is not None:
                self.on_attempt(attempt)

            if self.should_stop(attempt_index, result.best):
                break

        best_score = f"{result.best.score:.2f}" if result.best else "n/a"
        logger.info(
            f"Finished {len(result.attempts)} attempts: {result.success_count} succeeded, best score {best_score}"
        )

        # Exactly one final update per run; an empty trail clears the display
        best_trail = result.best.trail if result.best is not None else Trail()
        BestEffortSink(self.sink).show(best_trail.to_feature_collection(), final=True)
        return result
