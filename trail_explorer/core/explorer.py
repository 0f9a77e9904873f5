"""Exploration engine - randomized depth-first search over a lazily built graph.

One attempt walks from the start toward the destination:

1. The stack starts with the start waypoint (bearing 0, slope 0).
2. Each iteration pops one candidate (LIFO).
3. A candidate within the success radius of the destination ends the attempt.
4. Already visited or too close to the trail: discard and continue.
5. Otherwise commit it to the trail and expand it: sweep bearings, project
   neighbors, look up their elevation, keep those inside the bounds, weight
   them with the edge cost model and record them in the visited set.
6. Pick a favorite by weighted sampling, shuffle the siblings, push the
   siblings and then the favorite, so the favorite is popped next and the
   siblings serve as fallback on backtrack.

The attempt ends Exhausted when the iteration cap is hit, the stack runs
dry, or the optional cancel event is set. It is a biased random walk, not a
complete search: a route may exist and still not be found.

Attempt lifecycle (python-statemachine):
    IDLE -> RUNNING: begin
    RUNNING -> SUCCEEDED: reach_destination
    RUNNING -> EXHAUSTED: exhaust
"""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass, field
from typing import Optional, Sequence

from statemachine import State, StateMachine

from trail_explorer.core.dem_service import ElevationOracle
from trail_explorer.core.edge_cost import EdgeCostModel
from trail_explorer.core.proximity_guard import ProximityGuard
from trail_explorer.core.trail_evaluator import TrailEvaluator
from trail_explorer.core.visualization_sink import BestEffortSink, VisualizationSink
from trail_explorer.exceptions import StartElevationError
from trail_explorer.model.attempt_result import AttemptResult
from trail_explorer.model.exploration_config import ExplorationConfig
from trail_explorer.model.trail import Trail
from trail_explorer.model.waypoint import CandidateNeighbor, Waypoint

logger = logging.getLogger(__name__)


def weighted_random_select(candidates: Sequence[CandidateNeighbor], rng: random.Random) -> int:
    """Pick the index of one candidate with probability weight / total weight.

    Args:
        candidates: Non-empty candidate list
        rng: Random source (seeded for reproducible attempts)

    Returns:
        Index into candidates.

    Raises:
        ValueError: If candidates is empty.
    """
    if not candidates:
        raise ValueError("Cannot select from an empty candidate list")

    total = sum(c.weight for c in candidates)
    threshold = rng.random() * total
    for i, candidate in enumerate(candidates):
        threshold -= candidate.weight
        if threshold < 0:
            return i
    # Float rounding can leave a sliver of threshold after the last weight
    return len(candidates) - 1


@dataclass
class AttemptContext:
    """All mutable state of one attempt.

    Owned exclusively by one engine run; nothing here is shared between
    attempts, so attempts are independent.

    Attributes:
        state: Managed by python-statemachine (model pattern)
        visited: Canonical coordinate key -> neighbors generated on expansion
        stack: Pending candidates, popped from the end
        trail: Committed waypoints
        iterations: Stack pops so far (bounded by max_iterations)
        expansions: Nodes expanded so far
    """

    state: Optional[str] = None
    visited: dict[str, list[CandidateNeighbor]] = field(default_factory=dict)
    stack: list[Optional[CandidateNeighbor]] = field(default_factory=list)
    trail: Trail = field(default_factory=Trail)
    iterations: int = 0
    expansions: int = 0

    def __repr__(self) -> str:
        return (
            f"AttemptContext(state={self.state}, trail={len(self.trail)}, stack={len(self.stack)}, "
            f"visited={len(self.visited)}, iterations={self.iterations})"
        )


class AttemptStateMachine(StateMachine):
    """Lifecycle of one exploration attempt.

    States:
        idle: Context prepared, nothing popped yet
        running: Popping and expanding candidates
        succeeded: Trail ends within the success radius (final)
        exhausted: Cap reached, stack empty, or cancelled (final)
    """

    idle = State("Idle", initial=True)
    running = State("Running")
    succeeded = State("Succeeded", final=True)
    exhausted = State("Exhausted", final=True)

    begin = idle.to(running)
    reach_destination = running.to(succeeded)
    exhaust = running.to(exhausted)

    def __init__(self, context: AttemptContext | None = None) -> None:
        super().__init__(model=context or AttemptContext())

    @property
    def context(self) -> AttemptContext:
        """Alias for model."""
        return self.model

    @property
    def is_running(self) -> bool:
        return self.running.is_active

    @property
    def is_succeeded(self) -> bool:
        return self.succeeded.is_active

    @property
    def is_finished(self) -> bool:
        return self.succeeded.is_active or self.exhausted.is_active

    def on_enter_succeeded(self) -> None:
        ctx = self.context
        logger.info(f"Attempt succeeded after {ctx.iterations} iterations ({len(ctx.trail)} waypoints)")

    def on_enter_exhausted(self) -> None:
        ctx = self.context
        logger.info(
            f"Attempt exhausted after {ctx.iterations} iterations "
            f"({ctx.expansions} expansions, stack={len(ctx.stack)})"
        )


class ExplorationEngine:
    """Runs exploration attempts for one route request.

    Example:
        engine = ExplorationEngine(config=config, oracle=DEMService(), rng=random.Random(7))
        result = engine.explore()
        if result.succeeded:
            print(f"{len(result.trail)} waypoints, score {result.score:.2f}")
    """

    def __init__(
        self,
        config: ExplorationConfig,
        oracle: ElevationOracle,
        cost_model: Optional[EdgeCostModel] = None,
        guard: Optional[ProximityGuard] = None,
        evaluator: Optional[TrailEvaluator] = None,
        rng: Optional[random.Random] = None,
        progress_sink: Optional[VisualizationSink] = None,
        cancel_event: Optional[threading.Event] = None,
        final_update: bool = True,
    ) -> None:
        """Initialize engine.

        Args:
            config: Validated exploration parameters
            oracle: Elevation source (queried once per proposed node)
            cost_model: Edge weighting (default EdgeCostModel())
            guard: Self-avoidance check (default for config.edge_length_m)
            evaluator: Trail scorer (default for config.edge_length_m)
            rng: Random source for selection and shuffling
            progress_sink: Optional display sink for progressive updates
            cancel_event: Checked once per iteration; when set the attempt ends Exhausted
            final_update: Mark the end-of-attempt update as final. Pass False when
                the attempt is one of several and a caller sends the last update.
        """
        self.config = config
        self.oracle = oracle
        self.cost_model = cost_model or EdgeCostModel()
        self.guard = guard or ProximityGuard(edge_length_m=config.edge_length_m)
        self.evaluator = evaluator or TrailEvaluator(edge_length_m=config.edge_length_m)
        self.rng = rng or random.Random()
        self.progress_sink = BestEffortSink(progress_sink)
        self.cancel_event = cancel_event
        self.final_update = final_update
        self._bearings = config.bearings

    # =========================================================================
    # ATTEMPT LIFECYCLE
    # =========================================================================

    def new_context(self) -> AttemptContext:
        """Fresh attempt state with the start waypoint on the stack.

        Raises:
            StartElevationError: If the oracle has no elevation at the start.
        """
        start = self.config.start
        try:
            start_elevation = self.oracle.elevation(start)
        except LookupError as e:
            raise StartElevationError(f"No elevation at start {start}: {e}") from e

        start_waypoint = Waypoint(coordinate=start, bearing_deg=0.0, elevation_m=start_elevation, slope_pct=0.0)
        context = AttemptContext()
        context.stack.append(CandidateNeighbor(waypoint=start_waypoint, weight=1.0))
        return context

    def explore(self, attempt_index: int = 0) -> AttemptResult:
        """Run one attempt from start to Succeeded or Exhausted.

        Raises:
            StartElevationError: If the start has no elevation.
        """
        context = self.new_context()
        sm = AttemptStateMachine(context=context)
        sm.begin()

        logger.info(
            f"Attempt {attempt_index}: {self.config.start} -> {self.config.end} "
            f"(edge={self.config.edge_length_m}m, {len(self._bearings)} bearings, cap={self.config.max_iterations})"
        )

        while not sm.is_finished:
            self.step(sm)

        succeeded = sm.is_succeeded
        self.progress_sink.show(context.trail.to_feature_collection(), final=self.final_update)

        return AttemptResult(
            trail=context.trail,
            succeeded=succeeded,
            score=self.evaluator.score(context.trail, succeeded=succeeded),
            iterations=context.iterations,
            expansions=context.expansions,
            attempt_index=attempt_index,
        )

    def step(self, sm: AttemptStateMachine) -> None:
        """Advance a running attempt by one stack pop (or terminate it)."""
        ctx = sm.context

        if self.cancel_event is not None and self.cancel_event.is_set():
            logger.info("Attempt cancelled")
            sm.exhaust()
            return
        if ctx.iterations >= self.config.max_iterations or not ctx.stack:
            sm.exhaust()
            return

        ctx.iterations += 1
        candidate = ctx.stack.pop()
        if candidate is None:
            return

        waypoint = candidate.waypoint
        if waypoint.coordinate.distance_to(self.config.end) <= self.config.success_radius_m:
            ctx.trail.append(waypoint)
            sm.reach_destination()
            return

        key = waypoint.coordinate.key()
        if key in ctx.visited:
            return
        if self.guard.too_close(waypoint.coordinate, ctx.trail, self.config.min_distance_m):
            return

        ctx.trail.append(waypoint)
        neighbors = self.generate_neighbors(waypoint)
        ctx.visited[key] = neighbors
        ctx.expansions += 1

        if self.config.progress_every and ctx.expansions % self.config.progress_every == 0:
            self.progress_sink.show(ctx.trail.to_feature_collection())

        if not neighbors:
            logger.debug(f"No selectable neighbors at {waypoint}; backtracking")
            return

        self._push_neighbors(ctx, neighbors)

    # =========================================================================
    # GRAPH EXPANSION
    # =========================================================================

    def generate_neighbors(self, current: Waypoint) -> list[CandidateNeighbor]:
        """Project, look up, filter, and weight all neighbors of a node.

        Neighbors without elevation data or outside the bounds are dropped.

        Returns:
            At most len(config.bearings) weighted candidates in sweep order.
        """
        edge_length = self.config.edge_length_m
        bounds = self.config.bounds
        neighbors: list[CandidateNeighbor] = []
        dropped_no_data = 0

        for bearing in self._bearings:
            coordinate = current.coordinate.destination(bearing_deg=bearing, distance_m=edge_length)
            try:
                elevation = self.oracle.elevation(coordinate)
            except LookupError:
                dropped_no_data += 1
                continue
            if not bounds.contains(coordinate):
                continue

            slope = (elevation - current.elevation_m) / edge_length * 100
            proposal = Waypoint(coordinate=coordinate, bearing_deg=bearing, elevation_m=elevation, slope_pct=slope)
            weight = self.cost_model.weight(current=current, candidate=proposal, destination=self.config.end)
            neighbors.append(CandidateNeighbor(waypoint=proposal, weight=weight))

        if dropped_no_data:
            logger.debug(f"Dropped {dropped_no_data} neighbors without elevation around {current}")
        return neighbors

    def _push_neighbors(self, ctx: AttemptContext, neighbors: list[CandidateNeighbor]) -> None:
        """Push shuffled siblings, then the weighted favorite on top."""
        remaining = list(neighbors)
        favorite = remaining.pop(weighted_random_select(remaining, self.rng))
        self.rng.shuffle(remaining)
        ctx.stack.extend(remaining)
        ctx.stack.append(favorite)
