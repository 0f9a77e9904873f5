"""Data model classes for route exploration.

- Coordinate: Geometry atom (lat, lon)
- Bounds: Search rectangle
- Waypoint: Committed trail point (coordinate, bearing, elevation, slope)
- CandidateNeighbor: Waypoint proposal with selection weight
- Trail: Append-only committed path of one attempt
- ExplorationConfig / OrchestratorConfig: Validated input records
- AttemptResult / OrchestrationResult: Outcomes
"""

from trail_explorer.model.attempt_result import AttemptResult, OrchestrationResult
from trail_explorer.model.coordinate import Bounds, Coordinate
from trail_explorer.model.exploration_config import ExplorationConfig, OrchestratorConfig
from trail_explorer.model.trail import Trail
from trail_explorer.model.waypoint import CandidateNeighbor, Waypoint

__all__ = [
    "Coordinate",
    "Bounds",
    "Waypoint",
    "CandidateNeighbor",
    "Trail",
    "ExplorationConfig",
    "OrchestratorConfig",
    "AttemptResult",
    "OrchestrationResult",
]
