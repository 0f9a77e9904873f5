"""Core route exploration engine.

- GeoCalculator: Geodesic calculations (distances, bearings, destinations)
- DEMService / ElevationOracle: Terrain elevation lookups (dem_service module)
- EdgeCostModel: Neighbor selection weights (edge_cost module)
- ProximityGuard: Self-intersection avoidance (proximity_guard module)
- ExplorationEngine: Randomized depth-first search (explorer module)
- TrailEvaluator: Trail scoring (trail_evaluator module)
"""

from trail_explorer.core.geo_calculator import GeoCalculator

# The remaining modules import trail_explorer.model, which itself imports
# GeoCalculator from here. Import them directly, e.g.:
#     from trail_explorer.core.explorer import ExplorationEngine

__all__ = [
    "GeoCalculator",
]
