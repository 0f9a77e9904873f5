"""Trail Explorer - Synthesize walkable routes over real terrain.

Builds a route between two points by a randomized depth-first search over a
lazily generated graph, weighting each step by slope, heading toward the
destination, and progress, while keeping the trail from crossing itself.

Modules:
    core: Geometry, elevation oracles, cost model, proximity guard, engine, evaluator
    model: Data structures (Coordinate, Bounds, Waypoint, Trail, configs, results)
    generators: Multi-attempt orchestration (best-of-N trail selection)
    ui: pydeck map layers, plotly elevation profile, Streamlit front end

Example:
    from trail_explorer.core.dem_service import DEMService
    from trail_explorer.generators import AttemptOrchestrator
    from trail_explorer.model import Coordinate, ExplorationConfig
"""
