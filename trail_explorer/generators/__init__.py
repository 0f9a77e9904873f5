"""Route generation on top of the exploration engine.

Provides the AttemptOrchestrator for best-of-N trail selection:
- Independent attempts with fresh context and seeded random source
- Lowest-score successful trail wins
- Stops early once a trail is good enough
"""

from trail_explorer.generators.attempt_orchestrator import AttemptOrchestrator

__all__ = [
    "AttemptOrchestrator",
]
