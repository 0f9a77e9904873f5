"""Visualization sink contract and the best-effort wrapper the engine uses.

A sink receives GeoJSON-like feature collections for progressive or final
display. Display is fire-and-forget: a failing sink must never abort a search.
"""

import logging
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class VisualizationSink(Protocol):
    """Accepts feature collections for display."""

    def show(self, feature_collection: dict[str, Any], final: bool = False) -> None:
        """Display features; final=True marks the last update of a search."""
        ...


class BestEffortSink:
    """Wraps a sink so display errors are logged and dropped.

    Example:
        sink = BestEffortSink(renderer)
        sink.show(trail.to_feature_collection())  # never raises
    """

    def __init__(self, sink: VisualizationSink | None) -> None:
        self._sink = sink
        self.failures = 0

    @property
    def enabled(self) -> bool:
        return self._sink is not None

    def show(self, feature_collection: dict[str, Any], final: bool = False) -> None:
        if self._sink is None:
            return
        try:
            self._sink.show(feature_collection, final=final)
        except Exception as e:
            self.failures += 1
            logger.warning(f"Visualization sink failed ({type(e).__name__}: {e}); continuing without display")
