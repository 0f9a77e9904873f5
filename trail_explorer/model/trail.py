"""Trail - the ordered, append-only sequence of committed waypoints.

A Trail belongs to one attempt. It is extended by the exploration engine and
read by the proximity guard, the evaluator, and the visualization adapters.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

from trail_explorer.model.waypoint import Waypoint


@dataclass
class Trail:
    """Committed waypoints of the active path in insertion order.

    Attributes:
        waypoints: Committed waypoints (append-only during an attempt)

    Computed Properties:
        start: First waypoint
        end: Last waypoint
        segment_count: Number of edges (len - 1)
        slopes: Arrival slopes of every waypoint after the first
    """

    waypoints: list[Waypoint] = field(default_factory=list)

    def append(self, waypoint: Waypoint) -> None:
        self.waypoints.append(waypoint)

    def __len__(self) -> int:
        return len(self.waypoints)

    def __iter__(self) -> Iterator[Waypoint]:
        return iter(self.waypoints)

    def __getitem__(self, index: int) -> Waypoint:
        return self.waypoints[index]

    @property
    def is_empty(self) -> bool:
        return not self.waypoints

    @property
    def start(self) -> Optional[Waypoint]:
        """First waypoint of the trail."""
        return self.waypoints[0] if self.waypoints else None

    @property
    def end(self) -> Optional[Waypoint]:
        """Last waypoint of the trail."""
        return self.waypoints[-1] if self.waypoints else None

    @property
    def segment_count(self) -> int:
        return max(0, len(self.waypoints) - 1)

    @property
    def slopes(self) -> list[float]:
        """Arrival slope (%) of each committed edge."""
        return [wp.slope_pct for wp in self.waypoints[1:]]

    def length_m(self, edge_length_m: float) -> float:
        """Nominal trail length: every committed edge is edge_length_m long."""
        return self.segment_count * edge_length_m

    def to_feature_collection(self) -> dict[str, Any]:
        """GeoJSON FeatureCollection for display.

        Contains one LineString for the trail (when it has 2+ points) and
        Point features for the start and end waypoints. Coordinates are in
        GeoJSON (lon, lat, elevation) order.
        """
        features: list[dict[str, Any]] = []
        if len(self.waypoints) >= 2:
            features.append(
                {
                    "type": "Feature",
                    "geometry": {
                        "type": "LineString",
                        "coordinates": [[wp.lon, wp.lat, wp.elevation_m] for wp in self.waypoints],
                    },
                    "properties": {"role": "trail", "segments": self.segment_count},
                }
            )
        for role, wp in (("start", self.start), ("end", self.end)):
            if wp is None:
                continue
            features.append(
                {
                    "type": "Feature",
                    "geometry": {"type": "Point", "coordinates": [wp.lon, wp.lat, wp.elevation_m]},
                    "properties": {"role": role, "elevation_m": wp.elevation_m},
                }
            )
        return {"type": "FeatureCollection", "features": features}

    def to_dict(self) -> dict[str, Any]:
        return {"waypoints": [wp.to_dict() for wp in self.waypoints]}

    def __repr__(self) -> str:
        return f"Trail({len(self.waypoints)} waypoints)"
