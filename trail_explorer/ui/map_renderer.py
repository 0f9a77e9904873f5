"""TrailMapRenderer - Pydeck map layers for trails.

Consumes the GeoJSON feature collections produced by Trail.to_feature_collection()
and turns them into a pdk.Deck:
- PathLayer for the trail line
- ScatterplotLayer for waypoints
- ScatterplotLayer for start (green) and end (red) markers

It also implements the visualization sink contract, so it can be handed to
the engine or orchestrator and always holds the latest collection.

2D basemap uses OpenTopoMap raster tiles (no API key required).
"""

import logging
from typing import Any, Optional

import pydeck as pdk

from trail_explorer.constants import MapConfig, StyleConfig
from trail_explorer.model.coordinate import Coordinate

logger = logging.getLogger(__name__)


def xyz_raster_style(
    name: str,
    url_template: str,
    subdomains: str,
    attribution: str,
    max_zoom: int,
) -> dict[str, Any]:
    """Mapbox GL style for an XYZ raster tile server.

    Args:
        name: Source and layer id
        url_template: Tile URL with {s} for the subdomain and {z}/{x}/{y}
        subdomains: One character per mirror, e.g. "abc"
        attribution: HTML attribution shown on the map
        max_zoom: Highest zoom level the server provides
    """
    return {
        "version": 8,
        "sources": {
            name: {
                "type": "raster",
                "tiles": [url_template.replace("{s}", s) for s in subdomains],
                "tileSize": 256,
                "attribution": attribution,
            }
        },
        "layers": [{"id": name, "type": "raster", "source": name, "minzoom": 0, "maxzoom": max_zoom}],
    }


OPENTOPOMAP_STYLE = xyz_raster_style(
    name="opentopomap",
    url_template="https://{s}.tile.opentopomap.org/{z}/{x}/{y}.png",
    subdomains="abc",
    attribution=(
        'Map data © <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a>, '
        'style © <a href="https://www.opentopomap.org/">OpenTopoMap</a> (CC-BY-SA)'
    ),
    max_zoom=17,
)


class TrailMapRenderer:
    """Renders trail feature collections on a Pydeck map.

    Example:
        renderer = TrailMapRenderer()
        orchestrator = AttemptOrchestrator(config=config, oracle=dem, sink=renderer)
        orchestrator.run()
        st.pydeck_chart(renderer.render())
    """

    def __init__(
        self,
        center: Optional[Coordinate] = None,
        zoom: int = MapConfig.DEFAULT_ZOOM,
    ) -> None:
        center = center or Coordinate(lat=MapConfig.DEFAULT_START_LAT, lon=MapConfig.DEFAULT_START_LON)
        self.view = pdk.ViewState(
            latitude=center.lat,
            longitude=center.lon,
            zoom=zoom,
            pitch=MapConfig.DEFAULT_PITCH,
            bearing=MapConfig.DEFAULT_BEARING,
        )
        self.feature_collection: Optional[dict[str, Any]] = None
        self.is_final = False
        self.updates = 0

    # =========================================================================
    # VISUALIZATION SINK
    # =========================================================================

    def show(self, feature_collection: dict[str, Any], final: bool = False) -> None:
        """Store the latest features for the next render()."""
        self.feature_collection = feature_collection
        self.is_final = final
        self.updates += 1

    # =========================================================================
    # VIEW
    # =========================================================================

    def center_between(self, start: Coordinate, end: Coordinate) -> None:
        """Center the view halfway between two points."""
        self.view.latitude = (start.lat + end.lat) / 2
        self.view.longitude = (start.lon + end.lon) / 2

    def render(
        self,
        feature_collection: Optional[dict[str, Any]] = None,
        start: Optional[Coordinate] = None,
        end: Optional[Coordinate] = None,
    ) -> pdk.Deck:
        """Deck with the given (or latest shown) features and optional route endpoints."""
        features = (feature_collection or self.feature_collection or {}).get("features", [])
        lines = [f for f in features if f["geometry"]["type"] == "LineString"]

        layers = []
        if lines:
            paths = [
                {
                    "path": [xyz[:2] for xyz in line["geometry"]["coordinates"]],
                    "name": f"Trail ({line['properties'].get('segments', 0)} edges)",
                }
                for line in lines
            ]
            layers.append(
                pdk.Layer(
                    "PathLayer",
                    paths,
                    id="trail",
                    get_path="path",
                    get_color=StyleConfig.TRAIL_COLOR,
                    get_width=StyleConfig.TRAIL_WIDTH,
                    width_units="pixels",
                    pickable=True,
                )
            )
            layers.append(
                pdk.Layer(
                    "ScatterplotLayer",
                    [{"position": point} for path in paths for point in path["path"]],
                    id="waypoints",
                    get_position="position",
                    get_radius=StyleConfig.WAYPOINT_RADIUS,
                    get_fill_color=StyleConfig.WAYPOINT_COLOR,
                )
            )

        markers = [
            {"position": list(coordinate.lon_lat), "color": color, "name": name}
            for coordinate, color, name in (
                (start, StyleConfig.START_COLOR, "Start"),
                (end, StyleConfig.END_COLOR, "Destination"),
            )
            if coordinate is not None
        ]
        if markers:
            layers.append(
                pdk.Layer(
                    "ScatterplotLayer",
                    markers,
                    id="endpoints",
                    get_position="position",
                    get_radius=StyleConfig.ENDPOINT_RADIUS,
                    get_fill_color="color",
                    pickable=True,
                )
            )

        return pdk.Deck(
            layers=layers,
            initial_view_state=self.view,
            map_style=OPENTOPOMAP_STYLE,
            map_provider="mapbox",
            tooltip={"text": "{name}"},
        )
