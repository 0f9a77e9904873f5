"""ElevationProfileChart - Plotly elevation profile for a trail.

Distance on the x axis is nominal (waypoint index × edge length), matching
how trails are measured everywhere else. Edges are colored by slope band;
all edges of one band share a single trace (segments separated by None) so
long trails stay cheap to draw.
"""

import logging
from typing import Optional

import plotly.graph_objects as go

from trail_explorer.constants import ChartConfig, StyleConfig
from trail_explorer.core.trail_evaluator import TrailEvaluator
from trail_explorer.model.trail import Trail

logger = logging.getLogger(__name__)

GRID_COLOR = "rgba(200, 200, 200, 0.3)"


class ElevationProfileChart:
    """Renders trail elevation profiles using Plotly.

    Example:
        chart = ElevationProfileChart(edge_length_m=35.0)
        st.plotly_chart(chart.render(trail))
    """

    def __init__(
        self,
        edge_length_m: float,
        width: int = ChartConfig.DEFAULT_WIDTH,
        height: int = ChartConfig.PROFILE_HEIGHT,
    ) -> None:
        self.edge_length_m = edge_length_m
        self.width = width
        self.height = height
        self._evaluator = TrailEvaluator(edge_length_m=edge_length_m)

    @staticmethod
    def slope_band(slope_pct: float) -> tuple[float, str]:
        """(upper bound, color) of the band an edge slope falls in."""
        steepness = abs(slope_pct)
        for upper, color in StyleConfig.SLOPE_BANDS:
            if steepness <= upper:
                return upper, color
        return StyleConfig.SLOPE_BANDS[-1]

    @staticmethod
    def slope_color(slope_pct: float) -> str:
        return ElevationProfileChart.slope_band(slope_pct)[1]

    def _band_traces(self, distances: list[float], elevations: list[float], slopes: list[float]) -> list[go.Scatter]:
        """One line trace per slope band present on the trail."""
        segments: dict[tuple[float, str], tuple[list, list]] = {}
        for i, slope in enumerate(slopes, start=1):
            xs, ys = segments.setdefault(self.slope_band(slope), ([], []))
            xs.extend([distances[i - 1], distances[i], None])
            ys.extend([elevations[i - 1], elevations[i], None])

        traces = []
        for (upper, color), (xs, ys) in sorted(segments.items()):
            label = f"≤ {upper:.0f}%" if upper != float("inf") else "steeper"
            traces.append(
                go.Scatter(
                    x=xs,
                    y=ys,
                    mode="lines",
                    line=dict(color=color, width=3),
                    name=label,
                    hoverinfo="skip",
                    connectgaps=False,
                )
            )
        return traces

    def render(self, trail: Trail, title: Optional[str] = None) -> go.Figure:
        """Render elevation profile for a trail.

        Raises:
            ValueError: If the trail has no waypoints.
        """
        if trail.is_empty:
            raise ValueError("Trail must have waypoints to render")

        distances = [i * self.edge_length_m for i in range(len(trail))]
        elevations = [wp.elevation_m for wp in trail]
        slopes = trail.slopes

        low, high = min(elevations), max(elevations)
        margin_m = max((high - low) * ChartConfig.ELEVATION_PADDING_FACTOR, ChartConfig.ELEVATION_PADDING_MIN_M)

        fig = go.Figure(
            go.Scatter(
                x=distances,
                y=elevations,
                fill="tozeroy",
                fillcolor="rgba(234, 88, 12, 0.12)",
                line=dict(color="rgba(234, 88, 12, 0.5)", width=1),
                customdata=[0.0, *slopes],
                name="Elevation",
                hovertemplate="%{x:.0f}m · %{y:.0f}m · slope %{customdata:.1f}%<extra></extra>",
                showlegend=False,
            )
        )
        for trace in self._band_traces(distances, elevations, slopes):
            fig.add_trace(trace)

        summary = self._evaluator.summary(trail)
        fig.update_xaxes(title_text="Distance (m)", gridcolor=GRID_COLOR)
        fig.update_yaxes(title_text="Elevation (m)", gridcolor=GRID_COLOR, range=[low - margin_m, high + margin_m])
        fig.update_layout(
            title=dict(text=title or f"Trail profile ({len(trail)} waypoints)", x=0.5),
            width=self.width,
            height=self.height,
            plot_bgcolor="white",
            margin=dict(l=55, r=20, t=55, b=70),
            legend=dict(orientation="h", yanchor="bottom", y=1.0, xanchor="right", x=1.0),
            annotations=[
                dict(
                    xref="paper",
                    yref="paper",
                    x=0.0,
                    y=-0.28,
                    xanchor="left",
                    showarrow=False,
                    font=dict(size=11),
                    text=(
                        f"{summary.length_m:.0f}m · ↑{summary.total_ascent_m:.0f}m ↓{summary.total_descent_m:.0f}m · "
                        f"mean {summary.mean_abs_slope_pct:.1f}% · max {summary.max_abs_slope_pct:.1f}%"
                    ),
                )
            ],
        )
        logger.debug(f"Profile chart for {len(trail)} waypoints, {len(fig.data) - 1} slope bands")
        return fig
