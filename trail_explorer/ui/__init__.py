"""User interface components for Trail Explorer.

- map_renderer.py: Pydeck trail map (also a visualization sink)
- profile_chart.py: Plotly elevation profile

The Streamlit front end lives in trail_explorer/app.py.
"""

from trail_explorer.ui.map_renderer import TrailMapRenderer
from trail_explorer.ui.profile_chart import ElevationProfileChart

__all__ = [
    "TrailMapRenderer",
    "ElevationProfileChart",
]
