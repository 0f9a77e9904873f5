"""Trail Explorer - Interactive route synthesis on real terrain.

Pick a start and destination inside the DEM coverage, tune the search, and
run several exploration attempts. The best trail is drawn on the map with
its elevation profile.

Run: streamlit run trail_explorer/app.py
"""

import logging
import traceback

import streamlit as st

from trail_explorer.constants import (
    AppConfig,
    ChartConfig,
    DEMConfig,
    ExplorationDefaults,
    MapConfig,
    OrchestratorDefaults,
)
from trail_explorer.core.dem_service import CachedElevationOracle, DEMService, download_dem_from_huggingface
from trail_explorer.exceptions import ConfigurationError, StartElevationError
from trail_explorer.generators import AttemptOrchestrator
from trail_explorer.model import (
    AttemptResult,
    Coordinate,
    ExplorationConfig,
    OrchestrationResult,
    OrchestratorConfig,
)
from trail_explorer.ui import ElevationProfileChart, TrailMapRenderer

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# =============================================================================
# SESSION STATE
# =============================================================================


def init_session_state() -> None:
    """Initialize session state with renderer and last result."""
    if "map_renderer" not in st.session_state:
        st.session_state.map_renderer = TrailMapRenderer()
    if "result" not in st.session_state:
        st.session_state.result = None


def load_dem_data() -> CachedElevationOracle:
    """Download (if needed) and load the DEM, wrapped in a lookup cache."""
    oracle = st.session_state.get("oracle")
    if oracle is not None:
        return oracle

    dem_path = DEMConfig.DEM_PATH
    if not dem_path.exists():
        st.info("🗺️ Downloading terrain data from Hugging Face...")
        progress_bar = st.progress(0, text="Starting download...")

        def update_progress(progress: float) -> None:
            progress_bar.progress(progress, text=f"Downloading... {progress * 100:.0f}%")

        download_dem_from_huggingface(target_path=dem_path, progress_callback=update_progress)
        progress_bar.progress(1.0, text="Download complete!")

    with st.spinner("Loading terrain elevation data..."):
        oracle = CachedElevationOracle(DEMService(dem_path=dem_path))
        st.session_state.oracle = oracle
    return oracle


# =============================================================================
# SIDEBAR
# =============================================================================


def render_sidebar() -> tuple[ExplorationConfig | None, OrchestratorConfig | None]:
    """Collect route and search parameters. Returns (None, None) on invalid input."""
    st.sidebar.header("Route")
    start_lat = st.sidebar.number_input("Start latitude", value=MapConfig.DEFAULT_START_LAT, format="%.5f")
    start_lon = st.sidebar.number_input("Start longitude", value=MapConfig.DEFAULT_START_LON, format="%.5f")
    end_lat = st.sidebar.number_input("End latitude", value=MapConfig.DEFAULT_END_LAT, format="%.5f")
    end_lon = st.sidebar.number_input("End longitude", value=MapConfig.DEFAULT_END_LON, format="%.5f")

    st.sidebar.header("Search")
    edge_length = st.sidebar.slider("Edge length (m)", 10.0, 100.0, ExplorationDefaults.EDGE_LENGTH_M)
    angle_increment = st.sidebar.select_slider(
        "Bearing step (°)", options=[1.0, 2.0, 5.0, 10.0, 15.0], value=ExplorationDefaults.ANGLE_INCREMENT_DEG
    )
    min_distance = st.sidebar.slider("Min self-distance (m)", 0.0, 200.0, ExplorationDefaults.MIN_DISTANCE_M)
    max_iterations = st.sidebar.number_input(
        "Iteration cap", min_value=1, value=ExplorationDefaults.MAX_ITERATIONS, step=100
    )

    st.sidebar.header("Attempts")
    min_attempts = st.sidebar.number_input("Min attempts", min_value=1, value=OrchestratorDefaults.MIN_ATTEMPTS)
    max_attempts = st.sidebar.number_input("Max attempts", min_value=1, value=OrchestratorDefaults.MAX_ATTEMPTS)
    acceptable = st.sidebar.number_input("Acceptable score (mean |slope| %)", value=OrchestratorDefaults.ACCEPTABLE_SCORE)
    seed = st.sidebar.number_input("Seed (0 = random)", min_value=0, value=0)

    try:
        config = ExplorationConfig(
            start=Coordinate(lat=start_lat, lon=start_lon),
            end=Coordinate(lat=end_lat, lon=end_lon),
            edge_length_m=edge_length,
            angle_increment_deg=angle_increment,
            min_distance_m=min_distance,
            max_iterations=int(max_iterations),
        )
        orchestrator_config = OrchestratorConfig(
            min_attempts=int(min_attempts),
            max_attempts=int(max_attempts),
            acceptable_score=acceptable,
            seed=int(seed) or None,
        )
    except ConfigurationError as e:
        st.sidebar.error(f"⚠️ {e}")
        return None, None
    return config, orchestrator_config


# =============================================================================
# SEARCH
# =============================================================================


def run_search(config: ExplorationConfig, orchestrator_config: OrchestratorConfig) -> OrchestrationResult | None:
    """Run the orchestrator with a progress bar."""
    oracle = load_dem_data()
    renderer: TrailMapRenderer = st.session_state.map_renderer
    renderer.center_between(config.start, config.end)

    progress_bar = st.progress(0.0, text="Exploring...")

    def on_attempt(attempt: AttemptResult) -> None:
        done = attempt.attempt_index + 1
        status = f"score {attempt.score:.2f}" if attempt.succeeded else "no route"
        progress_bar.progress(
            min(1.0, done / orchestrator_config.max_attempts),
            text=f"Attempt {done}: {status}",
        )

    orchestrator = AttemptOrchestrator(
        config=config,
        oracle=oracle,
        orchestrator_config=orchestrator_config,
        sink=renderer,
        on_attempt=on_attempt,
    )
    try:
        result = orchestrator.run()
    except StartElevationError as e:
        st.error(f"⚠️ {e}")
        return None
    progress_bar.progress(1.0, text="Done")
    return result


def render_result(config: ExplorationConfig, result: OrchestrationResult) -> None:
    """Map, profile, and attempt table for the last run."""
    renderer: TrailMapRenderer = st.session_state.map_renderer
    st.pydeck_chart(renderer.render(start=config.start, end=config.end))

    if result.best is None:
        st.warning(f"No route found in {len(result.attempts)} attempts. Try more iterations or a larger step.")
    else:
        best = result.best
        chart = ElevationProfileChart(edge_length_m=config.edge_length_m, height=ChartConfig.PROFILE_HEIGHT)
        st.plotly_chart(chart.render(best.trail, title=f"Best trail (score {best.score:.2f})"))

    st.dataframe(
        [
            {
                "attempt": a.attempt_index + 1,
                "succeeded": a.succeeded,
                "score": round(a.score, 2),
                "waypoints": len(a.trail),
                "iterations": a.iterations,
                "error": a.error or "",
            }
            for a in result.attempts
        ]
    )


def main() -> None:
    st.set_page_config(page_title=AppConfig.TITLE, page_icon=AppConfig.ICON, layout=AppConfig.LAYOUT)
    st.title(AppConfig.TITLE)
    init_session_state()

    config, orchestrator_config = render_sidebar()
    if config is None:
        return

    if st.sidebar.button("Find route", type="primary"):
        try:
            st.session_state.result = run_search(config, orchestrator_config)
        except Exception as e:
            logger.error(f"Search failed: {type(e).__name__}: {e}\n{traceback.format_exc()}")
            st.error(f"⚠️ Something went wrong: {type(e).__name__}: {e}")
            st.session_state.result = None

    if st.session_state.result is not None:
        render_result(config, st.session_state.result)


if __name__ == "__main__":
    main()
