"""Configuration constants for Trail Explorer.

All configurable parameters are centralized here for easy tuning.
The edge cost tables are part of the route behaviour: changing a tier
boundary or multiplier changes which trails get explored.

Classes:
    ExplorationDefaults: Default search parameters (edge length, sweep, caps)
    CoordinateConfig: Canonical coordinate keys
    CostConfig: Edge cost model tables (slope, alignment, progress)
    ProximityConfig: Self-avoidance guard parameters
    EvaluatorConfig: Trail scoring and unit conversion
    OrchestratorDefaults: Multi-attempt stopping rule
    DEMConfig: Elevation data file paths
    MapConfig: Default map view parameters
    StyleConfig: Visual colors and styling
    ChartConfig: Chart rendering dimensions
"""

from pathlib import Path

# Package root directory (where trail_explorer/ lives)
PACKAGE_DIR = Path(__file__).parent

# Project root directory (parent of trail_explorer/)
PROJECT_ROOT = PACKAGE_DIR.parent

# Data directory outside package (downloaded separately, not shipped with package)
DATA_DIR = PROJECT_ROOT / "data"


class AppConfig:
    """UI application settings."""

    TITLE = "Trail Explorer - Synthesize Walkable Routes"
    ICON = "🥾"
    LAYOUT = "wide"


class ExplorationDefaults:
    """Default parameters for a single exploration attempt."""

    EDGE_LENGTH_M = 35.0  # Distance between a node and each generated neighbor
    ANGLE_INCREMENT_DEG = 1.0  # Bearing sweep step for neighbor generation
    MIN_DISTANCE_M = 33.0  # Minimum distance between non-adjacent trail sections
    MAX_ITERATIONS = 1000  # Hard cap on stack pops per attempt
    SUCCESS_RADIUS_M = 20.0  # Destination reached when within this radius

    # Padding around start/end when no explicit bounds are given
    BOUNDS_PADDING_M = 500.0

    # Notify the progress sink every N node expansions
    PROGRESS_EVERY_N = 50


class CoordinateConfig:
    """Configuration for coordinate keys.

    Floats are never compared with == for graph identity; the visited set
    uses rounded string keys instead.
    """

    # Decimal places for visited-set keys (6 decimals ≈ 10cm precision)
    KEY_DECIMALS: int = 6


class CostConfig:
    """Edge cost model tables.

    weight = max(FLOOR, slope_factor * alignment_factor * progress_factor)
    """

    # Minimum weight: no candidate is ever impossible
    FLOOR = 1e-4

    # Slope factor: (upper bound of |slope| in %, multiplier), first match wins.
    # Steeper than the last bound uses STEEPEST_MULTIPLIER.
    SLOPE_TIERS = (
        (5.0, 2.0),  # Near flat: rewarded
        (10.0, 0.5),  # Moderate: mildly discouraged
        (20.0, 0.05),  # Steep
        (30.0, 0.005),  # Very steep
    )
    STEEPEST_MULTIPLIER = 0.0005  # Above 30%
    # Continuous decay exp(-|slope| / SLOPE_DECAY_PCT) smooths tier edges
    SLOPE_DECAY_PCT = 10.0

    # Bearing alignment (degrees of deviation from the bearing toward the destination)
    MAX_BIAS_WINDOW_DEG = 90.0  # Inside half of this window: proportional reward
    ALIGNMENT_GAIN = 1.0  # Perfect alignment multiplies by 1 + gain
    SECONDARY_BAND_DEG = 135.0  # Between window and this: partial penalty
    PARTIAL_PENALTY = 0.5
    SEVERE_PENALTY = 0.05  # Beyond the secondary band

    # Progress toward destination
    IMPROVEMENT_THRESHOLD_M = 1.0  # Distance reduction counted as improvement
    MUCH_IMPROVEMENT_THRESHOLD_M = 20.0  # Reduction earning the extra multiplier
    MUCH_IMPROVEMENT_MULTIPLIER = 2.0
    # Strong factor by remaining distance: (remaining below m, factor), first match wins
    STRONG_FACTOR_TIERS = (
        (25.0, 1024.0),
        (50.0, 256.0),
        (100.0, 16.0),
        (500.0, 4.0),
    )
    STRONG_FACTOR_DEFAULT = 2.0


# Validate cost tables (module-level assertions)
assert all(
    a[0] < b[0] for a, b in zip(CostConfig.SLOPE_TIERS, CostConfig.SLOPE_TIERS[1:])
), "Slope tiers must be sorted by bound"
assert all(
    a[1] > b[1] for a, b in zip(CostConfig.SLOPE_TIERS, CostConfig.SLOPE_TIERS[1:])
), "Slope tier multipliers must shrink with steepness"
assert all(
    a[0] < b[0] for a, b in zip(CostConfig.STRONG_FACTOR_TIERS, CostConfig.STRONG_FACTOR_TIERS[1:])
), "Strong factor tiers must be sorted by remaining distance"
assert CostConfig.MAX_BIAS_WINDOW_DEG < CostConfig.SECONDARY_BAND_DEG <= 180.0
assert CostConfig.IMPROVEMENT_THRESHOLD_M < CostConfig.MUCH_IMPROVEMENT_THRESHOLD_M
assert CostConfig.FLOOR > 0


class ProximityConfig:
    """Self-avoidance guard parameters.

    skip_last_n = ceil(min_distance / edge_length * ADJUSTMENT_FACTOR) + EXTRA_SKIPPED
    The k-th most recent point excludes a radius of k * edge_length * TURNING_FACTOR.
    """

    ADJUSTMENT_FACTOR = 1.7
    EXTRA_SKIPPED = 2
    # 0.7 lets a single step turn up to ~91° (2 * acos(0.7)) while blocking reversal
    TURNING_FACTOR = 0.7


assert 0 < ProximityConfig.TURNING_FACTOR < 1


class EvaluatorConfig:
    """Trail scoring parameters."""

    FAILED_SCORE = -1.0  # Sentinel for unsuccessful or too-short trails
    MIN_TRAIL_POINTS = 2
    LENGTH_PENALTY_PER_KM = 0.0  # Added to mean |slope| per km of trail

    # Meters per unit
    UNIT_METERS = {
        "m": 1.0,
        "km": 1000.0,
        "mi": 1609.344,
        "ft": 0.3048,
    }


class OrchestratorDefaults:
    """Multi-attempt stopping rule."""

    MIN_ATTEMPTS = 3
    MAX_ATTEMPTS = 10
    ACCEPTABLE_SCORE = 8.0  # Mean |slope| in percent


assert OrchestratorDefaults.MIN_ATTEMPTS <= OrchestratorDefaults.MAX_ATTEMPTS


class DEMConfig:
    """Elevation data file paths and Hugging Face hosting."""

    # Path to DEM GeoTIFF (any WGS84 or projected single-band raster works)
    DEM_PATH = DATA_DIR / "alps_dem.tif"

    # Hugging Face hosting (auto-download if local file missing)
    HF_REPO_ID = "MichaelMedek/alps_eurodem"
    HF_FILENAME = "alps_dem.tif"
    HF_DOWNLOAD_URL = f"https://huggingface.co/datasets/{HF_REPO_ID}/resolve/main/{HF_FILENAME}"
    DOWNLOAD_TIMEOUT_S = 180
    DOWNLOAD_CHUNK_BYTES = 1 << 16


class MapConfig:
    """Default map view parameters."""

    # Default route inside the bundled Alps DEM: Idalp -> Pardatschgrat, Ischgl
    DEFAULT_START_LAT = 46.9820
    DEFAULT_START_LON = 10.3170
    DEFAULT_END_LAT = 46.9920
    DEFAULT_END_LON = 10.3290

    DEFAULT_ZOOM = 14
    DEFAULT_PITCH = 0
    DEFAULT_BEARING = 0

    # At equator, 1 degree of latitude or longitude ≈ 111,320 meters
    METERS_PER_DEGREE_EQUATOR = 111320.0


class StyleConfig:
    """Visual colors and styling (RGBA lists for pydeck)."""

    TRAIL_COLOR = [234, 88, 12, 230]  # Orange-600
    TRAIL_WIDTH = 4
    WAYPOINT_COLOR = [31, 41, 55, 200]  # Gray-800
    WAYPOINT_RADIUS = 3
    START_COLOR = [34, 197, 94, 255]  # Green-500
    END_COLOR = [239, 68, 68, 255]  # Red-500
    ENDPOINT_RADIUS = 12

    # Slope color bands for the profile chart: (upper |slope| %, hex color)
    SLOPE_BANDS = (
        (5.0, "#22C55E"),
        (10.0, "#3B82F6"),
        (20.0, "#EF4444"),
        (float("inf"), "#1F2937"),
    )


class ChartConfig:
    """Chart rendering dimensions and settings."""

    PROFILE_HEIGHT = 320
    DEFAULT_WIDTH = 800

    # Y-axis padding settings
    ELEVATION_PADDING_FACTOR = 0.1  # 10% padding above/below
    ELEVATION_PADDING_MIN_M = 20  # Minimum padding in meters
