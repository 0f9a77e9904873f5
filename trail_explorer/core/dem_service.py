"""Elevation oracles for terrain height queries.

Provides:
- ElevationOracle: The protocol the exploration engine consumes
- DEMService: Singleton GeoTIFF-backed oracle (rasterio + NumPy lookup)
- CachedElevationOracle: Optional memoizing decorator supplied by callers
- download_dem_from_huggingface: Fetch the default DEM if missing

An oracle raises LookupError (ElevationUnavailableError) when it has no
terrain data for a coordinate; it never returns a default height.
"""

import logging
import threading
import time
from dataclasses import dataclass
from math import floor
from pathlib import Path
from typing import Any, Callable, Optional, Protocol, runtime_checkable

import numpy as np
import rasterio
import requests
from rasterio.warp import transform

from trail_explorer.constants import DEMConfig
from trail_explorer.exceptions import ElevationUnavailableError
from trail_explorer.model.coordinate import Coordinate

logger = logging.getLogger(__name__)

WGS84 = "EPSG:4326"


@runtime_checkable
class ElevationOracle(Protocol):
    """Maps a coordinate to a terrain height in meters."""

    def elevation(self, coordinate: Coordinate) -> float:
        """Return elevation in meters.

        Raises:
            LookupError: If terrain data is unavailable at the coordinate.
        """
        ...


def download_dem_from_huggingface(
    target_path: Path = DEMConfig.DEM_PATH,
    progress_callback: Optional[Callable[[float], None]] = None,
) -> Path:
    """Fetch the default DEM unless it is already on disk.

    The file is streamed into a ``.part`` sibling and renamed when complete,
    so an interrupted download never leaves a truncated GeoTIFF behind.

    Raises:
        requests.RequestException: If the download fails.
    """
    if target_path.exists():
        logger.info(f"DEM already present at {target_path}")
        return target_path

    target_path.parent.mkdir(parents=True, exist_ok=True)
    partial_path = target_path.with_suffix(target_path.suffix + ".part")
    logger.info(f"Fetching DEM from {DEMConfig.HF_DOWNLOAD_URL}")

    with requests.get(DEMConfig.HF_DOWNLOAD_URL, stream=True, timeout=DEMConfig.DOWNLOAD_TIMEOUT_S) as response:
        response.raise_for_status()
        expected_bytes = int(response.headers.get("content-length", 0))
        received = 0
        with open(partial_path, "wb") as fh:
            for chunk in response.iter_content(chunk_size=DEMConfig.DOWNLOAD_CHUNK_BYTES):
                fh.write(chunk)
                received += len(chunk)
                if progress_callback is not None and expected_bytes:
                    progress_callback(min(1.0, received / expected_bytes))

    partial_path.replace(target_path)
    logger.info(f"DEM saved to {target_path} ({received / 1e6:.1f} MB)")
    return target_path


@dataclass(frozen=True)
class _RasterGrid:
    """Band 1 of a GeoTIFF held in memory with its georeferencing."""

    values: np.ndarray
    affine: Any
    crs: str
    nodata: Optional[float]
    native_bounds: Any

    def cell_of(self, x: float, y: float) -> Optional[tuple[int, int]]:
        """(row, col) holding native point (x, y), or None outside the grid."""
        col_f, row_f = ~self.affine * (x, y)
        row, col = floor(row_f), floor(col_f)
        n_rows, n_cols = self.values.shape
        if 0 <= row < n_rows and 0 <= col < n_cols:
            return row, col
        return None


class DEMService:
    """Singleton elevation oracle reading a single-band GeoTIFF.

    The raster is read fully into memory on the first query; every lookup
    after that is a single NumPy index. Non-WGS84 rasters are supported by
    reprojecting each query point.

    Example:
        dem = DEMService()
        height = dem.elevation(Coordinate(lat=46.985, lon=10.295))
    """

    _instance: Optional["DEMService"] = None
    _load_lock = threading.Lock()
    _grid: Optional[_RasterGrid] = None

    def __new__(cls, dem_path: Optional[Path] = None) -> "DEMService":
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._dem_path = dem_path or DEMConfig.DEM_PATH
            cls._instance = instance
        return cls._instance

    @property
    def is_loaded(self) -> bool:
        return self._grid is not None

    def _load(self) -> _RasterGrid:
        """Read the raster once; concurrent first callers wait on the lock."""
        grid = self._grid
        if grid is not None:
            return grid

        with self._load_lock:
            if self._grid is not None:
                return self._grid
            if not self._dem_path.exists():
                raise FileNotFoundError(f"DEM file not found at {self._dem_path}. Download it first.")

            started = time.perf_counter()
            with rasterio.open(self._dem_path) as dataset:
                grid = _RasterGrid(
                    values=dataset.read(1),
                    affine=dataset.transform,
                    crs=dataset.crs.to_string() if dataset.crs else WGS84,
                    nodata=dataset.nodata,
                    native_bounds=dataset.bounds,
                )
            self._grid = grid
            logger.info(
                f"DEM {self._dem_path.name} loaded in {time.perf_counter() - started:.2f}s "
                f"(shape {grid.values.shape}, {grid.crs})"
            )
            return grid

    def elevation(self, coordinate: Coordinate) -> float:
        """Height of the raster cell containing the coordinate.

        Raises:
            ElevationUnavailableError: Outside raster coverage, no-data or NaN cell.
            FileNotFoundError: If the DEM file is missing.
        """
        grid = self._load()
        x, y = coordinate.lon, coordinate.lat
        if grid.crs != WGS84:
            xs, ys = transform(WGS84, grid.crs, [x], [y])
            x, y = xs[0], ys[0]

        cell = grid.cell_of(x, y)
        if cell is None:
            raise ElevationUnavailableError(f"{coordinate} lies outside the DEM coverage")

        value = grid.values[cell]
        if grid.nodata is not None and value == grid.nodata:
            raise ElevationUnavailableError(f"DEM has no data at {coordinate}")
        if np.isnan(value):
            raise ElevationUnavailableError(f"DEM cell at {coordinate} is NaN")
        return float(value)

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """Coverage as (west, south, east, north) in WGS84 degrees."""
        grid = self._load()
        b = grid.native_bounds
        if grid.crs == WGS84:
            return b.left, b.bottom, b.right, b.top

        lons, lats = transform(grid.crs, WGS84, [b.left, b.right, b.left, b.right], [b.bottom, b.bottom, b.top, b.top])
        return min(lons), min(lats), max(lons), max(lats)


class CachedElevationOracle:
    """Memoizing decorator around any elevation oracle.

    The exploration engine never caches by itself. Wrap an oracle in this
    class to share lookups across attempts. Failed lookups are cached too,
    so a coordinate without data is only asked once.
    """

    def __init__(self, oracle: ElevationOracle) -> None:
        self._oracle = oracle
        self._cache: dict[str, Optional[float]] = {}
        self.hits = 0
        self.misses = 0

    def elevation(self, coordinate: Coordinate) -> float:
        key = coordinate.key()
        if key in self._cache:
            self.hits += 1
            value = self._cache[key]
        else:
            self.misses += 1
            try:
                value = self._oracle.elevation(coordinate)
            except LookupError:
                self._cache[key] = None
                raise
            self._cache[key] = value

        if value is None:
            raise ElevationUnavailableError(f"No elevation at {coordinate} (cached)")
        return value

    def clear(self) -> None:
        self._cache.clear()
        self.hits = 0
        self.misses = 0
