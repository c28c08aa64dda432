"""Geographic grid geometry and indexing.

A :class:`GeoGrid` describes one axis-aligned equirectangular raster by the
range, signed step size and sample count of each axis. Coordinates are
cell origins: with an ascending axis the cell of index ``i`` covers
``[min + i*step, min + (i+1)*step)``. For a descending axis storage index 0
holds the maximum and indices grow toward the minimum.

Geometry is read once from a :class:`~impactgen.io.source.RasterSource`
and never changes afterwards.
"""

from dataclasses import dataclass
import logging
import math
from typing import Optional

import numpy as np

from impactgen.contracts import FormatError, require
from impactgen.grid.view import Slice, StridedView
from impactgen.io.source import LAT_ALIASES, LON_ALIASES, RasterSource, resolve_axis

__all__ = ['GeoGrid', 'read_geometry', 'STEP_TOLERANCE', 'INDEX_EPSILON']

logger = logging.getLogger(__name__)

# relative tolerance for constant steps and grid compatibility
STEP_TOLERANCE = 0.01
# fraction of a cell absorbed when locating a coordinate
INDEX_EPSILON = 1e-6


def _steps_close(a: float, b: float) -> bool:
    a, b = abs(a), abs(b)
    return abs(a - b) <= STEP_TOLERANCE * max(a, b)


def _axis_geometry(values: np.ndarray, label: str) -> tuple[float, float, float, int]:
    """Return ``(min, max, signed step, count)`` of a sampled axis."""
    values = np.asarray(values, dtype=np.float64)
    require(values.size >= 2, f"{label}: Too few samples ({values.size})", FormatError)
    deltas = np.diff(values)
    first = deltas[0]
    require(first != 0 and np.isfinite(first), f"{label}: Invalid step size {first}", FormatError)
    require(
        bool(np.all(np.abs(deltas - first) <= STEP_TOLERANCE * abs(first))),
        f"{label}: Axis has gaps (no gaps supported)",
        FormatError,
    )
    step = (values[-1] - values[0]) / (values.size - 1)
    return (float(min(values[0], values[-1])), float(max(values[0], values[-1])),
            float(step), int(values.size))


def _axis_index(value: float, lo: float, hi: float, step: float, count: int) -> Optional[int]:
    if step > 0:
        pos = (value - lo) / step
    else:
        pos = (hi - value) / -step
    if not math.isfinite(pos):
        return None
    index = math.floor(pos + INDEX_EPSILON)
    if index < 0 or index >= count:
        return None
    return index


def _axis_window(axis: Slice, first: int, last: int, max_cells: int) -> Slice:
    """Clip ``axis`` to storage indices ``first``..``last`` (inclusive).

    Iteration always starts at ``first``; when ``first > last`` the stride
    is reversed.
    """
    if first > last:
        return Slice(axis.begin + first * axis.stride,
                     min(first - last + 1, max_cells), -axis.stride)
    return Slice(axis.begin + first * axis.stride,
                 min(last - first + 1, max_cells), axis.stride)


@dataclass(frozen=True)
class GeoGrid:
    """Geometry of one lat/lon raster.

    ``lat_min < lat_max`` always holds; the sign of ``lat_stepsize``
    records the storage orientation (negative means descending).
    """
    lat_min: float
    lat_max: float
    lat_stepsize: float
    lat_count: int
    lon_min: float
    lon_max: float
    lon_stepsize: float
    lon_count: int

    @classmethod
    def from_axes(cls, lat_values, lon_values, filename: str = "<memory>") -> "GeoGrid":
        """Build a grid from sampled axis values.

        Raises
        ------
        FormatError
            If an axis has fewer than two samples or uneven steps.
        """
        lat = _axis_geometry(lat_values, f"{filename} - lat")
        lon = _axis_geometry(lon_values, f"{filename} - lon")
        return cls(*lat, *lon)

    @property
    def lat_abs_stepsize(self) -> float:
        return abs(self.lat_stepsize)

    @property
    def lon_abs_stepsize(self) -> float:
        return abs(self.lon_stepsize)

    @property
    def size(self) -> int:
        return self.lat_count * self.lon_count

    @property
    def shape(self) -> tuple[int, int]:
        return (self.lat_count, self.lon_count)

    def lat_index(self, lat: float) -> Optional[int]:
        """Storage index of the cell containing ``lat``, or None if outside."""
        return _axis_index(lat, self.lat_min, self.lat_max, self.lat_stepsize, self.lat_count)

    def lon_index(self, lon: float) -> Optional[int]:
        """Storage index of the cell containing ``lon``, or None if outside."""
        return _axis_index(lon, self.lon_min, self.lon_max, self.lon_stepsize, self.lon_count)

    def lat(self, index: int) -> float:
        if self.lat_stepsize > 0:
            return self.lat_min + index * self.lat_abs_stepsize
        return self.lat_max - index * self.lat_abs_stepsize

    def lon(self, index: int) -> float:
        if self.lon_stepsize > 0:
            return self.lon_min + index * self.lon_abs_stepsize
        return self.lon_max - index * self.lon_abs_stepsize

    def lat_values(self) -> np.ndarray:
        """Latitude of every storage index."""
        return np.array([self.lat(i) for i in range(self.lat_count)])

    def lon_values(self) -> np.ndarray:
        """Longitude of every storage index."""
        return np.array([self.lon(i) for i in range(self.lon_count)])

    def is_compatible(self, other: "GeoGrid") -> bool:
        """True if both absolute step sizes agree within 1%."""
        return (_steps_close(self.lat_stepsize, other.lat_stepsize)
                and _steps_close(self.lon_stepsize, other.lon_stepsize))

    def view(self, buffer: np.ndarray, offset: int = 0) -> StridedView:
        """Full view over ``buffer`` laid out as ``(lat, lon)`` in storage order."""
        return StridedView.from_buffer(buffer, self.lat_count, self.lon_count, offset)

    def window(self, view: StridedView, lat_min: float, lat_max: float,
               lon_min: float, lon_max: float,
               max_lat_cells: int, max_lon_cells: int) -> StridedView:
        """Clip ``view`` to a bounding box.

        ``view`` must address this grid in storage order. The returned view
        iterates from geographic minimum to maximum on both axes, whatever
        the storage orientation, and holds at most ``max_lat_cells`` by
        ``max_lon_cells`` cells.

        Raises
        ------
        FormatError
            If a bound lies outside the grid.
        """
        indices = {
            "lat_min": self.lat_index(lat_min),
            "lat_max": self.lat_index(lat_max),
            "lon_min": self.lon_index(lon_min),
            "lon_max": self.lon_index(lon_max),
        }
        outside = [k for k, v in indices.items() if v is None]
        require(not outside, f"Window bounds {outside} lie outside grid {self}", FormatError)
        return StridedView(
            view.buffer,
            _axis_window(view.lat, indices["lat_min"], indices["lat_max"], max_lat_cells),
            _axis_window(view.lon, indices["lon_min"], indices["lon_max"], max_lon_cells),
        )


def read_geometry(source: RasterSource, filename: Optional[str] = None) -> GeoGrid:
    """Scan the lat/lon axes of ``source`` into a :class:`GeoGrid`.

    Axes are looked up as ``y|lat|latitude`` and ``x|lon|longitude``.

    Raises
    ------
    AxisNotFoundError
        If an axis is missing.
    FormatError
        If an axis has fewer than two samples or is not evenly spaced.
    """
    filename = filename or source.filename
    lat_name = resolve_axis(source, LAT_ALIASES)
    lon_name = resolve_axis(source, LON_ALIASES)
    lat = _axis_geometry(source.get_axis_values(lat_name), f"{filename} - {lat_name}")
    lon = _axis_geometry(source.get_axis_values(lon_name), f"{filename} - {lon_name}")
    grid = GeoGrid(*lat, *lon)
    logger.debug("%s: %d x %d grid, step (%g, %g)", filename,
                 grid.lat_count, grid.lon_count, grid.lat_stepsize, grid.lon_stepsize)
    return grid
