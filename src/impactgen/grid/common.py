"""Common-grid computation for independently sourced rasters.

Given several ``(view, grid)`` pairs, :func:`common_grid_view` intersects
their bounding boxes and windows every view onto the intersection, so that
one ``(lat_index, lon_index)`` pair addresses the same geographic cell in
every returned view. All returned views iterate from geographic minimum to
maximum on both axes.

Grids whose nominal resolutions agree can still have cell boundaries
offset by a fraction of a cell. The cell count per axis is therefore the
smallest index span any input has over the common box.
"""

from itertools import combinations
import logging
from typing import NamedTuple

from impactgen.contracts import IncompatibleGridError, require
from impactgen.grid.geogrid import GeoGrid
from impactgen.grid.view import StridedView

__all__ = ['GridView', 'all_compatible', 'common_grid_view']

logger = logging.getLogger(__name__)


class GridView(NamedTuple):
    """A view over a raster buffer and the geometry it is laid out on."""
    view: StridedView
    grid: GeoGrid


def all_compatible(*grids: GeoGrid) -> bool:
    """True if every pair of ``grids`` is compatible."""
    return all(a.is_compatible(b) for a, b in combinations(grids, 2))


def _span(first, last) -> int:
    return abs(last - first) + 1


def common_grid_view(*grid_views: GridView) -> tuple[GeoGrid, tuple[StridedView, ...]]:
    """Align several views onto their common geographic window.

    Parameters
    ----------
    *grid_views : GridView
        Views in storage order of their grids.

    Returns
    -------
    grid : GeoGrid
        Synthetic grid of the intersection. Its step sizes are copied from
        the first input and are representative only.
    views : tuple of StridedView
        One aligned view per input, all of the same shape.

    Raises
    ------
    IncompatibleGridError
        If any two grids differ in resolution by more than 1%, or if the
        grids do not overlap.
    """
    require(len(grid_views) > 0, "No grids to intersect", IncompatibleGridError)
    grids = [gv.grid for gv in grid_views]
    require(all_compatible(*grids), f"Incompatible grids: {grids}", IncompatibleGridError)

    lat_min = max(g.lat_min for g in grids)
    lat_max = min(g.lat_max for g in grids)
    lon_min = max(g.lon_min for g in grids)
    lon_max = min(g.lon_max for g in grids)
    require(
        lat_min <= lat_max and lon_min <= lon_max,
        f"Grids do not intersect: lat [{lat_min}, {lat_max}], lon [{lon_min}, {lon_max}]",
        IncompatibleGridError,
    )

    lat_count = min(_span(g.lat_index(lat_min), g.lat_index(lat_max)) for g in grids)
    lon_count = min(_span(g.lon_index(lon_min), g.lon_index(lon_max)) for g in grids)

    views = tuple(
        gv.grid.window(gv.view, lat_min, lat_max, lon_min, lon_max, lat_count, lon_count)
        for gv in grid_views
    )
    first = grids[0]
    grid = GeoGrid(lat_min, lat_max, first.lat_abs_stepsize, lat_count,
                   lon_min, lon_max, first.lon_abs_stepsize, lon_count)
    logger.debug("Common grid of %d inputs: %d x %d cells", len(grids), lat_count, lon_count)
    return grid, views
