"""Grid geometry, strided views and common-grid alignment."""

from impactgen.grid.view import (
    LockstepTraversal,
    Slice,
    StridedView,
    foreach_view,
    foreach_view_parallel,
    partition_rows,
)
from impactgen.grid.geogrid import GeoGrid, read_geometry
from impactgen.grid.common import GridView, all_compatible, common_grid_view

__all__ = [
    "GeoGrid",
    "read_geometry",
    "GridView",
    "all_compatible",
    "common_grid_view",
    "Slice",
    "StridedView",
    "LockstepTraversal",
    "foreach_view",
    "foreach_view_parallel",
    "partition_rows",
]
