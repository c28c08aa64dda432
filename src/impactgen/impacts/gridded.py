"""Region raster (iso-raster) ingestion and region-block linearization.

An iso-raster assigns each grid cell an index into a list of raw region
labels stored alongside it (variable ``index`` by default). Labels are
mapped onto the canonical region list of the run; labels without a
canonical counterpart, negative cell values and cell values beyond the
label list all mark unassigned cells.
"""

import logging
from typing import Sequence

import numpy as np

from impactgen.contracts import require
from impactgen.contracts.raster import expected_layouts
from impactgen.grid import GeoGrid, GridView, StridedView, common_grid_view, foreach_view, foreach_view_parallel
from impactgen.grid.geogrid import read_geometry
from impactgen.io.source import RasterSource, check_dimensions

__all__ = ['RegionRaster']

logger = logging.getLogger(__name__)


def _label_array(values: np.ndarray) -> np.ndarray:
    if np.issubdtype(values.dtype, np.floating):
        values = np.where(np.isnan(values), -1, values)
    return np.ascontiguousarray(values, dtype=np.int64)


class RegionRaster:
    """Cell to region assignment of one iso-raster.

    Parameters
    ----------
    grid : GeoGrid
        Geometry of ``labels``.
    labels : np.ndarray
        ``(lat, lon)`` array of label indices in storage order.
    label_names : sequence of str
        Raw region label of every label index.
    regions : np.ndarray
        Canonical region index of every label index, ``-1`` if unknown.
    filename : str
        Source name used in messages.
    """

    def __init__(self, grid: GeoGrid, labels: np.ndarray, label_names: Sequence[str],
                 regions: np.ndarray, filename: str = "<memory>"):
        require(labels.shape == grid.shape,
                f"{filename}: Labels {labels.shape} do not match grid {grid.shape}")
        self.grid = grid
        self.labels = labels
        self.label_names = tuple(label_names)
        self.regions = np.asarray(regions, dtype=np.int64)
        self.filename = filename
        self.block_grid = None
        self.block_indices = None
        self.block_offsets = None

    @classmethod
    def read(cls, source: RasterSource, variable: str, canonical_regions: Sequence[str],
             index_variable: str = "index", verbose: bool = False) -> "RegionRaster":
        """Load an iso-raster and map its labels onto ``canonical_regions``.

        Parameters
        ----------
        source : RasterSource
            Dataset holding the raster and its label list.
        variable : str
            Name of the ``(lat, lon)`` label-index raster.
        canonical_regions : sequence of str
            Region names of the run, in output order.
        index_variable : str, default "index"
            Name of the label list.
        verbose : bool
            Log a warning for every label that is not a canonical region.

        Raises
        ------
        FormatError
            If a variable is missing or has unexpected dimensions.
        AxisNotFoundError
            If the lat/lon axes cannot be found.
        """
        check_dimensions(source, variable, *expected_layouts())
        grid = read_geometry(source)
        labels = _label_array(source.get_array(variable)).reshape(grid.shape)
        label_names = source.get_strings(index_variable)

        region_index = {name: i for i, name in enumerate(canonical_regions)}
        regions = np.full(len(label_names), -1, dtype=np.int64)
        for i, name in enumerate(label_names):
            if name in region_index:
                regions[i] = region_index[name]
            elif verbose:
                logger.warning("ISO-Raster region %s ignored", name)
        logger.debug("%s: %d labels, %d mapped", source.filename,
                     len(label_names), int(np.count_nonzero(regions >= 0)))
        return cls(grid, labels, label_names, regions, source.filename)

    @property
    def n_labels(self) -> int:
        return self.regions.size

    def canonical(self, label: int) -> int:
        """Canonical region of a cell value, ``-1`` if unassigned."""
        if label < 0 or label >= self.n_labels:
            return -1
        return int(self.regions[label])

    def grid_view(self) -> GridView:
        return GridView(StridedView.from_array(self.labels), self.grid)

    def calc_region_blocks(self, grid: GeoGrid) -> None:
        """Assign every mapped cell of ``grid`` a position in region order.

        Cells of one label occupy one contiguous block, blocks are ordered
        by label. Unassigned cells keep index ``-1``. Afterwards
        ``block_offsets[label]`` is the start of each block and
        ``block_offsets[-1]`` the total number of mapped cells.
        """
        self.block_grid = grid
        self.block_indices = np.full(grid.shape, -1, dtype=np.int64)
        sizes = np.zeros(self.n_labels, dtype=np.int64)
        block_view = StridedView.from_array(self.block_indices)

        _, (label_view, index_view) = common_grid_view(
            self.grid_view(), GridView(block_view, grid))

        def count(lat_index, lon_index, label, index):
            if self.canonical(label) < 0:
                return True
            index_view[lat_index, lon_index] = sizes[label]
            sizes[label] += 1
            return True

        foreach_view((label_view, index_view), count)

        offsets = np.zeros(self.n_labels + 1, dtype=np.int64)
        np.cumsum(sizes, out=offsets[1:])
        self.block_offsets = offsets

        def shift(lat_index, lon_index, label, index):
            if self.canonical(label) < 0 or index < 0:
                return
            index_view[lat_index, lon_index] = index + offsets[label]

        foreach_view_parallel((label_view, index_view), shift)
        logger.debug("%s: %d cells in %d region blocks", self.filename,
                     int(offsets[-1]), self.n_labels)

    def linearize(self, grid_view: GridView) -> np.ndarray:
        """Flatten a raster into region-block order.

        Requires :meth:`calc_region_blocks` to have been called.
        """
        require(self.block_offsets is not None, "Region blocks not calculated")
        result = np.zeros(int(self.block_offsets[-1]), dtype=grid_view.view.buffer.dtype)
        _, (value_view, index_view) = common_grid_view(
            grid_view, GridView(StridedView.from_array(self.block_indices), self.block_grid))
        indices = index_view.values
        placed = indices >= 0
        result[indices[placed]] = value_view.values[placed]
        return result

    def block_labels(self) -> np.ndarray:
        """Label of every position of a linearized raster."""
        require(self.block_offsets is not None, "Region blocks not calculated")
        return np.repeat(np.arange(self.n_labels), np.diff(self.block_offsets))

    def __repr__(self):
        return f"RegionRaster({self.filename!r}, {self.n_labels} labels)"
