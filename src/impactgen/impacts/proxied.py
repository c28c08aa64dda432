"""Proxy (economic exposure) grid ingestion and per-label totals."""

import logging

import numpy as np

from impactgen.contracts import IncompatibleGridError, require
from impactgen.contracts.raster import expected_layouts
from impactgen.grid import GeoGrid, GridView, StridedView, common_grid_view
from impactgen.grid.geogrid import read_geometry
from impactgen.impacts.gridded import RegionRaster
from impactgen.io.source import MISSING_THRESHOLD, RasterSource, check_dimensions

__all__ = ['ProxyGrid']

logger = logging.getLogger(__name__)


class ProxyGrid:
    """Exposure raster with its per-label normalizing totals.

    Attributes
    ----------
    total_proxy : np.ndarray
        Sum of positive, non-NaN, non-fill proxy values per iso-raster label index.
    total_sum : float
        Sum over all assigned cells.
    total_sum_all : float
        Sum over all cells of the common grid, assigned or not.
    """

    def __init__(self, grid: GeoGrid, values: np.ndarray, region_raster: RegionRaster,
                 filename: str = "<memory>", verbose: bool = False):
        require(values.shape == grid.shape,
                f"{filename}: Values {values.shape} do not match grid {grid.shape}")
        require(
            grid.is_compatible(region_raster.grid),
            f"{filename}: Forcing and proxy not compatible in raster resolution",
            IncompatibleGridError,
        )
        self.grid = grid
        self.values = values
        self.filename = filename
        self.total_proxy, self.total_sum, self.total_sum_all = self._totals(region_raster)
        if verbose:
            self._report(region_raster)

    @classmethod
    def read(cls, source: RasterSource, variable: str, region_raster: RegionRaster,
             verbose: bool = False) -> "ProxyGrid":
        """Load a ``(lat, lon)`` proxy raster and compute its totals.

        Raises
        ------
        FormatError
            If the variable is missing or has unexpected dimensions.
        IncompatibleGridError
            If the proxy resolution differs from the iso-raster's.
        """
        check_dimensions(source, variable, *expected_layouts())
        grid = read_geometry(source)
        values = source.get_array(variable).astype(np.float64).reshape(grid.shape)
        return cls(grid, values, region_raster, source.filename, verbose)

    def grid_view(self) -> GridView:
        return GridView(StridedView.from_array(self.values), self.grid)

    def _totals(self, region_raster: RegionRaster) -> tuple[np.ndarray, float, float]:
        _, (label_view, proxy_view) = common_grid_view(region_raster.grid_view(), self.grid_view())
        labels = label_view.values
        proxy = proxy_view.values

        with np.errstate(invalid="ignore"):
            valid = (proxy > 0) & (proxy <= MISSING_THRESHOLD) & ~np.isnan(proxy)
        assigned = valid & (labels >= 0) & (labels < region_raster.n_labels)

        total_proxy = np.bincount(labels[assigned], weights=proxy[assigned],
                                  minlength=region_raster.n_labels).astype(np.float64)
        return total_proxy, float(proxy[assigned].sum()), float(proxy[valid].sum())

    def _report(self, region_raster: RegionRaster) -> None:
        logger.info("Total proxy sum: %g (%g)", self.total_sum, self.total_sum_all)
        for label, region in enumerate(region_raster.regions):
            if region < 0:
                continue
            if self.total_proxy[label] <= 0:
                logger.warning("%s has zero proxy", region_raster.label_names[label])

    def __repr__(self):
        return f"ProxyGrid({self.filename!r}, total={self.total_sum:g})"
