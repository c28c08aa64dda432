"""Cell-wise reduction of one hazard time step into region forcing.

For every cell of the common grid of iso-raster, proxy and hazard::

    region_forcing[label] += weight(hazard) * proxy

skipping invalid cells, then per label::

    forcing(sector, region) = (total_proxy - region_forcing) / total_proxy

i.e. the fraction of exposed value left unaffected, clipped to the valid
range of the hazard.

A cell is invalid if the hazard or proxy value exceeds 1e10 (missing-data
sentinel), the proxy is not positive, the cell is unassigned or any value is
NaN.
"""

from concurrent.futures import ThreadPoolExecutor
import logging
import math
from typing import Callable, Sequence

import numpy as np

from impactgen.contracts import IncompatibleGridError, require
from impactgen.forcing.agent_forcing import AgentForcing
from impactgen.grid import GeoGrid, GridView, StridedView, common_grid_view, partition_rows
from impactgen.impacts.gridded import RegionRaster
from impactgen.impacts.proxied import ProxyGrid
from impactgen.io.source import MISSING_THRESHOLD

__all__ = [
    'MISSING_THRESHOLD',
    'is_valid_cell',
    'valid_cell_mask',
    'accumulate_region_forcing',
    'normalize_region_forcing',
    'CellwiseReducer',
]

logger = logging.getLogger(__name__)

# weight(hazard, valid, *extra) -> weights, all arrays of one row block
WeightFunction = Callable[..., np.ndarray]


def is_valid_cell(hazard: float, proxy: float, label: int) -> bool:
    """Scalar form of :func:`valid_cell_mask`."""
    if math.isnan(hazard) or math.isnan(proxy):
        return False
    return not (hazard > MISSING_THRESHOLD or proxy > MISSING_THRESHOLD
                or proxy <= 0 or label < 0)


def valid_cell_mask(hazard: np.ndarray, proxy: np.ndarray, labels: np.ndarray) -> np.ndarray:
    """Boolean mask of cells taking part in the reduction."""
    with np.errstate(invalid="ignore"):
        return (~np.isnan(hazard) & ~np.isnan(proxy)
                & (hazard <= MISSING_THRESHOLD) & (proxy <= MISSING_THRESHOLD)
                & (proxy > 0) & (labels >= 0))


def _reduce_block(labels, proxy, hazard, extra, weight, n_labels):
    valid = valid_cell_mask(hazard, proxy, labels) & (labels < n_labels)
    weights = np.asarray(weight(hazard, valid, *extra), dtype=np.float64)
    lead = weights.shape[:-2]
    weights = weights.reshape((int(np.prod(lead)),) + hazard.shape)
    cell_labels = labels[valid]
    cell_proxy = proxy[valid]
    sums = [np.bincount(cell_labels, weights=w[valid] * cell_proxy, minlength=n_labels)
            for w in weights]
    return np.stack(sums).reshape(lead + (n_labels,))


def accumulate_region_forcing(label_view: StridedView, proxy_view: StridedView,
                              hazard_view: StridedView, weight: WeightFunction,
                              n_labels: int, partitions: int = 1,
                              extra_views: Sequence[StridedView] = ()) -> np.ndarray:
    """Sum proxy-weighted hazard weights per label.

    Parameters
    ----------
    label_view, proxy_view, hazard_view : StridedView
        Aligned views of the common grid.
    weight : callable
        ``weight(hazard, valid, *extra)`` gets 2-D blocks of hazard values,
        the validity mask and the matching blocks of ``extra_views`` (which
        are writable, for carried state) and returns the weight of every
        cell. A result with extra leading dimensions (one weight per
        sector, say) yields a result with the same leading dimensions.
        Weights of invalid cells are ignored.
    n_labels : int
        Number of iso-raster labels. Cells with larger labels are skipped.
    partitions : int, default 1
        Number of disjoint row partitions reduced concurrently.
    extra_views : sequence of StridedView
        Auxiliary aligned views passed on to ``weight``.

    Returns
    -------
    np.ndarray
        ``(..., n_labels)`` accumulated forcing.
    """
    views = (label_view, proxy_view, hazard_view) + tuple(extra_views)
    shape = label_view.shape
    require(all(v.shape == shape for v in views),
            f"Views do not share one shape: {[v.shape for v in views]}",
            IncompatibleGridError)

    labels, proxy, hazard, *extra = (v.values for v in views)

    def run(bounds):
        a, b = bounds
        return _reduce_block(labels[a:b], proxy[a:b], hazard[a:b],
                             [e[a:b] for e in extra], weight, n_labels)

    blocks = partition_rows(shape[0], partitions) or [(0, 0)]
    if len(blocks) == 1:
        return run(blocks[0])
    with ThreadPoolExecutor(max_workers=len(blocks)) as executor:
        return sum(executor.map(run, blocks))


def normalize_region_forcing(forcing: AgentForcing, region_forcing: np.ndarray,
                             total_proxy: np.ndarray, region_raster: RegionRaster,
                             sectors: Sequence[int], lower: float = 0.0,
                             upper: float = 1.0) -> None:
    """Write the unaffected fraction of every label into ``forcing``.

    ``region_forcing`` is either ``(n_labels,)``, shared by all sectors, or
    ``(len(sectors), n_labels)`` with one row per selected sector. Labels
    without canonical region or without proxy mass are skipped.
    """
    per_sector = region_forcing.ndim == 2
    for label, region in enumerate(region_raster.regions):
        if region < 0:
            continue
        total = total_proxy[label]
        if total <= 0:
            logger.debug("Skipping %s: no proxy mass", region_raster.label_names[label])
            continue
        for s, sector in enumerate(sectors):
            affected = region_forcing[s, label] if per_sector else region_forcing[label]
            forcing[sector, int(region)] = min(max((total - affected) / total, lower), upper)


class CellwiseReducer:
    """Reduction helper owned by a hazard module.

    Holds the module's region raster and proxy grid and aligns each hazard
    time step, plus any auxiliary rasters, against them.

    Parameters
    ----------
    region_raster : RegionRaster
    proxy : ProxyGrid
    partitions : int, default 1
        Row partitions reduced concurrently per time step.
    """

    def __init__(self, region_raster: RegionRaster, proxy: ProxyGrid, partitions: int = 1):
        self.region_raster = region_raster
        self.proxy = proxy
        self.partitions = partitions

    def reduce(self, hazard_view: StridedView, hazard_grid: GeoGrid,
               weight: WeightFunction,
               extra: Sequence[GridView] = ()) -> tuple[np.ndarray, tuple[StridedView, ...]]:
        """Accumulate one hazard time step.

        Returns
        -------
        region_forcing : np.ndarray
            Per-label accumulation (see :func:`accumulate_region_forcing`).
        extra_views : tuple of StridedView
            ``extra`` aligned onto the common grid.
        """
        _, views = common_grid_view(
            self.region_raster.grid_view(),
            self.proxy.grid_view(),
            GridView(hazard_view, hazard_grid),
            *extra,
        )
        label_view, proxy_view, aligned_hazard, *extra_views = views
        region_forcing = accumulate_region_forcing(
            label_view, proxy_view, aligned_hazard, weight,
            self.region_raster.n_labels, self.partitions, extra_views)
        return region_forcing, tuple(extra_views)

    def normalize(self, forcing: AgentForcing, region_forcing: np.ndarray,
                  sectors: Sequence[int], lower: float = 0.0, upper: float = 1.0) -> None:
        normalize_region_forcing(forcing, region_forcing, self.proxy.total_proxy,
                                 self.region_raster, sectors, lower, upper)
