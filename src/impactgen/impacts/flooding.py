"""River flood impact.

The hazard is the flooded fraction of every cell. Flooding carries a
recovery state across time steps (and across joins): a cell that was hit
recovers gradually, modeled as the previous step's effective flood
fraction scaled by ``recovery.exponent`` and dropped once it falls below
``recovery.threshold``.
"""

import logging

import numpy as np

from impactgen.contracts import IncompatibleGridError, require
from impactgen.forcing import AgentForcing
from impactgen.grid import GeoGrid, GridView, StridedView
from impactgen.impacts.base import HazardImpact
from impactgen.impacts.reduction import MISSING_THRESHOLD, CellwiseReducer

__all__ = ['Flooding']

logger = logging.getLogger(__name__)


class Flooding(HazardImpact):
    """Flood fraction to forcing, with recovery.

    Per valid cell::

        recovery = exponent * last      (0 if below threshold, invalid or NaN)
        value = min(flood_fraction + recovery, 1)
        last = value

    and ``value`` is the cell weight of the reduction.
    """

    name = "flooding"
    hazard_field = "flood_fraction"

    def __init__(self, config, base_forcing: AgentForcing):
        super().__init__(config, base_forcing)
        self.recovery_exponent = config.recovery.exponent
        self.recovery_threshold = config.recovery.threshold
        self.last = None
        self.last_grid = None

    def prepare(self, grid: GeoGrid, filename: str) -> None:
        if self.last is None:
            self.last = np.zeros(grid.shape, dtype=np.float64)
            self.last_grid = grid
            return
        require(
            grid.is_compatible(self.last_grid) and grid.shape == self.last_grid.shape,
            f"{filename}: Incompatible grids",
            IncompatibleGridError,
        )

    def finish(self, grid: GeoGrid) -> None:
        self.last_grid = grid

    def weight(self, flood: np.ndarray, valid: np.ndarray, last: np.ndarray) -> np.ndarray:
        recovery = self.recovery_exponent * last
        with np.errstate(invalid="ignore"):
            drop = ((recovery < self.recovery_threshold) | (recovery > MISSING_THRESHOLD)
                    | np.isnan(recovery))
        recovery = np.where(drop, 0.0, recovery)
        value = np.minimum(flood + recovery, 1.0)
        last[valid] = value[valid]
        return value

    def step(self, reducer: CellwiseReducer, forcing: AgentForcing,
             hazard_view: StridedView, hazard_grid: GeoGrid) -> None:
        last = GridView(StridedView.from_array(self.last), self.last_grid)
        region_forcing, _ = reducer.reduce(hazard_view, hazard_grid, self.weight, extra=(last,))
        reducer.normalize(forcing, region_forcing, self.sectors, self.lower, self.upper)
