"""Heat-induced labor productivity loss.

The hazard is the daily temperature of every cell. Above ``threshold``
each sector loses productivity linearly with its own slope ``alpha``,
saturating at total loss::

    loss(sector) = min(1, alpha(sector) * (temperature - threshold))
"""

import logging

import numpy as np

from impactgen.forcing import AgentForcing
from impactgen.grid import GeoGrid, StridedView
from impactgen.impacts.base import HazardImpact
from impactgen.impacts.reduction import CellwiseReducer

__all__ = ['HeatLaborProductivity']

logger = logging.getLogger(__name__)


class HeatLaborProductivity(HazardImpact):
    """Day temperature to forcing, one slope per sector."""

    name = "heat_labor_productivity"
    hazard_field = "day_temperature"

    def __init__(self, config, base_forcing: AgentForcing):
        super().__init__(config, base_forcing)
        self.threshold = config.day_temperature.threshold
        # sectors and alphas share the order of the settings mapping
        self.alphas = np.array(list(config.sectors.values()), dtype=np.float64)

    def weight(self, temperature: np.ndarray, valid: np.ndarray) -> np.ndarray:
        excess = temperature - self.threshold
        alphas = self.alphas[:, np.newaxis, np.newaxis]
        with np.errstate(invalid="ignore"):
            return np.where(excess > 0, np.minimum(1.0, alphas * excess), 0.0)

    def step(self, reducer: CellwiseReducer, forcing: AgentForcing,
             hazard_view: StridedView, hazard_grid: GeoGrid) -> None:
        region_forcing, _ = reducer.reduce(hazard_view, hazard_grid, self.weight)
        reducer.normalize(forcing, region_forcing, self.sectors, self.lower, self.upper)
