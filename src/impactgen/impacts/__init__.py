"""Region rasters, proxy aggregation, reduction engine and hazard modules."""

from impactgen.impacts.gridded import RegionRaster
from impactgen.impacts.proxied import ProxyGrid
from impactgen.impacts.reduction import (
    CellwiseReducer,
    accumulate_region_forcing,
    is_valid_cell,
    normalize_region_forcing,
    valid_cell_mask,
)
from impactgen.impacts.base import HazardImpact, fill_template
from impactgen.impacts.flooding import Flooding
from impactgen.impacts.heat_labor import HeatLaborProductivity
from impactgen.impacts.tropical_cyclones import TropicalCyclones

IMPACT_TYPES = {
    "flooding": Flooding,
    "heat_labor_productivity": HeatLaborProductivity,
    "tropical_cyclones": TropicalCyclones,
}

__all__ = [
    "RegionRaster",
    "ProxyGrid",
    "CellwiseReducer",
    "accumulate_region_forcing",
    "is_valid_cell",
    "normalize_region_forcing",
    "valid_cell_mask",
    "HazardImpact",
    "fill_template",
    "Flooding",
    "HeatLaborProductivity",
    "TropicalCyclones",
    "IMPACT_TYPES",
]
