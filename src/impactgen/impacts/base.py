"""Common driver of gridded hazard modules.

A hazard module turns one time-stacked hazard raster into a
:class:`~impactgen.forcing.series.ForcingSeries`. :class:`HazardImpact`
owns everything that is the same for every hazard: reading the iso-raster
once, reading the proxy for every join, streaming the hazard in chunks of
time steps and inserting one forcing per step. Subclasses supply the
per-step reduction in :meth:`HazardImpact.step`.
"""

import logging
import re
from typing import Iterator, Mapping, Optional

from impactgen.contracts import FormatError, IncompatibleGridError, require
from impactgen.contracts.raster import expected_layouts
from impactgen.forcing import AgentForcing, ForcingSeries, ReferenceTime
from impactgen.grid import GeoGrid, StridedView
from impactgen.grid.geogrid import read_geometry
from impactgen.impacts.gridded import RegionRaster
from impactgen.impacts.proxied import ProxyGrid
from impactgen.impacts.reduction import CellwiseReducer
from impactgen.io.source import RasterSource, XarraySource, check_dimensions
from impactgen.io.time_variable import TimeVariable

__all__ = ['HazardImpact', 'fill_template']

logger = logging.getLogger(__name__)

_TEMPLATE_KEY = re.compile(r"\[\[(.*?)\]\]")


def fill_template(template: str, variables: Mapping[str, object],
                  default: Optional[str] = None) -> str:
    """Replace every ``[[key]]`` in ``template`` by ``variables[key]``.

    Raises
    ------
    FormatError
        If a key is missing and no ``default`` is given.

    Examples
    --------
    >>> fill_template("flood_[[year]].nc", {"year": 2003})
    'flood_2003.nc'
    """
    def replace(match):
        key = match.group(1)
        if key in variables:
            return str(variables[key])
        if default is not None:
            return default
        raise FormatError(f"Variable '{key}' not found for '{template}'")

    return _TEMPLATE_KEY.sub(replace, template)


class HazardImpact:
    """Base of all gridded hazard modules.

    Parameters
    ----------
    config : pydantic model
        Resolved impact configuration (see :mod:`impactgen.schemas.internal`).
    base_forcing : AgentForcing
        Template of the run; every forcing produced is related to it.
    """

    name = "hazard"
    hazard_field = None
    lower = 0.0
    upper = 1.0

    def __init__(self, config, base_forcing: AgentForcing):
        self.config = config
        self.base_forcing = base_forcing
        self.sectors = self.select_sectors()
        with XarraySource.open(config.isoraster.file) as source:
            self.region_raster = RegionRaster.read(
                source, config.isoraster.variable, base_forcing.regions,
                index_variable=config.isoraster.index,
                verbose=config.isoraster.verbose or config.verbose,
            )

    def select_sectors(self) -> list[int]:
        """Sector indices this hazard writes to; all sectors by default."""
        names = getattr(self.config, "sectors", None)
        if not names:
            return list(range(len(self.base_forcing.sectors)))
        return [self.sector_index(name) for name in names]

    def sector_index(self, name: str) -> int:
        index = self.base_forcing.index.sector_index
        if name not in index:
            raise FormatError(f"{self.name}: Unknown sector '{name}'")
        return index[name]

    @property
    def hazard(self):
        return getattr(self.config, self.hazard_field)

    def read_proxy(self, template_vars: Mapping[str, object]) -> ProxyGrid:
        filename = fill_template(self.config.proxy.file, template_vars)
        with XarraySource.open(filename) as source:
            return ProxyGrid.read(source, self.config.proxy.variable, self.region_raster,
                                  verbose=self.config.proxy.verbose or self.config.verbose)

    def stream(self, source: RasterSource, variable: str, grid: GeoGrid,
               steps: int) -> Iterator[tuple[int, StridedView]]:
        """Yield ``(t, view)`` for every time step, reading chunk by chunk.

        A chunk buffer is only replaced once all views into it have been
        handed out and processed.
        """
        chunk_size = self.config.chunk_size
        for start in range(0, steps, chunk_size):
            stop = min(start + chunk_size, steps)
            buffer = source.get_array(variable, slice(start, stop))
            for offset in range(stop - start):
                yield start + offset, grid.view(buffer, offset * grid.size)

    def join(self, reference_time: ReferenceTime,
             template_vars: Optional[Mapping[str, object]] = None) -> ForcingSeries:
        """Compute the forcing series of one hazard file.

        ``template_vars`` fill the ``[[key]]`` placeholders of the hazard
        and proxy file names.

        Raises
        ------
        FormatError
            If a file, variable, axis or time unit is missing or malformed.
        IncompatibleGridError
            If the hazard resolution does not match the iso-raster.
        """
        template_vars = template_vars or {}
        filename = fill_template(self.hazard.file, template_vars)
        variable = self.hazard.variable
        series = ForcingSeries(self.base_forcing, reference_time)

        with XarraySource.open(filename) as source:
            check_dimensions(source, variable, *expected_layouts("time"))
            times = TimeVariable.read(source, self.config.time_shift)
            grid = read_geometry(source)
            require(
                self.region_raster.grid.is_compatible(grid),
                f"{filename}: Forcing and ISO raster not compatible in raster resolution",
                IncompatibleGridError,
            )
            reducer = CellwiseReducer(self.region_raster, self.read_proxy(template_vars),
                                      partitions=self.config.partitions)
            self.prepare(grid, filename)

            logger.info("%s: %s, %d time steps", self.name, filename, len(times))
            for t, view in self.stream(source, variable, grid, len(times)):
                forcing = series.insert_forcing(times[t])
                self.step(reducer, forcing, view, grid)

        self.finish(grid)
        return series

    def prepare(self, grid: GeoGrid, filename: str) -> None:
        """Hook run once the hazard grid of a join is known."""

    def finish(self, grid: GeoGrid) -> None:
        """Hook run after the last time step of a join."""

    def step(self, reducer: CellwiseReducer, forcing: AgentForcing,
             hazard_view: StridedView, hazard_grid: GeoGrid) -> None:
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}(sectors={self.sectors})"
