"""Tropical cyclone wind events.

The wind speed file stacks one ``(lat, lon)`` field per event as
``(realization, year, event, lat, lon)``, with the number of events of
every realization and year in an ``(realization, year)`` count variable and
the calendar year of every year index in ``year``.

Each event hits all cells with ``wind >= threshold``. Its forcing is the
unaffected share of the proxy in every region; it lasts as many days as a
storm moving at ``velocity`` km/h needs to cross the latitude extent of the
hit cells, and starts on a random day of its basin's season. Every day it
lasts receives the forcing, combined with other events by addition.
"""

import logging
import math

import numpy as np

from impactgen.contracts import FormatError, IncompatibleGridError, require
from impactgen.contracts.raster import expected_layouts
from impactgen.forcing import AgentForcing, ForcingCombination, ForcingSeries, ReferenceTime
from impactgen.grid import GeoGrid, GridView
from impactgen.grid.geogrid import read_geometry
from impactgen.impacts.base import HazardImpact, fill_template
from impactgen.impacts.proxied import ProxyGrid
from impactgen.impacts.reduction import normalize_region_forcing
from impactgen.io.source import MISSING_THRESHOLD, RasterSource, XarraySource, check_dimensions

__all__ = ['TropicalCyclones', 'haversine_distance', 'season_days']

logger = logging.getLogger(__name__)

EARTH_RADIUS = 6371.0  # km
DAY = 86400
# day of year at which every month starts, and the end of the year
MONTH_STARTS = (0, 31, 59, 90, 120, 151, 181, 212, 243, 273, 304, 334, 365)


def haversine_distance(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """Great circle distance in km between two points given in degrees."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    a = (math.sin((phi2 - phi1) / 2) ** 2
         + math.cos(phi1) * math.cos(phi2) * math.sin(math.radians(lon2 - lon1) / 2) ** 2)
    return 2 * EARTH_RADIUS * math.asin(math.sqrt(a))


def season_days(season) -> tuple[int, int]:
    """Day-of-year range ``[first, last)`` of an inclusive month range.

    A season ending in an earlier month than it starts runs into the next
    year, so ``last`` may exceed 365.

    Examples
    --------
    >>> season_days(SeasonConfig(from_=11, to=2))
    (304, 424)
    """
    first = MONTH_STARTS[season.from_ - 1]
    last = MONTH_STARTS[season.to]
    if season.to < season.from_:
        last += 365
    return first, last


class TropicalCyclones(HazardImpact):
    """Wind speed events to daily forcing.

    The random number generator is seeded once per module, so repeated
    runs with the same ``seed`` place every event on the same days.
    """

    name = "tropical_cyclones"
    hazard_field = "wind_speed"

    def __init__(self, config, base_forcing: AgentForcing):
        super().__init__(config, base_forcing)
        self.rng = np.random.default_rng(config.seed)
        self.proxy_blocks = None
        self.block_labels = None

    def season(self, template_vars) -> tuple[int, int]:
        """Day range of the season of the configured or templated basin.

        Raises
        ------
        FormatError
            If no basin is given or the basin has no season.
        """
        basin = fill_template(self.config.basin or "[[basin]]", template_vars)
        if basin not in self.config.seasons:
            raise FormatError(f"{self.name}: No season for basin '{basin}'")
        return season_days(self.config.seasons[basin])

    def prepare_blocks(self, grid: GeoGrid, proxy: ProxyGrid) -> None:
        """Linearize the proxy into region blocks over the wind grid."""
        self.region_raster.calc_region_blocks(grid)
        proxy_blocks = self.region_raster.linearize(proxy.grid_view())
        with np.errstate(invalid="ignore"):
            exposed = (proxy_blocks > 0) & (proxy_blocks <= MISSING_THRESHOLD)
        self.proxy_blocks = np.where(exposed, proxy_blocks, 0.0)
        self.block_labels = self.region_raster.block_labels()

    def affected(self, wind: np.ndarray, grid: GeoGrid) -> np.ndarray:
        """Proxy per label of the cells at or above the threshold."""
        wind_blocks = self.region_raster.linearize(GridView(grid.view(wind), grid))
        with np.errstate(invalid="ignore"):
            hit = (wind_blocks >= self.config.threshold) & (wind_blocks <= MISSING_THRESHOLD)
        return np.bincount(self.block_labels[hit], weights=self.proxy_blocks[hit],
                           minlength=self.region_raster.n_labels)

    def duration(self, wind: np.ndarray, grid: GeoGrid) -> int | None:
        """Days the event lasts, ``None`` if no cell reaches the threshold."""
        with np.errstate(invalid="ignore"):
            hit = ((wind >= self.config.threshold)
                   & (wind <= MISSING_THRESHOLD)).reshape(grid.shape)
        rows = np.flatnonzero(hit.any(axis=1))
        if rows.size == 0:
            return None
        lon = grid.lon(int(np.flatnonzero(hit.any(axis=0))[0]))
        distance = haversine_distance(lon, grid.lat(int(rows[0])), lon, grid.lat(int(rows[-1])))
        return math.ceil(distance / self.config.velocity / 24)

    def read_counts(self, source: RasterSource, filename: str) -> np.ndarray:
        counts_variable = self.config.events_count_variable
        check_dimensions(source, counts_variable, ("realization", "year"))
        realizations = source.shape(counts_variable)[0]
        require(self.config.realization < realizations,
                f"{filename}: Chosen realization {self.config.realization} not present",
                FormatError)
        return source.get_array(counts_variable,
                                indexers={"realization": self.config.realization})

    def year_index(self, source: RasterSource, filename: str, year: int) -> int:
        check_dimensions(source, "year", ("year",))
        matches = np.flatnonzero(source.get_axis_values("year") == year)
        require(matches.size > 0, f"{filename}: Year {year} not present", FormatError)
        return int(matches[0])

    def join(self, reference_time: ReferenceTime, template_vars=None) -> ForcingSeries:
        """Place every event of the configured years into one series.

        Raises
        ------
        FormatError
            If a file, variable, year or realization is missing, the basin
            has no season, or an event lasts longer than its season.
        IncompatibleGridError
            If the wind resolution does not match the iso-raster.
        """
        template_vars = template_vars or {}
        filename = fill_template(self.hazard.file, template_vars)
        variable = self.hazard.variable
        first_day, last_day = self.season(template_vars)
        series = ForcingSeries(self.base_forcing, reference_time)

        with XarraySource.open(filename) as source:
            check_dimensions(source, variable, *expected_layouts("realization", "year", "event"))
            counts = self.read_counts(source, filename)
            grid = read_geometry(source)
            require(
                self.region_raster.grid.is_compatible(grid),
                f"{filename}: Forcing and ISO raster not compatible in raster resolution",
                IncompatibleGridError,
            )
            proxy = self.read_proxy(template_vars)
            self.prepare_blocks(grid, proxy)

            for year in range(self.config.years.from_, self.config.years.to + 1):
                y = self.year_index(source, filename, year)
                events = int(counts[y])
                logger.info("%s: %s, year %d, %d events", self.name, filename, year, events)
                year_start = ReferenceTime.year(year)
                for wind in self.stream_events(source, variable, grid, y, events):
                    duration = self.duration(wind, grid)
                    if duration is None:
                        continue
                    require(duration <= last_day - first_day,
                            f"{filename}: Event of {duration} days exceeds season",
                            FormatError)
                    start = int(self.rng.integers(first_day, last_day - duration, endpoint=True))

                    forcing = self.base_forcing.copy()
                    normalize_region_forcing(forcing, self.affected(wind, grid), proxy.total_proxy,
                                             self.region_raster, self.sectors,
                                             self.lower, self.upper)
                    for day in range(start, start + duration):
                        series.insert_forcing(year_start + day * DAY, forcing,
                                              ForcingCombination.ADD)

        logger.debug("%s: %d days with events", self.name, len(series))
        return series

    def stream_events(self, source: RasterSource, variable: str, grid: GeoGrid,
                      year_index: int, events: int):
        """Yield the flat wind field of every event, reading chunk by chunk."""
        chunk_size = self.config.chunk_size
        for start in range(0, events, chunk_size):
            stop = min(start + chunk_size, events)
            buffer = source.get_array(variable, indexers={
                "realization": self.config.realization,
                "year": year_index,
                "event": slice(start, stop),
            })
            for offset in range(stop - start):
                yield buffer[offset * grid.size:(offset + 1) * grid.size]
