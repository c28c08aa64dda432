"""netCDF writer for the merged forcing series of a run.

The file holds one variable ``agent_forcing(time, sector, region)``
(float32), the integer ``time`` axis with ``units``/``calendar`` attributes
under the run's reference time, string ``sector`` and ``region``
coordinates, and ``created_at``, ``created_with``, ``impactgen_version``
and ``settings`` global attributes.
"""

from datetime import datetime, timezone
import logging
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import xarray as xr

from impactgen import __version__
from impactgen.contracts import ContractViolation, require
from impactgen.forcing import AgentForcing, ForcingCombination, ForcingIndex, ForcingSeries, ReferenceTime

__all__ = ['ForcingOutput']

logger = logging.getLogger(__name__)


class ForcingOutput:
    """Collects hazard series into one output series and writes it.

    Regions and sectors are added first; :meth:`open` then fixes the
    forcing index every hazard module of the run shares.

    Parameters
    ----------
    filename : str or Path
        Output file.
    reference_time : ReferenceTime
        Key encoding of the output series.
    combination : ForcingCombination
        How overlapping hazard forcings are merged.
    settings : str, optional
        Serialized run settings stored as a global attribute.

    Examples
    --------
    >>> output = ForcingOutput("forcing.nc", ReferenceTime.parse("days since 2000-01-01"),
    ...                        ForcingCombination.ADD)
    >>> output.add_regions(["USA", "CHN"])
    >>> output.add_sectors(["AGRI", "MANU"])
    >>> output.open()
    >>> template = output.prepare_forcing()
    """

    def __init__(self, filename, reference_time: ReferenceTime,
                 combination: ForcingCombination, settings: str = ""):
        self.filename = Path(filename)
        self.reference_time = reference_time
        self.combination = combination
        self.settings = settings
        self.regions: list[str] = []
        self.sectors: list[str] = []
        self.series: Optional[ForcingSeries] = None

    def add_regions(self, names: Sequence[str]) -> None:
        require(self.series is None, "Cannot add regions after opening", ContractViolation)
        self.regions.extend(names)

    def add_sectors(self, names: Sequence[str]) -> None:
        require(self.series is None, "Cannot add sectors after opening", ContractViolation)
        self.sectors.extend(names)

    def open(self) -> None:
        """Fix regions and sectors and start the output series.

        The base forcing is all ones, i.e. no impact.
        """
        index = ForcingIndex(self.sectors, self.regions)
        self.series = ForcingSeries(AgentForcing.from_index(index, fill=1.0), self.reference_time)
        logger.debug("Output opened: %d sectors, %d regions", len(self.sectors), len(self.regions))

    def _require_open(self) -> None:
        require(self.series is not None, "Output not opened", ContractViolation)

    def prepare_forcing(self) -> AgentForcing:
        """Template for hazard modules, related to the output series."""
        self._require_open()
        return self.series.base_forcing.copy()

    def include_forcing(self, series: ForcingSeries) -> None:
        """Merge a hazard series with the configured combination."""
        self._require_open()
        self.series.include(series, self.combination)

    def to_dataset(self) -> xr.Dataset:
        self._require_open()
        forcing = self.series.to_dataarray().astype(np.float32)
        ds = forcing.to_dataset()
        ds.attrs["created_at"] = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        ds.attrs["created_with"] = "impactgen"
        ds.attrs["impactgen_version"] = __version__
        ds.attrs["settings"] = self.settings
        return ds

    def write(self, path=None) -> Path:
        """Write the output series to ``path`` (default: ``filename``)."""
        path = Path(path) if path is not None else self.filename
        path.parent.mkdir(parents=True, exist_ok=True)
        ds = self.to_dataset()
        encoding = {"agent_forcing": {"zlib": True, "complevel": 9}}
        ds.to_netcdf(path, encoding=encoding)
        logger.info("Saved forcing NetCDF: %s (%d time steps)", path, ds.sizes["time"])
        return path
