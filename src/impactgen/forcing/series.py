"""Time-indexed forcing series."""

import logging
from typing import Iterator, Optional

import numpy as np
import xarray as xr

from impactgen.contracts import (
    IncompatibleReferenceTimeError,
    TimeAlreadySetError,
    UnrelatedForcingError,
    require,
)
from impactgen.forcing.agent_forcing import AgentForcing, ForcingCombination
from impactgen.forcing.reference_time import ReferenceTime

__all__ = ['ForcingSeries']

logger = logging.getLogger(__name__)


class ForcingSeries:
    """Sparse mapping from time to forcing.

    Entries are keyed by the integer offset of their timestamp under
    ``reference_time``; all public methods take and return absolute
    timestamps (UTC epoch seconds). Timestamps that fall into the same unit
    of the reference time share one entry.

    Parameters
    ----------
    base_forcing : AgentForcing
        Template copied into every freshly inserted entry.
    reference_time : ReferenceTime
        Encoding of the keys.

    Examples
    --------
    >>> series = ForcingSeries(AgentForcing(["AGRI"], ["USA"], fill=1.0),
    ...                        ReferenceTime.parse("days since 2000-01-01"))
    >>> forcing = series.insert_forcing(ReferenceTime.year(2000))
    >>> forcing["AGRI", "USA"] = 0.9
    >>> len(series)
    1
    """

    def __init__(self, base_forcing: AgentForcing, reference_time: ReferenceTime):
        self.base_forcing = base_forcing
        self.reference_time = reference_time
        self._data: dict[int, AgentForcing] = {}

    def insert_forcing(self, time: int, forcing: Optional[AgentForcing] = None,
                       combination: Optional[ForcingCombination] = None) -> AgentForcing:
        """Insert an entry at ``time`` and return it.

        Without ``forcing`` a copy of the base forcing is inserted and the
        key must be new. With ``forcing`` and ``combination``, ``forcing``
        is merged into an existing entry or inserted as a copy.

        Raises
        ------
        TimeAlreadySetError
            If no ``forcing`` is given and ``time`` already has an entry.
        UnrelatedForcingError
            If ``forcing`` does not share the index of the base forcing.
        """
        key = self.reference_time.reference(time)
        if forcing is None:
            require(key not in self._data, "Time already set", TimeAlreadySetError)
            entry = self._data[key] = self.base_forcing.copy()
            return entry

        require(combination is not None, "Combination required to merge a forcing")
        require(forcing.is_related(self.base_forcing), "Forcings are not related", UnrelatedForcingError)
        entry = self._data.get(key)
        if entry is None:
            entry = self._data[key] = forcing.copy()
        else:
            entry.include(forcing, combination)
        return entry

    def get_forcing(self, time: int) -> AgentForcing:
        """Entry at ``time``; raises KeyError if absent."""
        return self._data[self.reference_time.reference(time)]

    def get_sorted_times(self) -> list[int]:
        return sorted(self.reference_time.unreference(k) for k in self._data)

    def include(self, other: "ForcingSeries", combination: ForcingCombination) -> None:
        """Merge all entries of ``other`` into this series.

        Entries are re-keyed under this series' reference time. Present
        entries are combined, absent ones are copied.

        Raises
        ------
        IncompatibleReferenceTimeError
            If the accuracies of the reference times differ.
        """
        require(
            self.reference_time.compatible_with(other.reference_time),
            "Incompatible accuracies",
            IncompatibleReferenceTimeError,
        )
        for key, forcing in other._data.items():
            time = other.reference_time.unreference(key)
            self.insert_forcing(time, forcing, combination)
        logger.debug("Included %d entries, series now holds %d", len(other), len(self))

    def items(self) -> Iterator[tuple[int, AgentForcing]]:
        """``(time, forcing)`` pairs in time order."""
        for time in self.get_sorted_times():
            yield time, self.get_forcing(time)

    def __len__(self):
        return len(self._data)

    def __contains__(self, time: int) -> bool:
        return self.reference_time.reference(time) in self._data

    def to_dataarray(self) -> xr.DataArray:
        """Stack all entries into a ``(time, sector, region)`` array.

        The ``time`` coordinate holds integer keys, with the matching
        ``units`` attribute.
        """
        times = self.get_sorted_times()
        shape = (len(times),) + self.base_forcing.shape
        values = np.empty(shape, dtype=np.float64)
        for i, t in enumerate(times):
            values[i] = self.get_forcing(t).data
        keys = [self.reference_time.reference(t) for t in times]
        time = xr.Variable("time", np.asarray(keys, dtype=np.int64),
                           attrs={"units": self.reference_time.to_units(), "calendar": "standard"})
        return xr.DataArray(
            values,
            dims=("time", "sector", "region"),
            coords={
                "time": time,
                "sector": list(self.base_forcing.sectors),
                "region": list(self.base_forcing.regions),
            },
            name="agent_forcing",
        )

    def __repr__(self):
        return f"ForcingSeries({len(self)} entries, {self.reference_time})"
