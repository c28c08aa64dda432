"""Decoding of the ``time`` axis of hazard files."""

import logging
from typing import Iterator

import numpy as np

from impactgen.forcing.reference_time import ReferenceTime
from impactgen.io.source import RasterSource

__all__ = ['TimeVariable']

logger = logging.getLogger(__name__)


class TimeVariable:
    """Absolute timestamps (UTC epoch seconds) of every time step.

    Parameters
    ----------
    times : sequence of int
        Absolute timestamps.
    reference : ReferenceTime
        Encoding found in the file's ``units`` attribute.
    """

    def __init__(self, times, reference: ReferenceTime):
        self.times = np.asarray(times, dtype=np.int64)
        self.reference = reference

    @classmethod
    def read(cls, source: RasterSource, time_shift: int = 0,
             name: str = "time") -> "TimeVariable":
        """Read and decode ``name`` from ``source``.

        Parameters
        ----------
        time_shift : int
            Offset in file units added to every raw value before decoding.

        Raises
        ------
        FormatError
            If the variable or its ``units`` attribute is missing or the
            units cannot be parsed.
        """
        raw = source.get_axis_values(name)
        reference = ReferenceTime.parse(source.get_attribute(name, "units"))
        times = [reference.unreference(int(t) + time_shift) for t in raw]
        logger.debug("%s: %d time steps, %s", source.filename, len(times), reference)
        return cls(times, reference)

    def __len__(self):
        return self.times.size

    def __getitem__(self, index: int) -> int:
        return int(self.times[index])

    def __iter__(self) -> Iterator[int]:
        return (int(t) for t in self.times)
