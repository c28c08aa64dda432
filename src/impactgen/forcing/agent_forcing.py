"""Sector x region forcing matrix.

An :class:`AgentForcing` holds one forcing value per (sector, region) pair,
on the "fraction left unaffected" scale: 1 means no impact, 0 means total
loss. Forcings of one run all derive from a single template and share its
:class:`ForcingIndex`. Only forcings sharing the identical index object can
be combined; equal contents are not enough.
"""

from enum import Enum
import logging
from typing import Sequence

import numpy as np

from impactgen.contracts import FormatError, UnrelatedForcingError, require

__all__ = ['ForcingCombination', 'ForcingIndex', 'AgentForcing']

logger = logging.getLogger(__name__)


class ForcingCombination(Enum):
    """Element-wise rule for merging two forcings."""
    ADD = "add"
    MAX = "max"
    MIN = "min"
    MULT = "mult"

    @classmethod
    def parse(cls, name: str) -> "ForcingCombination":
        """Parse a combination name as used in settings.

        Accepts ``add``/``addition``, ``max``/``maximum``,
        ``min``/``minimum`` and ``mult``/``multiplication``.
        """
        aliases = {
            "add": cls.ADD, "addition": cls.ADD,
            "max": cls.MAX, "maximum": cls.MAX,
            "min": cls.MIN, "minimum": cls.MIN,
            "mult": cls.MULT, "multiplication": cls.MULT,
        }
        key = str(name).strip().lower()
        if key not in aliases:
            raise FormatError(f"Unknown forcing combination '{name}'")
        return aliases[key]

    def apply(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        if self is ForcingCombination.ADD:
            # losses add up, total loss is capped at 100%
            return np.maximum(a + b - 1, 0.0)
        if self is ForcingCombination.MAX:
            return np.maximum(a, b)
        if self is ForcingCombination.MIN:
            return np.minimum(a, b)
        return a * b


class ForcingIndex:
    """Name to position mappings for sectors and regions.

    Identity of this object is what makes two forcings related.
    """

    def __init__(self, sectors: Sequence[str], regions: Sequence[str]):
        self.sectors = tuple(sectors)
        self.regions = tuple(regions)
        require(len(set(self.sectors)) == len(self.sectors), "Duplicate sector names")
        require(len(set(self.regions)) == len(self.regions), "Duplicate region names")
        self.sector_index = {name: i for i, name in enumerate(self.sectors)}
        self.region_index = {name: i for i, name in enumerate(self.regions)}

    @property
    def shape(self) -> tuple[int, int]:
        return (len(self.sectors), len(self.regions))

    def resolve(self, sector, region) -> tuple[int, int]:
        """Positions of a (sector, region) pair given by index or name."""
        if isinstance(sector, str):
            sector = self.sector_index[sector]
        if isinstance(region, str):
            region = self.region_index[region]
        return sector, region

    def __repr__(self):
        return f"ForcingIndex({len(self.sectors)} sectors, {len(self.regions)} regions)"


class AgentForcing:
    """Dense forcing matrix, sector-major.

    Parameters
    ----------
    sectors, regions : sequence of str
        Names, fixing the position of each sector and region.

    Examples
    --------
    >>> forcing = AgentForcing(["AGRI", "MANU"], ["USA", "CHN"])
    >>> forcing["MANU", "CHN"] = 0.8
    >>> forcing[1, 1]
    0.8
    """

    def __init__(self, sectors: Sequence[str] = (), regions: Sequence[str] = (),
                 *, index: ForcingIndex = None, fill: float = 0.0):
        self.index = index if index is not None else ForcingIndex(sectors, regions)
        self._data = np.full(self.index.shape, fill, dtype=np.float64)

    @classmethod
    def from_index(cls, index: ForcingIndex, fill: float = 0.0) -> "AgentForcing":
        """New forcing related to every other forcing built on ``index``."""
        return cls(index=index, fill=fill)

    @property
    def sectors(self) -> tuple[str, ...]:
        return self.index.sectors

    @property
    def regions(self) -> tuple[str, ...]:
        return self.index.regions

    @property
    def data(self) -> np.ndarray:
        return self._data

    @property
    def shape(self) -> tuple[int, int]:
        return self._data.shape

    def __getitem__(self, key) -> float:
        return float(self._data[self.index.resolve(*key)])

    def __setitem__(self, key, value: float) -> None:
        self._data[self.index.resolve(*key)] = value

    def is_related(self, other: "AgentForcing") -> bool:
        return self.index is other.index

    def include(self, other: "AgentForcing", combination: ForcingCombination) -> None:
        """Merge ``other`` into this forcing in place.

        Raises
        ------
        UnrelatedForcingError
            If the forcings do not share the same index object.
        """
        require(self.is_related(other), "Forcings are not related", UnrelatedForcingError)
        self._data[...] = combination.apply(self._data, other._data)

    def copy(self) -> "AgentForcing":
        """Independent values, shared index."""
        result = AgentForcing.from_index(self.index)
        result._data[...] = self._data
        return result

    def __repr__(self):
        return f"AgentForcing({self.index})"
