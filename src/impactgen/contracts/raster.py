"""Raster layout contracts.

Enforces that variables read from raster sources have the dimension layout
the reduction engine expects: ``(lat, lon)`` for static rasters and
``(time, lat, lon)`` for hazard stacks, under either the short or the long
axis names.
"""

from typing import Sequence

from impactgen.contracts.base import require
from impactgen.contracts.failure import FormatError

LATLON_LAYOUTS = (("lat", "lon"), ("latitude", "longitude"), ("y", "x"))


def expected_layouts(*leading: str) -> list[tuple[str, ...]]:
    """Return accepted dimension layouts with the given leading dims."""
    return [tuple(leading) + layout for layout in LATLON_LAYOUTS]


def assert_dimensions(dims: Sequence[str], candidates: Sequence[Sequence[str]],
                      label: str) -> None:
    """Enforce that ``dims`` matches one of ``candidates`` exactly.

    Parameters
    ----------
    dims : sequence of str
        Dimension names of the variable, in order.

    candidates : sequence of sequence of str
        Accepted layouts.

    label : str
        ``"<file> - <variable>"`` prefix for the error message.

    Raises
    ------
    FormatError
        If no candidate matches.
    """
    dims = tuple(dims)
    require(
        any(dims == tuple(c) for c in candidates),
        f"{label}: Unexpected dimensions {dims}",
        FormatError,
    )


def assert_latlon(dims: Sequence[str], label: str, *leading: str) -> None:
    """Enforce a ``(*leading, lat, lon)`` layout."""
    assert_dimensions(dims, expected_layouts(*leading), label)
