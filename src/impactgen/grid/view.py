"""Zero-copy strided views over raster buffers and lockstep traversal.

A :class:`StridedView` is a rectangular window over a flat numpy buffer,
described per axis by ``(begin, size, stride)`` in element units. It never
owns the buffer: the buffer (a static raster, or one time-chunk buffer of a
hazard stack) must outlive every view derived from it. Negative strides
represent an axis traversed in reverse, which is how descending latitude
axes are brought into a common iteration order.

Element ``(i, j)`` lives at::

    lat.begin + i * lat.stride + lon.begin + j * lon.stride

Several views over different buffers can be traversed in lockstep once
their shapes agree (which :func:`impactgen.grid.common.common_grid_view`
guarantees).
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import logging
import os
from typing import Callable, Iterator, Sequence

import numpy as np
from numpy.lib.stride_tricks import as_strided

from impactgen.contracts import ContractViolation, IncompatibleGridError, require

__all__ = [
    'Slice',
    'StridedView',
    'LockstepTraversal',
    'foreach_view',
    'foreach_view_parallel',
    'partition_rows',
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Slice:
    """One axis of a strided view: element offset, length and stride."""
    begin: int
    size: int
    stride: int

    def last(self) -> int:
        """Element offset of the last item (begin if empty)."""
        return self.begin + max(self.size - 1, 0) * self.stride


class StridedView:
    """Borrowed 2-D window ``(lat, lon)`` over a flat buffer.

    Parameters
    ----------
    buffer : np.ndarray
        C-contiguous backing array. It is flattened without copying, so
        writes through the view reach the original array.
    lat, lon : Slice
        Axis descriptors.

    Examples
    --------
    >>> data = np.arange(12, dtype=float).reshape(3, 4)
    >>> view = StridedView.from_array(data)
    >>> float(view[1, 2])
    6.0
    >>> flipped = StridedView(view.buffer, Slice(8, 3, -4), view.lon)
    >>> flipped.values[0].tolist()
    [8.0, 9.0, 10.0, 11.0]
    """

    __slots__ = ("buffer", "lat", "lon")

    def __init__(self, buffer: np.ndarray, lat: Slice, lon: Slice):
        require(
            isinstance(buffer, np.ndarray) and buffer.flags.c_contiguous,
            "StridedView requires a C-contiguous numpy buffer",
        )
        self.buffer = buffer.reshape(-1)
        self.lat = lat
        self.lon = lon
        if lat.size > 0 and lon.size > 0:
            lo, hi = self._extent()
            require(
                lo >= 0 and hi < self.buffer.size,
                f"View [{lo}, {hi}] exceeds buffer of {self.buffer.size} elements",
            )

    @classmethod
    def from_array(cls, array: np.ndarray) -> "StridedView":
        """Wrap a C-contiguous 2-D array as a full view."""
        require(array.ndim == 2, f"Expected a 2-D array, got {array.ndim} dims")
        lat_count, lon_count = array.shape
        return cls(array, Slice(0, lat_count, lon_count), Slice(0, lon_count, 1))

    @classmethod
    def from_buffer(cls, buffer: np.ndarray, lat_count: int, lon_count: int,
                    offset: int = 0) -> "StridedView":
        """Full ``(lat_count, lon_count)`` view starting at ``offset``.

        Used to address one time step inside a chunk buffer holding several
        consecutive rasters.
        """
        return cls(buffer, Slice(offset, lat_count, lon_count), Slice(0, lon_count, 1))

    @property
    def shape(self) -> tuple[int, int]:
        return (self.lat.size, self.lon.size)

    @property
    def size(self) -> int:
        return self.lat.size * self.lon.size

    def _extent(self) -> tuple[int, int]:
        start = self.lat.begin + self.lon.begin
        lat_span = (self.lat.size - 1) * self.lat.stride
        lon_span = (self.lon.size - 1) * self.lon.stride
        lo = start + min(0, lat_span) + min(0, lon_span)
        hi = start + max(0, lat_span) + max(0, lon_span)
        return lo, hi

    def _address(self, lat_index: int, lon_index: int) -> int:
        if not (0 <= lat_index < self.lat.size and 0 <= lon_index < self.lon.size):
            raise IndexError(f"({lat_index}, {lon_index}) outside view of shape {self.shape}")
        return (self.lat.begin + lat_index * self.lat.stride
                + self.lon.begin + lon_index * self.lon.stride)

    def __getitem__(self, index: tuple[int, int]):
        return self.buffer[self._address(*index)]

    def __setitem__(self, index: tuple[int, int], value) -> None:
        self.buffer[self._address(*index)] = value

    @property
    def values(self) -> np.ndarray:
        """Zero-copy numpy view of the window in iteration order."""
        if self.lat.size == 0 or self.lon.size == 0:
            return self.buffer[:0].reshape(self.shape)
        lo, hi = self._extent()
        base = self.buffer[lo:hi + 1]
        itemsize = self.buffer.itemsize
        arr = as_strided(
            base,
            shape=self.shape,
            strides=(abs(self.lat.stride) * itemsize, abs(self.lon.stride) * itemsize),
        )
        if self.lat.stride < 0:
            arr = arr[::-1, :]
        if self.lon.stride < 0:
            arr = arr[:, ::-1]
        return arr

    def __repr__(self):
        return f"StridedView(lat={self.lat}, lon={self.lon}, dtype={self.buffer.dtype})"


def _require_same_shape(views: Sequence[StridedView]) -> tuple[int, int]:
    require(len(views) > 0, "At least one view is required", ContractViolation)
    shape = views[0].shape
    for view in views[1:]:
        require(
            view.shape == shape,
            f"Views do not share one shape: {view.shape} != {shape}",
            IncompatibleGridError,
        )
    return shape


class LockstepTraversal:
    """Restartable row-major traversal over equally shaped views.

    Every iteration visits each ``(lat_index, lon_index)`` exactly once and
    yields ``(lat_index, lon_index, values)`` with one scalar per view.
    Values are read when a row is entered; write back through the views
    (``view[i, j] = v``) for cells that need updating.
    """

    def __init__(self, *views: StridedView):
        self.views = views
        self.shape = _require_same_shape(views)

    def __len__(self):
        return self.shape[0] * self.shape[1]

    def rows(self, start: int, stop: int) -> Iterator[tuple[int, int, tuple]]:
        arrays = [view.values for view in self.views]
        for lat_index in range(start, stop):
            rows = [arr[lat_index].tolist() for arr in arrays]
            for lon_index, values in enumerate(zip(*rows)):
                yield lat_index, lon_index, values

    def __iter__(self) -> Iterator[tuple[int, int, tuple]]:
        return self.rows(0, self.shape[0])


def foreach_view(views: Sequence[StridedView], func: Callable[..., bool]) -> bool:
    """Call ``func(lat_index, lon_index, *values)`` for every cell.

    A falsy return value aborts the whole traversal.

    Returns
    -------
    bool
        True if every cell was visited, False if ``func`` aborted.
    """
    for lat_index, lon_index, values in LockstepTraversal(*views):
        if not func(lat_index, lon_index, *values):
            logger.debug("Traversal aborted at (%d, %d)", lat_index, lon_index)
            return False
    return True


def partition_rows(n_rows: int, n_parts: int) -> list[tuple[int, int]]:
    """Split ``range(n_rows)`` into at most ``n_parts`` disjoint ranges."""
    n_parts = max(1, min(n_parts, n_rows))
    if n_rows == 0:
        return []
    bounds = np.linspace(0, n_rows, n_parts + 1).astype(int)
    return [(int(a), int(b)) for a, b in zip(bounds[:-1], bounds[1:]) if b > a]


def foreach_view_parallel(views: Sequence[StridedView], func: Callable[..., object],
                          max_workers: int | None = None) -> None:
    """Write-only variant of :func:`foreach_view` on a thread pool.

    Rows are split into disjoint partitions, so each cell is visited by
    exactly one worker. ``func`` must not read any other cell's output.
    Return values are ignored and there is no early abort. Exceptions
    raised by ``func`` propagate to the caller.
    """
    traversal = LockstepTraversal(*views)
    workers = max_workers or os.cpu_count() or 1
    partitions = partition_rows(traversal.shape[0], workers)

    def run(bounds):
        for lat_index, lon_index, values in traversal.rows(*bounds):
            func(lat_index, lon_index, *values)

    with ThreadPoolExecutor(max_workers=max(1, len(partitions))) as executor:
        list(executor.map(run, partitions))
