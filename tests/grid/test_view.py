"""Tests for strided views and lockstep traversal."""

import threading

import pytest
import numpy as np

pytestmark = pytest.mark.unit

from impactgen.contracts import ContractViolation, IncompatibleGridError
from impactgen.grid import (
    LockstepTraversal,
    Slice,
    StridedView,
    foreach_view,
    foreach_view_parallel,
    partition_rows,
)


class TestStridedView:
    """Test addressing and zero-copy access."""

    def test_from_array_indexing(self):
        data = np.arange(12, dtype=float).reshape(3, 4)
        view = StridedView.from_array(data)

        assert view.shape == (3, 4)
        assert view[2, 3] == 11.0
        np.testing.assert_array_equal(view.values, data)

    def test_writes_reach_buffer(self):
        data = np.zeros((2, 2))
        view = StridedView.from_array(data)
        view[1, 0] = 7.0
        view.values[0, 1] = 3.0

        assert data[1, 0] == 7.0
        assert data[0, 1] == 3.0

    def test_negative_strides(self):
        data = np.arange(12, dtype=float).reshape(3, 4)
        view = StridedView(data, Slice(8, 3, -4), Slice(3, 4, -1))

        np.testing.assert_array_equal(view.values, data[::-1, ::-1])
        assert view[0, 0] == 11.0

    def test_from_buffer_offset(self):
        chunk = np.arange(2 * 6, dtype=float)
        second = StridedView.from_buffer(chunk, 2, 3, offset=6)
        np.testing.assert_array_equal(second.values, [[6, 7, 8], [9, 10, 11]])

    def test_out_of_bounds_view_rejected(self):
        with pytest.raises(ContractViolation, match="exceeds buffer"):
            StridedView(np.zeros(4), Slice(0, 3, 2), Slice(0, 2, 1))

    def test_non_contiguous_rejected(self):
        data = np.zeros((4, 4))[:, ::2]
        with pytest.raises(ContractViolation, match="C-contiguous"):
            StridedView.from_array(data)

    def test_index_outside_view(self):
        view = StridedView.from_array(np.zeros((2, 2)))
        with pytest.raises(IndexError):
            view[2, 0]


class TestLockstep:
    """Test lockstep traversal over several views."""

    def test_visits_every_cell_once(self):
        a = StridedView.from_array(np.arange(6, dtype=float).reshape(2, 3))
        b = StridedView.from_array(np.arange(6, 12, dtype=float).reshape(2, 3))
        cells = [(i, j, va, vb) for i, j, (va, vb) in LockstepTraversal(a, b)]

        assert len(cells) == 6
        assert cells[0] == (0, 0, 0.0, 6.0)
        assert cells[-1] == (1, 2, 5.0, 11.0)

    def test_shape_mismatch(self):
        a = StridedView.from_array(np.zeros((2, 3)))
        b = StridedView.from_array(np.zeros((3, 2)))
        with pytest.raises(IncompatibleGridError, match="share one shape"):
            LockstepTraversal(a, b)

    def test_restartable(self):
        traversal = LockstepTraversal(StridedView.from_array(np.ones((2, 2))))
        assert len(list(traversal)) == len(list(traversal)) == len(traversal) == 4

    def test_foreach_early_abort(self):
        visited = []

        def visit(i, j, value):
            visited.append((i, j))
            return value < 2

        view = StridedView.from_array(np.arange(9, dtype=float).reshape(3, 3))
        assert foreach_view([view], visit) is False
        assert visited == [(0, 0), (0, 1), (0, 2)]

    def test_foreach_complete(self):
        view = StridedView.from_array(np.ones((3, 3)))
        assert foreach_view([view], lambda i, j, v: True) is True


class TestParallel:
    """Test row-partitioned parallel traversal."""

    @pytest.mark.parametrize("n_rows, n_parts", [(10, 3), (2, 8), (5, 1), (0, 4)])
    def test_partition_rows_covers_range(self, n_rows, n_parts):
        parts = partition_rows(n_rows, n_parts)
        rows = [r for a, b in parts for r in range(a, b)]
        assert rows == list(range(n_rows))
        assert len(parts) <= max(n_parts, 1)

    def test_parallel_writes_every_cell(self):
        src = np.arange(20, dtype=float).reshape(5, 4)
        dst = np.zeros((5, 4))
        dst_view = StridedView.from_array(dst)
        lock = threading.Lock()
        count = [0]

        def double(i, j, value, _):
            dst_view[i, j] = 2 * value
            with lock:
                count[0] += 1

        foreach_view_parallel((StridedView.from_array(src), dst_view), double, max_workers=3)

        np.testing.assert_array_equal(dst, 2 * src)
        assert count[0] == 20

    def test_parallel_propagates_errors(self):
        def fail(i, j, value):
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            foreach_view_parallel([StridedView.from_array(np.ones((2, 2)))], fail, max_workers=2)
