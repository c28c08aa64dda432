"""Tests for GeoGrid geometry, indexing and compatibility."""

import pytest
import numpy as np

pytestmark = pytest.mark.unit

from impactgen.contracts import AxisNotFoundError, FormatError
from impactgen.grid import GeoGrid, StridedView, read_geometry
from tests.helpers.rasters import axis, make_proxy_ds, source


def grid_with_step(step, count=10):
    return GeoGrid.from_axes(axis(0.0, step, count), axis(0.0, step, count))


class TestFromAxes:
    """Test geometry extraction from sampled axes."""

    def test_ascending_axes(self):
        grid = GeoGrid.from_axes(axis(-10.0, 0.5, 5), axis(100.0, 0.25, 8))

        assert grid.lat_min == -10.0
        assert grid.lat_max == -8.0
        assert grid.lat_stepsize == pytest.approx(0.5)
        assert grid.lat_count == 5
        assert grid.lon_stepsize == pytest.approx(0.25)
        assert grid.shape == (5, 8)
        assert grid.size == 40

    def test_descending_lat_keeps_sign(self):
        grid = GeoGrid.from_axes(axis(89.75, -0.5, 4), axis(0.0, 0.5, 4))

        assert grid.lat_stepsize == pytest.approx(-0.5)
        assert grid.lat_abs_stepsize == pytest.approx(0.5)
        assert grid.lat_min == pytest.approx(88.25)
        assert grid.lat_max == pytest.approx(89.75)

    def test_single_sample_fails(self):
        with pytest.raises(FormatError, match="Too few samples"):
            GeoGrid.from_axes([1.0], axis(0.0, 0.5, 4))

    def test_gap_fails(self):
        with pytest.raises(FormatError, match="gaps"):
            GeoGrid.from_axes([0.0, 0.5, 1.0, 2.0], axis(0.0, 0.5, 4))

    def test_zero_step_fails(self):
        with pytest.raises(FormatError, match="Invalid step"):
            GeoGrid.from_axes([1.0, 1.0, 1.0], axis(0.0, 0.5, 4))

    def test_small_jitter_accepted(self):
        grid = GeoGrid.from_axes([0.0, 0.5, 1.001, 1.5], axis(0.0, 0.5, 4))
        assert grid.lat_count == 4


class TestCompatibility:
    """Test the 1% step-size tolerance."""

    def test_one_percent_apart_compatible(self):
        assert grid_with_step(0.5).is_compatible(grid_with_step(0.505))

    def test_four_percent_apart_incompatible(self):
        assert not grid_with_step(0.5).is_compatible(grid_with_step(0.52))

    @pytest.mark.parametrize("a, b", [(0.5, 0.505), (0.5, 0.52), (0.25, 0.5), (1.0, 1.0)])
    def test_symmetric(self, a, b):
        ga, gb = grid_with_step(a), grid_with_step(b)
        assert ga.is_compatible(gb) == gb.is_compatible(ga)

    def test_orientation_ignored(self):
        ascending = GeoGrid.from_axes(axis(0.0, 0.5, 4), axis(0.0, 0.5, 4))
        descending = GeoGrid.from_axes(axis(1.5, -0.5, 4), axis(0.0, 0.5, 4))
        assert ascending.is_compatible(descending)


class TestIndexing:
    """Test coordinate to index mapping."""

    @pytest.mark.parametrize("lat_step", [0.5, -0.5])
    def test_round_trip(self, lat_step):
        start = 0.0 if lat_step > 0 else 4.5
        grid = GeoGrid.from_axes(axis(start, lat_step, 10), axis(-180.0, 0.5, 20))

        for i in range(grid.lat_count):
            assert grid.lat_index(grid.lat(i)) == i
        for j in range(grid.lon_count):
            assert grid.lon_index(grid.lon(j)) == j

    def test_point_inside_cell(self):
        grid = grid_with_step(0.5)
        assert grid.lat_index(1.2) == 2
        assert grid.lon_index(0.49) == 0

    def test_outside_returns_none(self):
        grid = grid_with_step(0.5)
        assert grid.lat_index(-0.1) is None
        assert grid.lat_index(5.0) is None
        assert grid.lon_index(float("nan")) is None

    def test_descending_storage_order(self):
        grid = GeoGrid.from_axes(axis(1.5, -0.5, 4), axis(0.0, 0.5, 4))
        assert grid.lat_index(1.5) == 0
        assert grid.lat_index(0.0) == 3
        np.testing.assert_allclose(grid.lat_values(), [1.5, 1.0, 0.5, 0.0])


class TestWindow:
    """Test clipping a view to a bounding box."""

    def test_window_subset(self):
        grid = grid_with_step(1.0, count=4)
        data = np.arange(16, dtype=float).reshape(4, 4)
        view = grid.window(StridedView.from_array(data), 1.0, 2.0, 0.0, 1.0, 10, 10)

        np.testing.assert_array_equal(view.values, [[4, 5], [8, 9]])

    def test_window_descending_iterates_from_minimum(self):
        grid = GeoGrid.from_axes(axis(3.0, -1.0, 4), axis(0.0, 1.0, 4))
        data = np.arange(16, dtype=float).reshape(4, 4)
        view = grid.window(StridedView.from_array(data), 0.0, 3.0, 0.0, 3.0, 4, 4)

        np.testing.assert_array_equal(view.values, data[::-1])

    def test_window_capped(self):
        grid = grid_with_step(1.0, count=4)
        data = np.zeros((4, 4))
        view = grid.window(StridedView.from_array(data), 0.0, 3.0, 0.0, 3.0, 2, 3)
        assert view.shape == (2, 3)

    def test_window_outside_fails(self):
        grid = grid_with_step(1.0, count=4)
        with pytest.raises(FormatError, match="outside grid"):
            grid.window(StridedView.from_array(np.zeros((4, 4))), 0.0, 9.0, 0.0, 1.0, 4, 4)


class TestReadGeometry:
    """Test geometry extraction from a raster source."""

    def test_lat_lon_names(self):
        grid = read_geometry(source(make_proxy_ds()))
        assert grid.shape == (4, 4)
        assert grid.lat_stepsize == pytest.approx(0.5)

    def test_long_names(self):
        ds = make_proxy_ds(dims=("latitude", "longitude"))
        assert read_geometry(source(ds)).shape == (4, 4)

    def test_missing_axis(self):
        ds = make_proxy_ds().rename({"lon": "easting"})
        with pytest.raises(AxisNotFoundError, match="No axis"):
            read_geometry(source(ds))
