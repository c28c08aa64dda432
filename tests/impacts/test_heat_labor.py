"""Tests for the heat labor productivity hazard module."""

import pytest
import numpy as np

pytestmark = pytest.mark.unit

from impactgen.forcing import ReferenceTime
from impactgen.impacts import HeatLaborProductivity

Y2000 = ReferenceTime.year(2000)


class TestWeight:
    """Test the per-sector loss curve."""

    def test_linear_above_threshold_saturating(self, heat_labor_config, write_hazard, base_forcing):
        path = write_hazard(np.full((1, 4, 4), 30.0))
        impact = HeatLaborProductivity(heat_labor_config(path), base_forcing)
        temperature = np.array([[20.0, 27.0, 29.0, 40.0]])
        valid = np.ones_like(temperature, dtype=bool)

        weights = impact.weight(temperature, valid)

        assert weights.shape == (2, 1, 4)
        np.testing.assert_allclose(weights[0], [[0.0, 0.0, 0.2, 1.0]])
        np.testing.assert_allclose(weights[1], [[0.0, 0.0, 1.0, 1.0]])


class TestJoin:
    """Test day temperatures into a forcing series."""

    def test_per_sector_forcing(self, heat_labor_config, write_hazard, base_forcing, reference_time):
        path = write_hazard(np.full((1, 4, 4), 30.0))
        impact = HeatLaborProductivity(heat_labor_config(path), base_forcing)

        forcing = impact.join(reference_time).get_forcing(Y2000)

        np.testing.assert_allclose(forcing.data[0], 0.7)
        np.testing.assert_allclose(forcing.data[1], 0.0)

    def test_unlisted_sector_untouched(self, heat_labor_config, write_hazard,
                                       base_forcing, reference_time):
        path = write_hazard(np.full((1, 4, 4), 30.0))
        config = heat_labor_config(path, sectors={"MANU": 0.1})

        forcing = HeatLaborProductivity(config, base_forcing).join(reference_time).get_forcing(Y2000)

        np.testing.assert_allclose(forcing.data, [[1.0, 1.0], [0.7, 0.7]])

    def test_regional_temperatures(self, heat_labor_config, write_hazard,
                                   base_forcing, reference_time):
        temperature = np.full((1, 4, 4), 25.0)
        temperature[0, :2, :2] = 32.0
        path = write_hazard(temperature)

        forcing = HeatLaborProductivity(heat_labor_config(path), base_forcing) \
            .join(reference_time).get_forcing(Y2000)

        np.testing.assert_allclose(forcing["AGRI", "USA"], 0.5)
        np.testing.assert_allclose(forcing["AGRI", "CHN"], 1.0)

    def test_partitioned(self, heat_labor_config, write_hazard, base_forcing, reference_time):
        temperature = 25.0 + 5.0 * np.random.default_rng(3).random((2, 4, 4))
        path = write_hazard(temperature)

        single = HeatLaborProductivity(heat_labor_config(path), base_forcing).join(reference_time)
        split = HeatLaborProductivity(heat_labor_config(path, partitions=3), base_forcing) \
            .join(reference_time)

        for (_, a), (_, b) in zip(single.items(), split.items()):
            np.testing.assert_allclose(a.data, b.data)
