import pytest
import numpy as np

from impactgen.schemas.internal import FloodingConfig, HeatLaborConfig, TropicalCyclonesConfig
from tests.helpers.rasters import (
    make_cyclone_ds,
    make_hazard_ds,
    make_isoraster_ds,
    make_proxy_ds,
    write_dataset,
)


@pytest.fixture
def scenario_files(tmp_path):
    """Iso-raster and proxy of the 4x4 scenario written to netCDF."""
    return {
        "iso": write_dataset(make_isoraster_ds(), tmp_path / "iso.nc"),
        "proxy": write_dataset(make_proxy_ds(), tmp_path / "proxy.nc"),
    }


@pytest.fixture
def write_hazard(tmp_path):
    """Write a ``(time, lat, lon)`` hazard stack and return its path."""
    def _write(values, name="hazard.nc", variable="hazard", **kwargs):
        values = np.asarray(values, dtype=np.float64)
        kwargs.setdefault("times", list(range(values.shape[0])))
        ds = make_hazard_ds(values, variable=variable, **kwargs)
        return write_dataset(ds, tmp_path / name)
    return _write


def _common(scenario_files, overrides):
    config = {
        "isoraster": {"file": str(scenario_files["iso"]), "variable": "iso"},
        "proxy": {"file": str(scenario_files["proxy"]), "variable": "gdp"},
        "chunk_size": 1,
        "time_shift": 0,
        "verbose": False,
        "partitions": 1,
    }
    config.update(overrides)
    return config


@pytest.fixture
def flooding_config(scenario_files):
    def _make(hazard_file, **overrides):
        config = _common(scenario_files, overrides)
        config.setdefault("type", "flooding")
        config.setdefault("flood_fraction", {"file": str(hazard_file), "variable": "hazard"})
        return FloodingConfig.model_validate(config)
    return _make


@pytest.fixture
def heat_labor_config(scenario_files):
    def _make(hazard_file, threshold=27.0, **overrides):
        config = _common(scenario_files, overrides)
        config.setdefault("type", "heat_labor_productivity")
        config.setdefault("day_temperature", {
            "file": str(hazard_file), "variable": "hazard", "threshold": threshold,
        })
        config.setdefault("sectors", {"AGRI": 0.1, "MANU": 0.5})
        return HeatLaborConfig.model_validate(config)
    return _make


@pytest.fixture
def write_cyclones(tmp_path):
    """Write a ``(realization, year, event, lat, lon)`` wind stack and return its path."""
    def _write(wind, name="wind.nc", **kwargs):
        return write_dataset(make_cyclone_ds(wind, **kwargs), tmp_path / name)
    return _write


@pytest.fixture
def cyclones_config(scenario_files):
    def _make(wind_file, **overrides):
        config = _common(scenario_files, overrides)
        config.setdefault("type", "tropical_cyclones")
        config.setdefault("wind_speed", {"file": str(wind_file), "variable": "wind"})
        config.setdefault("years", {"from": 2000, "to": 2000})
        config.setdefault("basin", "NA")
        config.setdefault("realization", 0)
        config.setdefault("threshold", 33.0)
        config.setdefault("velocity", 1.0)
        config.setdefault("seasons", {"NA": {"from": 1, "to": 1}})
        return TropicalCyclonesConfig.model_validate(config)
    return _make
