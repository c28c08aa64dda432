"""Pipeline fixtures: the 4x4 scenario written to disk and run configs."""

import logging

import pytest
import numpy as np

from tests.helpers.rasters import make_hazard_ds, make_isoraster_ds, make_proxy_ds, write_dataset


@pytest.fixture
def scenario_dir(tmp_path):
    """Iso-raster, proxy, two yearly flood files and a temperature file."""
    write_dataset(make_isoraster_ds(), tmp_path / "iso.nc")
    write_dataset(make_proxy_ds(), tmp_path / "proxy.nc")
    for day, year in enumerate((2000, 2001)):
        ds = make_hazard_ds(np.full((1, 4, 4), 0.5), times=[day], variable="fldfrc")
        write_dataset(ds, tmp_path / f"flood_{year}.nc")
    write_dataset(make_hazard_ds(np.full((1, 4, 4), 30.0), variable="tas"), tmp_path / "tas.nc")
    return tmp_path


@pytest.fixture
def user_config(scenario_dir):
    """User config dict with one flooding and one heat labor impact."""
    def raster(name, variable):
        return {"file": str(scenario_dir / name), "variable": variable}

    return {
        "REFERENCE": "days since 2000-01-01",
        "REGIONS": ["USA", "CHN"],
        "SECTORS": ["AGRI", "MANU"],
        "OUTPUT_FILE": str(scenario_dir / "out" / "forcing_[[combination]].nc"),
        "LOG_FILE": str(scenario_dir / "logs" / "impactgen.log"),
        "IMPACTS": [
            {
                "type": "flooding",
                "isoraster": raster("iso.nc", "iso"),
                "proxy": raster("proxy.nc", "gdp"),
                "flood_fraction": raster("flood_[[year]].nc", "fldfrc"),
                "variables": {"year": {"from": 2000, "to": 2001}},
            },
            {
                "type": "heat_labor_productivity",
                "isoraster": raster("iso.nc", "iso"),
                "proxy": raster("proxy.nc", "gdp"),
                "day_temperature": {**raster("tas.nc", "tas"), "threshold": 27},
                "sectors": {"AGRI": 0.1},
            },
        ],
    }


@pytest.fixture
def restore_root_logger():
    """Undo the root handler setup a full run performs."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers[:]:
        if handler not in handlers:
            handler.close()
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
