"""impactgen User Configuration.

This is the user-facing configuration file. Modify settings here to
customize the run. Expert defaults are in src/impactgen/schemas/param.py

Usage:
    python scripts/run_impactgen.py scripts/user_config.py
    python scripts/run_impactgen.py scripts/user_config.py --output-file forcing.nc
"""

CONFIG = {
    # ========================================================================
    # OUTPUT
    # ========================================================================
    "OUTPUT_FILE": "output/agent_forcing_[[combination]].nc",
    "REFERENCE": "days since 1980-01-01",
    "COMBINATION": "add",     # add, max, min or mult

    # ========================================================================
    # REGIONS & SECTORS
    # ========================================================================
    "REGIONS": ["USA", "CHN", "DEU"],
    # or read from a netCDF string variable:
    # "REGIONS": {"type": "netcdf", "file": "data/regions.nc", "variable": "region"},
    "SECTORS": ["AGRI", "MANU", "SERV"],

    # ========================================================================
    # RUN SETTINGS (defaults for every impact)
    # ========================================================================
    "CHUNK_SIZE": 10,         # Time steps read at once
    "PARTITIONS": 1,          # Row partitions reduced in parallel
    "VERBOSE": False,

    # ========================================================================
    # IMPACTS
    # ========================================================================
    "IMPACTS": [
        {
            "type": "flooding",
            "isoraster": {"file": "data/isoraster.nc", "variable": "iso"},
            "proxy": {"file": "data/gdp_[[year]].nc", "variable": "gdp"},
            "flood_fraction": {"file": "data/flood_[[model]]_[[year]].nc", "variable": "fldfrc"},
            "recovery": {"exponent": 0.5, "threshold": 0.01},
            "variables": {
                "model": ["gfdl", "hadgem"],
                "year": {"from": 2000, "to": 2005},
            },
        },
        {
            "type": "heat_labor_productivity",
            "isoraster": {"file": "data/isoraster.nc", "variable": "iso"},
            "proxy": {"file": "data/gdp_2000.nc", "variable": "gdp"},
            "day_temperature": {"file": "data/tas_daily.nc", "variable": "tas", "threshold": 27.0},
            "sectors": {"AGRI": 0.03, "MANU": 0.01},
            "time_shift": 0,
        },
    ],
}
