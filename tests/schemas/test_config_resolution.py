"""Test config resolution and validation with Pydantic."""

import pytest
from pydantic import ValidationError

pytestmark = pytest.mark.unit

from impactgen.schemas import CLIConfig, InternalConfig, ParamConfig, UserConfig
from impactgen.schemas.internal import (
    FloodingConfig,
    HeatLaborConfig,
    RangeConfig,
    TropicalCyclonesConfig,
)
from impactgen.schemas.param import NameListConfig
from impactgen.schemas.resolve import deep_merge, resolve_config


def flooding_entry(**overrides):
    entry = {
        "type": "flooding",
        "isoraster": {"file": "iso.nc", "variable": "iso"},
        "proxy": {"file": "gdp.nc", "variable": "gdp"},
        "flood_fraction": {"file": "flood_[[year]].nc", "variable": "fldfrc"},
    }
    entry.update(overrides)
    return entry


def heat_entry(**overrides):
    entry = {
        "type": "heat_labor_productivity",
        "isoraster": {"file": "iso.nc", "variable": "iso"},
        "proxy": {"file": "gdp.nc", "variable": "gdp"},
        "day_temperature": {"file": "tas.nc", "variable": "tas", "threshold": 27},
        "sectors": {"AGRI": 0.03},
    }
    entry.update(overrides)
    return entry


def cyclones_entry(**overrides):
    entry = {
        "type": "tropical_cyclones",
        "isoraster": {"file": "iso.nc", "variable": "iso"},
        "proxy": {"file": "gdp.nc", "variable": "gdp"},
        "wind_speed": {"file": "wind_[[basin]].nc", "variable": "wind"},
        "years": {"from": 1980, "to": 2000},
        "realization": 0,
        "threshold": 33,
        "velocity": 20,
        "seasons": {"NA": {"from": 6, "to": 11}, "SP": {"from": 11, "to": 4}},
    }
    entry.update(overrides)
    return entry


class TestConfigResolution:
    """Test resolve_config() precedence and merging."""

    def test_resolve_config_all_defaults(self, internal_config):
        assert isinstance(internal_config, InternalConfig)
        assert internal_config.reference == "days since 2000-01-01"
        assert internal_config.combination == "add"
        assert internal_config.impacts == []
        assert internal_config.output.file == "agent_forcing.nc"
        assert internal_config.logging.level == "INFO"

    def test_user_config_overrides_param_config(self, make_config):
        config = make_config(REFERENCE="hours since 1980-01-01 00:00", COMBINATION="maximum")

        assert config.reference == "hours since 1980-01-01 00:00"
        assert config.combination == "max"

    def test_cli_overrides_user(self):
        user = UserConfig(OUTPUT_FILE="user.nc", LOG_LEVEL="INFO")
        cli = CLIConfig(output_file="cli.nc", log_level="DEBUG")

        config = resolve_config(ParamConfig(), user, cli)

        assert config.output.file == "cli.nc"
        assert config.logging.level == "DEBUG"

    def test_cli_dict_accepted(self):
        config = resolve_config(ParamConfig(), None, {"combination": "mult"})
        assert config.combination == "mult"

    def test_regions_inline_and_netcdf(self, make_config):
        config = make_config(
            REGIONS=["USA", "CHN"],
            SECTORS={"type": "netcdf", "file": "sectors.nc", "variable": "sector"},
        )

        assert config.regions == ["USA", "CHN"]
        assert isinstance(config.sectors, NameListConfig)
        assert config.sectors.variable == "sector"

    def test_internal_config_is_frozen(self, internal_config):
        with pytest.raises(ValidationError):
            internal_config.reference = "days since 1900-01-01"

    def test_invalid_reference_rejected(self, make_config):
        with pytest.raises(ValidationError, match="Unknown time reference"):
            make_config(REFERENCE="fortnights since 2000-01-01")

    def test_invalid_combination_rejected(self):
        with pytest.raises(ValidationError, match="Unknown forcing combination"):
            UserConfig(COMBINATION="average")


class TestImpactResolution:
    """Test impact entries and their defaults."""

    def test_impact_types(self, make_config):
        config = make_config(IMPACTS=[flooding_entry(), heat_entry()])

        flooding, heat = config.impacts
        assert isinstance(flooding, FloodingConfig)
        assert isinstance(heat, HeatLaborConfig)
        assert heat.day_temperature.threshold == 27.0

    def test_impact_defaults_applied(self, make_config):
        config = make_config(CHUNK_SIZE=5, IMPACTS=[flooding_entry(), flooding_entry(chunk_size=2)])

        assert [impact.chunk_size for impact in config.impacts] == [5, 2]
        assert all(impact.time_shift == 0 for impact in config.impacts)
        assert all(impact.partitions == 1 for impact in config.impacts)

    def test_nested_defaults(self, make_config):
        config = make_config(IMPACTS=[flooding_entry()])
        flooding = config.impacts[0]

        assert flooding.isoraster.index == "index"
        assert flooding.recovery.exponent == 0.0
        assert flooding.sectors is None

    def test_unknown_type(self, make_config):
        with pytest.raises(ValidationError):
            make_config(IMPACTS=[flooding_entry(type="drought")])

    def test_unknown_impact_key(self, make_config):
        with pytest.raises(ValidationError):
            make_config(IMPACTS=[flooding_entry(flood_depth={"file": "x.nc", "variable": "d"})])

    def test_heat_labor_requires_sectors(self, make_config):
        with pytest.raises(ValidationError):
            make_config(IMPACTS=[heat_entry(sectors={})])

    def test_chunk_size_positive(self, make_config):
        with pytest.raises(ValidationError):
            make_config(IMPACTS=[flooding_entry(chunk_size=0)])

    def test_variables(self, make_config):
        config = make_config(IMPACTS=[flooding_entry(variables={
            "model": ["gfdl", "hadgem"],
            "year": {"from": 2000, "to": 2002},
        })])
        variables = config.impacts[0].variables

        assert variables["model"] == ["gfdl", "hadgem"]
        assert isinstance(variables["year"], RangeConfig)
        assert (variables["year"].from_, variables["year"].to) == (2000, 2002)

    def test_reversed_range_rejected(self, make_config):
        with pytest.raises(ValidationError, match="'from' value should be less than 'to' value"):
            make_config(IMPACTS=[flooding_entry(variables={"year": {"from": 2005, "to": 2000}})])


class TestDeepMerge:
    """Test the dictionary merge used by resolution."""

    def test_nested(self):
        base = {"a": 1, "b": {"c": 2, "d": 3}}
        assert deep_merge(base, {"b": {"d": 4}}) == {"a": 1, "b": {"c": 2, "d": 4}}
        assert base == {"a": 1, "b": {"c": 2, "d": 3}}

    def test_lists_replaced(self):
        assert deep_merge({"x": [1, 2]}, {"x": [3]}) == {"x": [3]}


class TestTropicalCyclonesConfig:
    """Test cyclone entries, their seasons and defaults."""

    def test_defaults(self, make_config):
        cyclones = make_config(IMPACTS=[cyclones_entry()]).impacts[0]

        assert isinstance(cyclones, TropicalCyclonesConfig)
        assert cyclones.events_count_variable == "event_count"
        assert cyclones.basin is None
        assert cyclones.seed == 0
        assert (cyclones.seasons["SP"].from_, cyclones.seasons["SP"].to) == (11, 4)
        assert (cyclones.years.from_, cyclones.years.to) == (1980, 2000)

    @pytest.mark.parametrize("overrides", [
        {"seasons": {}},
        {"seasons": {"NA": {"from": 0, "to": 11}}},
        {"seasons": {"NA": {"from": 6, "to": 13}}},
        {"velocity": 0},
        {"realization": -1},
        {"years": {"from": 2001, "to": 2000}},
    ])
    def test_invalid_values_rejected(self, make_config, overrides):
        with pytest.raises(ValidationError):
            make_config(IMPACTS=[cyclones_entry(**overrides)])
