"""ParamConfig: Expert defaults for impactgen runs.

This module defines the complete default configuration. Every run-level
parameter has its default here; impact entries receive the
``impact_defaults`` for everything they leave unset. No runtime code
should define fallback values - this is the single source of truth for
defaults.

Runtime code NEVER reads from ParamConfig directly - it only receives InternalConfig.
"""

from typing import Any, Literal, Union
from pydantic import Field, field_validator
from impactgen.contracts import FormatError
from impactgen.forcing import ForcingCombination, ReferenceTime
from impactgen.schemas.base import ImpactGenBaseModel


def normalize_combination(v):
    """Map any accepted combination alias onto its canonical name."""
    if v is None:
        return v
    try:
        return ForcingCombination.parse(v).value
    except FormatError as e:
        raise ValueError(str(e)) from e


def validate_reference(v):
    """Reject time references the codec cannot parse."""
    if v is None:
        return v
    try:
        ReferenceTime.parse(v)
    except FormatError as e:
        raise ValueError(str(e)) from e
    return v


# =============================================================================
# Nested Configuration Models
# =============================================================================

class NameListConfig(ImpactGenBaseModel):
    """Region or sector names read from a netCDF string variable."""
    type: Literal["netcdf"] = "netcdf"
    file: str
    variable: str


NameSource = Union[list[str], NameListConfig]


class ImpactDefaultsConfig(ImpactGenBaseModel):
    """Defaults applied to every impact entry."""
    chunk_size: int = Field(1, ge=1, description="Time steps read per chunk")
    time_shift: int = Field(0, description="Offset added to raw time values, in file units")
    verbose: bool = False
    partitions: int = Field(1, ge=1, description="Row partitions reduced concurrently")


class OutputConfig(ImpactGenBaseModel):
    """Output file configuration."""
    file: str = "agent_forcing.nc"


class LoggingConfig(ImpactGenBaseModel):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file: str = "logs/impactgen.log"


# =============================================================================
# Main ParamConfig
# =============================================================================

class ParamConfig(ImpactGenBaseModel):
    """Complete expert configuration with all defaults.

    Usage
    -----
    This config is NOT used directly by runtime code. It serves as the
    base layer in config resolution:

        internal_cfg = resolve_config(param_cfg, user_cfg, cli_cfg)

    Runtime code only sees InternalConfig.
    """

    reference: str = "days since 2000-01-01"
    combination: str = "add"
    regions: NameSource = Field(default_factory=list)
    sectors: NameSource = Field(default_factory=list)
    impact_defaults: ImpactDefaultsConfig = Field(default_factory=ImpactDefaultsConfig)
    impacts: list[dict[str, Any]] = Field(default_factory=list)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("combination", mode="before")
    @classmethod
    def normalize_combination_name(cls, v):
        return normalize_combination(v)

    @field_validator("reference")
    @classmethod
    def check_reference(cls, v):
        return validate_reference(v)
