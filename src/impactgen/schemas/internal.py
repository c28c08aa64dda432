"""InternalConfig: Authoritative runtime configuration.

This is the ONLY config schema that runtime code sees. It is fully validated,
normalized, and contains NO optional fields that processing code depends on.
Impact entries are validated here against their hazard type.
"""

from typing import Annotated, Literal, Optional, Union
from pydantic import ConfigDict, Field, field_validator, model_validator
from impactgen.schemas.base import ImpactGenBaseModel
from impactgen.schemas.param import NameSource, normalize_combination, validate_reference


# =============================================================================
# Impact Models (Runtime)
# =============================================================================

class RasterConfig(ImpactGenBaseModel):
    """A variable in a netCDF file; ``[[key]]`` placeholders allowed."""
    file: str
    variable: str


class IsorasterConfig(RasterConfig):
    """Region raster and the name of its label list."""
    index: str = "index"
    verbose: bool = False


class ProxyConfig(RasterConfig):
    """Economic exposure raster."""
    verbose: bool = False


class RecoveryConfig(ImpactGenBaseModel):
    """Flood recovery: decay factor and cut-off of the carried state."""
    exponent: float = 0.0
    threshold: float = 0.0


class TemperatureConfig(RasterConfig):
    """Day temperature raster and the onset of productivity loss."""
    threshold: float


class RangeConfig(ImpactGenBaseModel):
    """Inclusive integer range of a template variable."""
    from_: int = Field(alias="from")
    to: int

    model_config = ImpactGenBaseModel.model_config.copy()
    model_config.update({"populate_by_name": True})

    @model_validator(mode="after")
    def check_order(self):
        if self.from_ > self.to:
            raise ValueError("'from' value should be less than 'to' value")
        return self


TemplateVariable = Union[list[str], RangeConfig]


class InternalImpactConfig(ImpactGenBaseModel):
    """Fields shared by every hazard type (defaults already applied)."""
    isoraster: IsorasterConfig
    proxy: ProxyConfig
    chunk_size: int = Field(ge=1)
    time_shift: int
    verbose: bool
    partitions: int = Field(ge=1)
    variables: dict[str, TemplateVariable] = Field(default_factory=dict)


class FloodingConfig(InternalImpactConfig):
    """River flood fraction with recovery."""
    type: Literal["flooding"]
    flood_fraction: RasterConfig
    recovery: RecoveryConfig = Field(default_factory=RecoveryConfig)
    sectors: Optional[list[str]] = None


class HeatLaborConfig(InternalImpactConfig):
    """Heat labor productivity; ``sectors`` maps sector name to slope."""
    type: Literal["heat_labor_productivity"]
    day_temperature: TemperatureConfig
    sectors: dict[str, float] = Field(min_length=1)


class SeasonConfig(ImpactGenBaseModel):
    """Inclusive month range of a cyclone season; may wrap past December."""
    from_: int = Field(alias="from", ge=1, le=12)
    to: int = Field(ge=1, le=12)

    model_config = ImpactGenBaseModel.model_config.copy()
    model_config.update({"populate_by_name": True})


class TropicalCyclonesConfig(InternalImpactConfig):
    """Cyclone wind events placed into the season of their basin.

    ``basin`` defaults to the ``basin`` template variable, ``velocity`` is
    the storm's translation speed in km/h.
    """
    type: Literal["tropical_cyclones"]
    wind_speed: RasterConfig
    years: RangeConfig
    events_count_variable: str = "event_count"
    basin: Optional[str] = None
    realization: int = Field(ge=0)
    threshold: float
    velocity: float = Field(gt=0)
    seed: int = 0
    seasons: dict[str, SeasonConfig] = Field(min_length=1)
    sectors: Optional[list[str]] = None


ImpactConfig = Annotated[
    Union[FloodingConfig, HeatLaborConfig, TropicalCyclonesConfig],
    Field(discriminator="type"),
]


# =============================================================================
# Nested Configuration Models (Runtime)
# =============================================================================

class InternalOutputConfig(ImpactGenBaseModel):
    """Runtime output configuration."""
    file: str


class InternalLoggingConfig(ImpactGenBaseModel):
    """Runtime logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    file: str


# =============================================================================
# Main InternalConfig
# =============================================================================

class InternalConfig(ImpactGenBaseModel):
    """Authoritative runtime configuration.

    Usage
    -----
    Runtime modules receive InternalConfig and access fields directly:

        reference = ReferenceTime.parse(config.reference)
        for impact in config.impacts:
            chunk = impact.chunk_size  # NOT .get()

    Rules
    -----
    - NO .get() calls
    - NO fallback defaults
    - NO validation

    All of that happens during config resolution, not in runtime code.
    """

    reference: str
    combination: Literal["add", "max", "min", "mult"]
    regions: NameSource
    sectors: NameSource
    impacts: list[ImpactConfig]
    output: InternalOutputConfig
    logging: InternalLoggingConfig

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        frozen=True,  # Immutable after construction
        populate_by_name=True,
    )

    @field_validator("combination", mode="before")
    @classmethod
    def normalize_combination_name(cls, v):
        return normalize_combination(v)

    @field_validator("reference")
    @classmethod
    def check_reference(cls, v):
        return validate_reference(v)
