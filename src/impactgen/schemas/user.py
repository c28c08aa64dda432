"""UserConfig: Forgiving, minimal user-facing configuration.

This schema accepts user inputs with aliases for common naming patterns
(e.g., REFERENCE → reference, OUTPUT_FILE → output.file).

UserConfig is intentionally minimal - users only specify what they want
to override from the expert defaults. Impact entries are passed through
as given and validated once defaults have been merged into them.
"""

from typing import Any, Literal, Optional, Union
from pydantic import Field, field_validator
from impactgen.schemas.base import ImpactGenBaseModel
from impactgen.schemas.param import NameListConfig, normalize_combination


class UserImpactDefaultsConfig(ImpactGenBaseModel):
    """User-facing impact defaults."""
    chunk_size: Optional[int] = None
    time_shift: Optional[int] = None
    verbose: Optional[bool] = None
    partitions: Optional[int] = None


class UserOutputConfig(ImpactGenBaseModel):
    """User-facing output config."""
    file: Optional[str] = None


class UserLoggingConfig(ImpactGenBaseModel):
    """User-facing logging config."""
    level: Optional[str] = None
    file: Optional[str] = None

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        if isinstance(v, str):
            return v.upper().strip()
        return v


class UserConfig(ImpactGenBaseModel):
    """User-facing configuration schema.

    Minimal, forgiving, and uses common aliases. Users only specify
    what they want to override from ParamConfig defaults.

    Usage
    -----
        user_cfg = UserConfig(
            REFERENCE="days since 1980-01-01",
            REGIONS=["USA", "CHN"],
            SECTORS=["AGRI", "MANU"],
            IMPACTS=[{"type": "flooding", ...}],
        )

        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    # Top-level run settings
    reference: Optional[str] = Field(None, alias="REFERENCE")
    combination: Optional[str] = Field(None, alias="COMBINATION")
    regions: Optional[Union[list[str], NameListConfig]] = Field(None, alias="REGIONS")
    sectors: Optional[Union[list[str], NameListConfig]] = Field(None, alias="SECTORS")
    impacts: Optional[list[dict[str, Any]]] = Field(None, alias="IMPACTS")

    # Output and logging (flat aliases)
    output_file: Optional[str] = Field(None, alias="OUTPUT_FILE")
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = Field(None, alias="LOG_LEVEL")
    log_file: Optional[str] = Field(None, alias="LOG_FILE")

    # Impact defaults (flat aliases)
    chunk_size: Optional[int] = Field(None, alias="CHUNK_SIZE")
    time_shift: Optional[int] = Field(None, alias="TIME_SHIFT")
    verbose: Optional[bool] = Field(None, alias="VERBOSE")
    partitions: Optional[int] = Field(None, alias="PARTITIONS")

    # Nested overrides (advanced users)
    impact_defaults: Optional[UserImpactDefaultsConfig] = None
    output: Optional[UserOutputConfig] = None
    logging: Optional[UserLoggingConfig] = None

    model_config = ImpactGenBaseModel.model_config.copy()
    # Allow forgiving input dictionaries (ignore unknown legacy keys)
    model_config.update({"populate_by_name": True, "extra": "ignore"})

    @field_validator("combination", mode="before")
    @classmethod
    def normalize_combination_name(cls, v):
        return normalize_combination(v)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.upper().strip()
        return v

    def to_internal_overrides(self) -> dict:
        """Convert flat UserConfig to nested InternalConfig structure.

        Returns
        -------
        dict
            Nested dictionary matching the ParamConfig structure
        """
        overrides = {}

        for key in ("reference", "combination", "impacts"):
            value = getattr(self, key)
            if value is not None:
                overrides[key] = value

        for key in ("regions", "sectors"):
            value = getattr(self, key)
            if isinstance(value, NameListConfig):
                overrides[key] = value.model_dump()
            elif value is not None:
                overrides[key] = list(value)

        # Impact defaults section
        defaults = {}
        for key in ("chunk_size", "time_shift", "verbose", "partitions"):
            value = getattr(self, key)
            if value is not None:
                defaults[key] = value
        if self.impact_defaults is not None:
            defaults.update(self.impact_defaults.model_dump(exclude_none=True))
        if defaults:
            overrides["impact_defaults"] = defaults

        # Output section
        output = {}
        if self.output_file is not None:
            output["file"] = self.output_file
        if self.output is not None:
            output.update(self.output.model_dump(exclude_none=True))
        if output:
            overrides["output"] = output

        # Logging section
        logging_cfg = {}
        if self.log_level is not None:
            logging_cfg["level"] = self.log_level
        if self.log_file is not None:
            logging_cfg["file"] = self.log_file
        if self.logging is not None:
            logging_cfg.update(self.logging.model_dump(exclude_none=True))
        if logging_cfg:
            overrides["logging"] = logging_cfg

        return overrides
