"""CLIConfig: Command-line operational overrides.

Minimal configuration for operational parameters that commonly change
between runs: output path, reference time, verbosity.

This schema handles command-line arguments parsed by argparse.
"""

from typing import Literal, Optional
from pydantic import field_validator
from impactgen.schemas.base import ImpactGenBaseModel
from impactgen.schemas.param import normalize_combination


class CLIConfig(ImpactGenBaseModel):
    """Command-line configuration overrides.

    Operational-only settings that override user and param configs.
    Highest priority in config resolution.

    Usage
    -----
        cli_cfg = CLIConfig(
            output_file="/scratch/forcing_[[model]].nc",
            log_level="DEBUG",
        )

        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    output_file: Optional[str] = None
    reference: Optional[str] = None
    combination: Optional[str] = None
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = None

    @field_validator("combination", mode="before")
    @classmethod
    def normalize_combination_name(cls, v):
        return normalize_combination(v)

    def to_internal_overrides(self) -> dict:
        """Convert CLI config to internal config structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        if self.reference is not None:
            overrides["reference"] = self.reference

        if self.combination is not None:
            overrides["combination"] = self.combination

        if self.output_file is not None:
            overrides["output"] = {"file": str(self.output_file)}

        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}

        return overrides
