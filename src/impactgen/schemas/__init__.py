"""Pydantic configuration schemas for impactgen runs.

All configuration validation, coercion, and normalization happens at
schema validation time via Pydantic.

Exports
-------
resolve_config : function
    Single entrypoint for configuration resolution
InternalConfig : class
    Fully validated, authoritative runtime configuration
ParamConfig : class
    Expert defaults (complete)
UserConfig : class
    User-facing configuration (forgiving, minimal)
CLIConfig : class
    Command-line operational overrides
"""

from impactgen.schemas.resolve import resolve_config
from impactgen.schemas.internal import InternalConfig
from impactgen.schemas.param import ParamConfig
from impactgen.schemas.user import UserConfig
from impactgen.schemas.cli import CLIConfig

__all__ = [
    'resolve_config',
    'InternalConfig',
    'ParamConfig',
    'UserConfig',
    'CLIConfig',
]
