"""Pipeline modules.

- runner: Settings-driven forcing generation
"""

from impactgen.pipeline.runner import ImpactRunner, expand_variables, load_names

__all__ = [
    "ImpactRunner",
    "expand_variables",
    "load_names",
]
