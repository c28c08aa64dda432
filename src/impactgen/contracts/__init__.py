"""Contracts: fail-fast enforcement of input and stage invariants.

Key principle:
- Pydantic validates config correctness
- Contracts validate input layout and engine invariants
- Science edge cases (NaN, missing data, unknown regions) degrade gracefully
"""

from impactgen.contracts.failure import (
    AxisNotFoundError,
    ContractViolation,
    FormatError,
    ImpactGenError,
    IncompatibleGridError,
    IncompatibleReferenceTimeError,
    TimeAlreadySetError,
    UnrelatedForcingError,
)
from impactgen.contracts.base import require
from impactgen.contracts.raster import assert_dimensions, assert_latlon

__all__ = [
    "ImpactGenError",
    "FormatError",
    "AxisNotFoundError",
    "IncompatibleGridError",
    "UnrelatedForcingError",
    "TimeAlreadySetError",
    "IncompatibleReferenceTimeError",
    "ContractViolation",
    "require",
    "assert_dimensions",
    "assert_latlon",
]
