"""Forcing values and their time series."""

from impactgen.forcing.reference_time import ReferenceTime
from impactgen.forcing.agent_forcing import AgentForcing, ForcingCombination, ForcingIndex
from impactgen.forcing.series import ForcingSeries

__all__ = [
    "ReferenceTime",
    "AgentForcing",
    "ForcingCombination",
    "ForcingIndex",
    "ForcingSeries",
]
