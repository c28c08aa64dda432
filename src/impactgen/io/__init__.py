"""Raster sources, time axis decoding and forcing output."""

from impactgen.io.source import RasterSource, XarraySource, check_dimensions, resolve_axis
from impactgen.io.time_variable import TimeVariable
from impactgen.io.output import ForcingOutput

__all__ = [
    "RasterSource",
    "XarraySource",
    "check_dimensions",
    "resolve_axis",
    "TimeVariable",
    "ForcingOutput",
]
