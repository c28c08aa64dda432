"""impactgen: gridded hazard fields to sector x region economic forcing.

Hazard rasters, economic proxy rasters and region rasters of independent
extent, resolution and orientation are aligned on their common grid and
reduced cell by cell into forcing time series for an economic model.
"""

__version__ = "0.1.0"
