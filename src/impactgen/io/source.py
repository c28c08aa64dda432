"""Raster source abstraction over xarray datasets.

The reduction engine only needs a handful of read operations on its inputs:
axis values, flat data buffers (optionally restricted to a range of time
steps), string attributes and dimension names. :class:`RasterSource` names
that surface; :class:`XarraySource` implements it over an
``xarray.Dataset`` held in memory or opened lazily from a netCDF file, so
that reading one time chunk only touches that chunk on disk.

Values are read raw (no mask/scale decoding, no time decoding): fill values
and NaN are handled by the reduction's validity rules, and the ``time``
axis is decoded by :mod:`impactgen.io.time_variable`.
"""

from pathlib import Path
from typing import Mapping, Optional, Protocol, Sequence
import logging

import numpy as np
import xarray as xr

from impactgen.contracts import AxisNotFoundError, FormatError, assert_dimensions

__all__ = [
    'RasterSource',
    'XarraySource',
    'LAT_ALIASES',
    'LON_ALIASES',
    'MISSING_THRESHOLD',
    'resolve_axis',
    'check_dimensions',
]

logger = logging.getLogger(__name__)

# float values above this are fill values (netCDF default fill is 9.96921e36)
MISSING_THRESHOLD = 1e10

LAT_ALIASES = ("y", "lat", "latitude")
LON_ALIASES = ("x", "lon", "longitude")


class RasterSource(Protocol):
    """Read-only access to named variables of one gridded dataset."""

    filename: str

    def has_variable(self, name: str) -> bool: ...

    def dimensions(self, name: str) -> tuple[str, ...]: ...

    def shape(self, name: str) -> tuple[int, ...]: ...

    def get_axis_values(self, name: str) -> np.ndarray: ...

    def get_array(self, name: str, time_slice: Optional[slice] = None,
                  indexers: Optional[Mapping[str, int | slice]] = None) -> np.ndarray: ...

    def get_attribute(self, name: str, key: str) -> str: ...

    def get_strings(self, name: str) -> list[str]: ...


class XarraySource:
    """:class:`RasterSource` backed by an ``xarray.Dataset``.

    Parameters
    ----------
    dataset : xr.Dataset
        Dataset to read from. Opened files stay lazily loaded.
    filename : str, optional
        Name used in error messages. Defaults to the dataset's ``source``
        encoding, or ``"<memory>"``.

    Examples
    --------
    >>> with XarraySource.open("flood_fraction.nc") as source:
    ...     lat = source.get_axis_values("lat")
    ...     chunk = source.get_array("fldfrc", slice(0, 10))
    """

    def __init__(self, dataset: xr.Dataset, filename: Optional[str] = None):
        self.dataset = dataset
        self.filename = filename or dataset.encoding.get("source", "<memory>")

    @classmethod
    def open(cls, path: Path | str) -> "XarraySource":
        """Open a netCDF file lazily.

        Raises
        ------
        FormatError
            If the file does not exist or cannot be decoded.
        """
        path = Path(path)
        if not path.exists():
            raise FormatError(f"{path}: File not found")
        try:
            # raw values: float fills exceed MISSING_THRESHOLD, negative
            # integer fills of an iso-raster read as unassigned labels
            dataset = xr.open_dataset(path, decode_times=False, mask_and_scale=False)
        except (OSError, ValueError) as e:
            raise FormatError(f"{path}: Could not open dataset: {e}") from e
        logger.debug("Opened raster source %s", path)
        return cls(dataset, str(path))

    def close(self) -> None:
        self.dataset.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _variable(self, name: str) -> xr.DataArray:
        if name not in self.dataset.variables:
            raise FormatError(f"{self.filename}: Variable '{name}' not found")
        return self.dataset[name]

    def has_variable(self, name: str) -> bool:
        return name in self.dataset.variables

    def dimensions(self, name: str) -> tuple[str, ...]:
        return tuple(self._variable(name).dims)

    def get_axis_values(self, name: str) -> np.ndarray:
        values = np.asarray(self._variable(name).values, dtype=np.float64)
        if values.ndim != 1:
            raise FormatError(f"{self.filename}: Axis '{name}' is not one-dimensional")
        return values

    def shape(self, name: str) -> tuple[int, ...]:
        return tuple(self._variable(name).shape)

    def get_array(self, name: str, time_slice: Optional[slice] = None,
                  indexers: Optional[Mapping[str, int | slice]] = None) -> np.ndarray:
        """Return the variable as a flat, C-contiguous buffer.

        Parameters
        ----------
        name : str
            Variable name.
        time_slice : slice, optional
            Range along the leading (time) dimension. Only that part is read.
        indexers : mapping, optional
            Index or range per named dimension, e.g. one realization and
            year of an event stack. Only that part is read.

        Raises
        ------
        FormatError
            If an indexer names a dimension the variable does not have.
        """
        var = self._variable(name)
        if time_slice is not None:
            var = var.isel({var.dims[0]: time_slice})
        if indexers:
            unknown = set(indexers) - set(var.dims)
            if unknown:
                raise FormatError(f"{self.filename} - {name}: No dimension {sorted(unknown)}")
            var = var.isel(dict(indexers))
        return np.ascontiguousarray(var.values).reshape(-1)

    def get_attribute(self, name: str, key: str) -> str:
        attrs = self._variable(name).attrs
        if key not in attrs:
            raise FormatError(f"{self.filename} - {name}: Attribute '{key}' not found")
        return str(attrs[key])

    def get_strings(self, name: str) -> list[str]:
        """Decode a one-dimensional string or char variable."""
        names = []
        for value in self._variable(name).values.reshape(-1):
            if isinstance(value, bytes):
                value = value.decode("utf-8")
            names.append(str(value).strip())
        return names

    def __repr__(self):
        return f"XarraySource({self.filename!r})"


def resolve_axis(source: RasterSource, aliases: Sequence[str]) -> str:
    """Return the first of ``aliases`` present in ``source``.

    Raises
    ------
    AxisNotFoundError
        If none of the aliases is a variable of the source.
    """
    for alias in aliases:
        if source.has_variable(alias):
            return alias
    raise AxisNotFoundError(f"{source.filename}: No axis named any of {tuple(aliases)}")


def check_dimensions(source: RasterSource, name: str,
                     *candidates: Sequence[str]) -> tuple[str, ...]:
    """Validate the dimension names of ``name`` against ``candidates``."""
    dims = source.dimensions(name)
    assert_dimensions(dims, candidates, f"{source.filename} - {name}")
    return dims
