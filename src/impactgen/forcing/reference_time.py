"""Reference-time codec.

Encodes absolute timestamps (UTC epoch seconds) as small integer offsets
relative to an epoch at a fixed accuracy, and parses/formats the CF-style
``"<unit> since <date>"`` strings stored in netCDF ``time`` attributes.

Supported accuracies (seconds per unit):

======  ==========================================
86400   ``days since %Y-%m-%d``
3600    ``hours since %Y-%m-%d %H:00``
60      ``minutes since %Y-%m-%d %H:%M``
1       ``seconds since %Y-%m-%d %H:%M:%S``
======  ==========================================

All calendar arithmetic is done in UTC.
"""

import calendar
import re
from datetime import datetime, timezone

from impactgen.contracts import FormatError

__all__ = ['ReferenceTime', 'SECONDS_PER_UNIT']

SECONDS_PER_UNIT = {
    "seconds": 1,
    "minutes": 60,
    "hours": 60 * 60,
    "days": 24 * 60 * 60,
}

_UNITS_PATTERN = re.compile(
    r"^\s*(?P<unit>days|hours|minutes|seconds)\s+since\s+"
    r"(?P<year>\d{1,4})-(?P<month>\d{1,2})-(?P<day>\d{1,2})"
    r"(?:[ T](?P<hour>\d{1,2})(?::(?P<minute>\d{1,2})(?::(?P<second>\d{1,2}))?)?)?"
)

_FORMATS = {
    1: "seconds since %Y-%m-%d %H:%M:%S",
    60: "minutes since %Y-%m-%d %H:%M",
    60 * 60: "hours since %Y-%m-%d %H:00",
    24 * 60 * 60: "days since %Y-%m-%d",
}


def _truncdiv(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(a) // b
    return q if a >= 0 else -q


class ReferenceTime:
    """Epoch plus accuracy, converting timestamps to integer keys.

    Two reference times are compatible only if their accuracy matches;
    epochs may differ since merging re-derives absolute time before
    re-keying under the target epoch.

    Parameters
    ----------
    time : int
        Epoch as UTC seconds since 1970-01-01.
    accuracy : int
        Seconds per unit (1, 60, 3600 or 86400).

    Examples
    --------
    >>> ref = ReferenceTime.parse("days since 2000-01-01")
    >>> ref.reference(ReferenceTime.year(2000) + 3 * 86400)
    3
    """

    def __init__(self, time: int = -1, accuracy: int = 1):
        self.time = int(time)
        self.accuracy = int(accuracy)

    @classmethod
    def parse(cls, units: str) -> "ReferenceTime":
        """Parse a ``"<unit> since <date>"`` string.

        Unpadded months and days (``2000-1-1``) are accepted. Trailing text
        after the part relevant for the unit is ignored.

        Raises
        ------
        FormatError
            If the string does not match any supported format.
        """
        match = _UNITS_PATTERN.match(units or "")
        if match is None:
            raise FormatError(f"Unknown time reference '{units}'")

        unit = match.group("unit")
        fields = {k: int(v) if v is not None else 0 for k, v in match.groupdict().items() if k != "unit"}
        if unit == "days":
            fields["hour"] = fields["minute"] = fields["second"] = 0
        elif unit == "hours":
            fields["minute"] = fields["second"] = 0
        elif unit == "minutes":
            fields["second"] = 0

        try:
            epoch = datetime(fields["year"], fields["month"], fields["day"],
                             fields["hour"], fields["minute"], fields["second"],
                             tzinfo=timezone.utc)
        except ValueError as e:
            raise FormatError(f"Unknown time reference '{units}': {e}") from e

        return cls(calendar.timegm(epoch.utctimetuple()), SECONDS_PER_UNIT[unit])

    @staticmethod
    def year(year: int) -> int:
        """Epoch seconds of January 1st of ``year``, 00:00 UTC."""
        return calendar.timegm((year, 1, 1, 0, 0, 0))

    def reference(self, time: int) -> int:
        """Encode an absolute timestamp as an integer offset."""
        return _truncdiv(int(time) - self.time, self.accuracy)

    def unreference(self, key: int) -> int:
        """Decode an integer offset into an absolute timestamp."""
        return int(key) * self.accuracy + self.time

    def compatible_with(self, other: "ReferenceTime") -> bool:
        return other.accuracy == self.accuracy

    def to_units(self) -> str:
        """Format as a CF ``units`` string.

        Raises
        ------
        FormatError
            If the accuracy is not one of the supported values.
        """
        fmt = _FORMATS.get(self.accuracy)
        if fmt is None:
            raise FormatError(f"Invalid accuracy of {self.accuracy}")
        return datetime.fromtimestamp(self.time, tz=timezone.utc).strftime(fmt)

    def __eq__(self, other):
        if not isinstance(other, ReferenceTime):
            return NotImplemented
        return self.time == other.time and self.accuracy == other.accuracy

    def __hash__(self):
        return hash((self.time, self.accuracy))

    def __repr__(self):
        return f"ReferenceTime(time={self.time}, accuracy={self.accuracy})"
