"""Engine exceptions."""

from __future__ import annotations


class PalmSightError(Exception):
    """Base class for engine errors."""


class InvalidImageError(PalmSightError, ValueError):
    """Raster input is malformed (zero size or wrong buffer length)."""


class RulesFormatError(PalmSightError):
    """A rule-table file could not be read or is not JSON."""
