"""PalmSight — palm line detection and rule-based reading."""

__version__ = "0.1.0"
