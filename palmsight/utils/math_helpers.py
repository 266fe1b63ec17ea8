"""Math helpers — guarded ratios, angle wrapping, circular means. No engine imports."""

from __future__ import annotations

import math
from collections.abc import Iterable

import numpy as np
from numpy.typing import NDArray

# Stability floor for denominators.
EPS = 1e-6


def safe_ratio(num: float, den: float) -> float:
    """num / den with the denominator floored at EPS."""
    return num / max(den, EPS)


def circular_mean(angles: Iterable[float] | NDArray[np.float64], weights: Iterable[float] | None = None) -> float:
    """Mean direction of angles (radians) via summed unit vectors.

    Avoids the wraparound error of averaging raw angles. Returns 0.0 for an
    empty input.
    """
    a = np.asarray(list(angles), dtype=np.float64)
    if a.size == 0:
        return 0.0
    w = np.ones_like(a) if weights is None else np.asarray(list(weights), dtype=np.float64)
    total = max(float(np.sum(w)), EPS)
    sx = float(np.sum(np.cos(a) * w)) / total
    sy = float(np.sum(np.sin(a) * w)) / total
    return math.atan2(sy, sx)


def wrap_half_turn(angle: float) -> float:
    """Wrap an axial angle into [-pi/2, pi/2)."""
    return (angle + math.pi / 2) % math.pi - math.pi / 2


def abs_degrees(angle: float) -> float:
    return abs(math.degrees(angle))


def is_horizontal(angle: float) -> bool:
    """|deg| < 30 or > 150."""
    deg = abs_degrees(angle)
    return deg < 30.0 or deg > 150.0


def is_vertical(angle: float) -> bool:
    """60 < |deg| < 120."""
    deg = abs_degrees(angle)
    return 60.0 < deg < 120.0


def is_diagonal(angle: float) -> bool:
    return not is_horizontal(angle) and not is_vertical(angle)
