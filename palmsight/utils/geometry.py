"""Leaf-node geometry helpers for point sequences. No engine imports."""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray

from palmsight.utils.math_helpers import circular_mean


def bbox(points: NDArray[np.float64]) -> tuple[float, float, float, float]:
    """Compute (xmin, ymin, xmax, ymax) bounding box."""
    if len(points) == 0:
        return (0.0, 0.0, 0.0, 0.0)
    return (
        float(np.min(points[:, 0])),
        float(np.min(points[:, 1])),
        float(np.max(points[:, 0])),
        float(np.max(points[:, 1])),
    )


def polyline_length(points: NDArray[np.float64]) -> float:
    """Sum of consecutive point-to-point distances."""
    if len(points) < 2:
        return 0.0
    diffs = np.diff(points, axis=0)
    return float(np.sum(np.hypot(diffs[:, 0], diffs[:, 1])))


def tangent_angles(points: NDArray[np.float64]) -> NDArray[np.float64]:
    """Tangent angle of each segment (atan2 of forward difference)."""
    if len(points) < 2:
        return np.empty(0)
    diffs = np.diff(points, axis=0)
    return np.arctan2(diffs[:, 1], diffs[:, 0])


def chord_angle(points: NDArray[np.float64]) -> float:
    """Direction from the first to the last point."""
    if len(points) < 2:
        return 0.0
    dx, dy = points[-1] - points[0]
    return math.atan2(float(dy), float(dx))


def segment_angles_near_end(points: NDArray[np.float64], near: str, sample: int) -> NDArray[np.float64]:
    """Tangent angles of up to ``sample`` segments nearest one end.

    ``near`` is "start" or "end". End segments are returned nearest-first.
    """
    angles = tangent_angles(points)
    n = min(sample, len(angles))
    if n == 0:
        return angles
    if near == "start":
        return angles[:n]
    return angles[::-1][:n]


def direction_near_end(points: NDArray[np.float64], near: str, sample: int = 12) -> float:
    """Circular mean of the tangent directions near one end (0.0 if < 2 points)."""
    return circular_mean(segment_angles_near_end(points, near, sample))


def rotate_points(
    points: NDArray[np.float64], angle: float, center: tuple[float, float]
) -> NDArray[np.float64]:
    """Rotate points by ``angle`` radians about ``center``."""
    if len(points) == 0:
        return points.copy()
    c, s = math.cos(angle), math.sin(angle)
    d = points - np.asarray(center, dtype=np.float64)
    out = np.empty_like(d, dtype=np.float64)
    out[:, 0] = center[0] + d[:, 0] * c - d[:, 1] * s
    out[:, 1] = center[1] + d[:, 0] * s + d[:, 1] * c
    return out


def _forward_axis(angle: float) -> tuple[float, float]:
    """Unit axis at ``angle``, flipped to run left→right or bottom→top."""
    ux, uy = math.cos(angle), math.sin(angle)
    if abs(ux) >= abs(uy):
        if ux < 0:
            ux, uy = -ux, -uy
    elif uy > 0:
        ux, uy = -ux, -uy
    return ux, uy


def order_along_axis(points: NDArray[np.float64], angle: float) -> NDArray[np.float64]:
    """Sort points by their projection on the axis at ``angle``.

    Horizontal-dominant axes run left→right; vertical-dominant axes run
    bottom→top (decreasing image y).
    """
    if len(points) < 2:
        return points.copy()
    ux, uy = _forward_axis(angle)
    proj = points[:, 0] * ux + points[:, 1] * uy
    return points[np.argsort(proj, kind="stable")]


def centerline(points: NDArray[np.float64], angle: float, step: float = 1.0) -> NDArray[np.float64]:
    """Ordered centerline of a stroke lying along ``angle``.

    Points are binned by their projection on the axis in ``step`` increments
    and each non-empty bin collapses to its centroid, so a stroke of any
    thickness yields one point per step. Same direction as ``order_along_axis``.
    """
    if len(points) < 2:
        return points.astype(np.float64, copy=True)
    ux, uy = _forward_axis(angle)
    proj = points[:, 0] * ux + points[:, 1] * uy
    bins = np.rint((proj - proj.min()) / step).astype(np.int64)
    counts = np.bincount(bins)
    sum_x = np.bincount(bins, weights=points[:, 0])
    sum_y = np.bincount(bins, weights=points[:, 1])
    filled = counts > 0
    return np.column_stack([sum_x[filled] / counts[filled], sum_y[filled] / counts[filled]])


def extreme_x_points(points: NDArray[np.float64]) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """(leftmost, rightmost) points."""
    return points[int(np.argmin(points[:, 0]))], points[int(np.argmax(points[:, 0]))]
