"""T2.01 — Orientation Normalization.

De-skew the hand with a single planar rotation. With a fate line the rotation
is its tilt away from vertical; otherwise it is the length-weighted circular
mean of every line's centerline chord direction. Points and centerlines rotate by the negative of
that angle about the center of their union bounding box.
"""

from __future__ import annotations

import math

import numpy as np

from palmsight.engine.context import DetectedLine, PipelineContext
from palmsight.engine.labels import LineLabel
from palmsight.engine.registry import Layer, transform
from palmsight.utils.geometry import bbox, chord_angle, polyline_length, rotate_points
from palmsight.utils.math_helpers import EPS, circular_mean, wrap_half_turn


def weighted_mean_direction(lines: list[DetectedLine]) -> float:
    """Circular mean of chord directions, each weighted by polyline length."""
    angles: list[float] = []
    weights: list[float] = []
    for line in lines:
        trace = line.trace
        if len(trace) < 2:
            continue
        angles.append(chord_angle(trace))
        weights.append(polyline_length(trace))
    if not angles or sum(weights) < EPS:
        return 0.0
    return circular_mean(angles, weights)


def choose_rotation(lines: list[DetectedLine]) -> float:
    fate = next((l for l in lines if l.label == LineLabel.DESTINO), None)
    if fate is not None and len(fate.trace) >= 2:
        return wrap_half_turn(chord_angle(fate.trace) - math.pi / 2)
    return weighted_mean_direction(lines)


def rotation_center(lines: list[DetectedLine], canvas_width: float, canvas_height: float) -> tuple[float, float]:
    """Center of the union bbox; canvas center when that box is degenerate."""
    populated = [l.points for l in lines if l.num_points]
    if populated:
        x0, y0, x1, y1 = bbox(np.vstack(populated))
        if x1 - x0 > EPS or y1 - y0 > EPS:
            return ((x0 + x1) / 2, (y0 + y1) / 2)
    return (canvas_width / 2, canvas_height / 2)


def normalize_orientation(
    lines: list[DetectedLine], canvas_width: float, canvas_height: float
) -> tuple[list[DetectedLine], float, tuple[float, float]]:
    """Return (rotated lines, rotation angle, center)."""
    rotation = choose_rotation(lines)
    center = rotation_center(lines, canvas_width, canvas_height)
    rotated = [
        l.with_points(rotate_points(l.points, -rotation, center), rotate_points(l.path, -rotation, center))
        for l in lines
    ]
    return rotated, rotation, center


@transform(
    id="T2.01",
    layer=Layer.NORMALIZATION,
    dependencies=["T1.04"],
    description="Rotate the labeled line set to a canonical hand orientation",
)
def orientation_normalization(ctx: PipelineContext) -> None:
    ctx.normalized_lines, ctx.rotation, ctx.rotation_center = normalize_orientation(
        ctx.lines, ctx.canvas_width, ctx.canvas_height
    )
