"""T1.03 — Line Features.

Per component: bounding box, principal angle (leading eigenvector of the 2×2
coordinate covariance), length score, mean gradient magnitude and thickness.
Member pixels are sorted along the principal axis, and the component is
collapsed to a centerline (one centroid per axis step) so that later
start/end analyses follow the ridge rather than step across its thickness.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray
from skimage.measure import regionprops

from palmsight.engine.context import BBox, DetectedLine, PipelineContext
from palmsight.engine.registry import Layer, transform
from palmsight.utils.geometry import centerline, order_along_axis


def principal_angle(points: NDArray[np.float64]) -> float:
    """Direction of the leading covariance eigenvector, in [0, pi].

    Equivalent to atan2(vy, vx) with v = (sxy, lambda_max - sxx), written in
    the half-angle form so axis-aligned clusters land exactly on 0 or pi/2.
    """
    if len(points) < 2:
        return 0.0
    centered = points - points.mean(axis=0)
    sxx = float(np.sum(centered[:, 0] ** 2))
    syy = float(np.sum(centered[:, 1] ** 2))
    sxy = float(np.sum(centered[:, 0] * centered[:, 1]))
    angle = 0.5 * math.atan2(2.0 * sxy, sxx - syy)
    return angle + math.pi if angle < 0 else angle


def extract_line(
    points: NDArray[np.float64],
    bounds: tuple[int, int, int, int],
    avg_mag: float,
    threshold: float,
    canvas_width: float,
    canvas_height: float,
) -> DetectedLine:
    """Build a DetectedLine from member pixels; ``bounds`` is (min_row, min_col, max_row, max_col), max exclusive."""
    min_row, min_col, max_row, max_col = bounds
    box = BBox(x=float(min_col), y=float(min_row), w=float(max_col - min_col), h=float(max_row - min_row))
    angle = principal_angle(points)
    return DetectedLine(
        points=order_along_axis(points, angle),
        path=centerline(points, angle),
        angle=angle,
        score=box.major / min(canvas_width, canvas_height),
        bbox=box,
        avg_mag=avg_mag,
        mag_ref=threshold,
        thickness=len(points) / max(1.0, box.major),
    )


@transform(
    id="T1.03",
    layer=Layer.SEGMENTATION,
    dependencies=["T1.02"],
    description="Compute bbox, principal angle, score, magnitude and thickness per component",
)
def line_features(ctx: PipelineContext) -> None:
    if ctx.component_labels is None or ctx.gradient is None:
        raise ValueError("Components missing")
    ctx.candidates = []
    for region in regionprops(ctx.component_labels, intensity_image=ctx.gradient):
        coords = region.coords  # (row, col)
        points = np.column_stack([coords[:, 1], coords[:, 0]]).astype(np.float64)
        ctx.candidates.append(
            extract_line(
                points,
                region.bbox,
                float(region.intensity_mean),
                ctx.threshold,
                ctx.canvas_width,
                ctx.canvas_height,
            )
        )


def line_from_points(
    points: NDArray[np.float64],
    canvas_width: float,
    canvas_height: float,
    avg_mag: float = 0.0,
    mag_ref: float = 1.0,
) -> DetectedLine:
    """DetectedLine for pixel points supplied from outside the segmenter."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) == 0:
        raise ValueError("A line needs at least one point")
    x0, y0 = np.floor(pts.min(axis=0)).astype(int)
    x1, y1 = np.floor(pts.max(axis=0)).astype(int) + 1
    return extract_line(pts, (int(y0), int(x0), int(y1), int(x1)), avg_mag, mag_ref, canvas_width, canvas_height)
