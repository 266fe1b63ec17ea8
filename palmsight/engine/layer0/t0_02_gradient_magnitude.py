"""T0.02 — Gradient Magnitude.

3×3 Sobel pair over interior pixels; the one-pixel border stays at zero.

    kx = [[-1, 0, 1],      ky = [[-1, -2, -1],
          [-2, 0, 2],            [ 0,  0,  0],
          [-1, 0, 1]]            [ 1,  2,  1]]
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from palmsight.engine.context import PipelineContext
from palmsight.engine.registry import Layer, transform


def sobel_magnitude(field: NDArray[np.float64]) -> NDArray[np.float64]:
    """Euclidean norm of the two Sobel responses.

    Responses are accumulated as paired differences (right - left, bottom -
    top) so a constant neighbourhood gives exactly zero.
    """
    h, w = field.shape
    mag = np.zeros((h, w), dtype=np.float64)
    if h < 3 or w < 3:
        return mag

    top, mid, bot = field[:-2], field[1:-1], field[2:]
    gx = (
        (top[:, 2:] - top[:, :-2])
        + 2.0 * (mid[:, 2:] - mid[:, :-2])
        + (bot[:, 2:] - bot[:, :-2])
    )
    left, center, right = field[:, :-2], field[:, 1:-1], field[:, 2:]
    gy = (
        (left[2:] - left[:-2])
        + 2.0 * (center[2:] - center[:-2])
        + (right[2:] - right[:-2])
    )
    mag[1:-1, 1:-1] = np.hypot(gx, gy)
    return mag


@transform(
    id="T0.02",
    layer=Layer.PREPROCESSING,
    dependencies=["T0.01"],
    description="Compute Sobel gradient magnitude",
)
def gradient_magnitude(ctx: PipelineContext) -> None:
    if ctx.intensity is None:
        raise ValueError("Intensity field missing")
    ctx.gradient = sobel_magnitude(ctx.intensity)
