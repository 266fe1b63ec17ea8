"""T1.01 — Edge Threshold.

Cut the gradient field at a rank percentile and binarize it. Raising the
percentile can only raise the cutoff, so the mask never grows.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from palmsight.engine.context import PipelineContext
from palmsight.engine.registry import Layer, transform


def percentile_threshold(magnitude: NDArray[np.float64], percentile: float) -> float:
    """Value at index floor(n * percentile) of the sorted magnitudes."""
    values = np.sort(magnitude, axis=None)
    if values.size == 0:
        return 0.0
    idx = min(int(np.floor(values.size * percentile)), values.size - 1)
    return float(values[max(idx, 0)])


def binary_mask(magnitude: NDArray[np.float64], threshold: float) -> NDArray[np.bool_]:
    """Foreground = at or above the cutoff. Zero-gradient pixels are never edges."""
    return (magnitude >= threshold) & (magnitude > 0.0)


@transform(
    id="T1.01",
    layer=Layer.SEGMENTATION,
    dependencies=["T0.02"],
    description="Threshold gradient magnitude at a percentile",
)
def edge_threshold(ctx: PipelineContext) -> None:
    if ctx.gradient is None:
        raise ValueError("Gradient field missing")
    ctx.threshold = percentile_threshold(ctx.gradient, ctx.config.edges_percentile)
    ctx.edge_mask = binary_mask(ctx.gradient, ctx.threshold)
