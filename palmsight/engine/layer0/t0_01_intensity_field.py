"""T0.01 — Intensity Field.

RGBA → luma in [0, 1], optionally contrast-stretched by the global min/max
and remapped through a power law.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from palmsight.engine.context import PipelineContext
from palmsight.engine.registry import Layer, transform

# ITU-R BT.601 luma weights
_LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114])

# A constant image has zero range; floor it so the stretch stays finite.
_MIN_RANGE = 1e-6

# Gamma below this makes every non-zero pixel saturate.
_MIN_GAMMA = 0.1


def to_intensity(
    pixels: NDArray[np.uint8], contrast_stretch: bool = True, gamma: float = 0.9
) -> NDArray[np.float64]:
    gray = pixels[..., :3].astype(np.float64) @ _LUMA_WEIGHTS / 255.0
    if not contrast_stretch:
        return gray

    lo, hi = float(gray.min()), float(gray.max())
    rng = max(hi - lo, _MIN_RANGE)
    norm = np.clip((gray - lo) / rng, 0.0, 1.0)
    return np.power(norm, max(gamma, _MIN_GAMMA))


@transform(
    id="T0.01",
    layer=Layer.PREPROCESSING,
    description="Convert RGBA pixels to a normalized intensity field",
)
def intensity_field(ctx: PipelineContext) -> None:
    if ctx.image is None:
        raise ValueError("No image in context")
    ctx.intensity = to_intensity(
        ctx.image.pixels,
        contrast_stretch=ctx.config.contrast_stretch,
        gamma=ctx.config.contrast_gamma,
    )
