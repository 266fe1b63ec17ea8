"""T1.02 — Connected Components.

8-connected labelling of the edge mask. Components with no more than
``min_component_size`` pixels are dropped as noise. Kept components are
relabelled 1..k in raster order of their first pixel.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy import ndimage

from palmsight.engine.context import PipelineContext
from palmsight.engine.registry import Layer, transform

_EIGHT_CONNECTED = np.ones((3, 3), dtype=bool)


def label_components(mask: NDArray[np.bool_], min_size: int) -> tuple[NDArray[np.int32], int]:
    """Return (label image of kept components, number kept)."""
    labels, n = ndimage.label(mask, structure=_EIGHT_CONNECTED)
    if n == 0:
        return np.zeros(mask.shape, dtype=np.int32), 0

    sizes = np.bincount(labels.ravel(), minlength=n + 1)
    keep = np.flatnonzero(sizes > min_size)
    keep = keep[keep != 0]

    remap = np.zeros(n + 1, dtype=np.int32)
    remap[keep] = np.arange(1, len(keep) + 1, dtype=np.int32)
    return remap[labels], len(keep)


@transform(
    id="T1.02",
    layer=Layer.SEGMENTATION,
    dependencies=["T1.01"],
    description="Extract 8-connected edge components above the noise floor",
)
def connected_components(ctx: PipelineContext) -> None:
    if ctx.edge_mask is None:
        raise ValueError("Edge mask missing")
    ctx.component_labels, _ = label_components(ctx.edge_mask, ctx.config.min_component_size)
