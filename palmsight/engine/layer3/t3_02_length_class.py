"""T3.02 — Length Class.

Polyline length against a per-label canvas reference: long at ≥ 0.6,
short at ≤ 0.45, unclassified in between.
"""

from __future__ import annotations

from palmsight.engine.context import PipelineContext
from palmsight.engine.labels import Condition, LineLabel
from palmsight.engine.registry import Layer, transform
from palmsight.utils.geometry import polyline_length
from palmsight.utils.math_helpers import safe_ratio

LONG_RATIO = 0.6
SHORT_RATIO = 0.45


def reference_length(label: LineLabel, canvas_width: float, canvas_height: float) -> float:
    if label in (LineLabel.CORACAO, LineLabel.CABECA):
        return canvas_width
    if label == LineLabel.VIDA:
        return max(canvas_width, canvas_height)
    return canvas_height


def classify_length(ratio: float) -> Condition | None:
    if ratio >= LONG_RATIO:
        return Condition.LONGA
    if ratio <= SHORT_RATIO:
        return Condition.CURTA
    return None


@transform(
    id="T3.02",
    layer=Layer.GEOMETRY,
    dependencies=["T2.01"],
    description="Classify each line as long or short relative to the canvas",
)
def length_class(ctx: PipelineContext) -> None:
    for line in ctx.normalized_lines:
        if line.label is None:
            continue
        feats = ctx.features_for(line.label)
        feats.length = polyline_length(line.trace)
        feats.length_ratio = safe_ratio(
            feats.length, reference_length(line.label, ctx.canvas_width, ctx.canvas_height)
        )
        feats.length_class = classify_length(feats.length_ratio)
