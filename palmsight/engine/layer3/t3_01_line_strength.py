"""T3.01 — Line Strength.

Robust when either the gradient ratio or the thickness clears its robust
cutoff; pale when either falls to its pale cutoff; neutral otherwise.
"""

from __future__ import annotations

from palmsight.engine.config import AnalysisConfig
from palmsight.engine.context import DetectedLine, PipelineContext
from palmsight.engine.labels import Condition
from palmsight.engine.registry import Layer, transform
from palmsight.utils.math_helpers import safe_ratio


def classify_strength(line: DetectedLine, config: AnalysisConfig) -> Condition | None:
    ratio = safe_ratio(line.avg_mag, line.mag_ref)
    if ratio >= config.mag_robust_ratio or line.thickness >= config.thickness_robust_ratio:
        return Condition.ROBUSTA
    if ratio <= config.mag_pale_ratio or line.thickness <= config.thickness_pale_ratio:
        return Condition.PALIDA
    return None


@transform(
    id="T3.01",
    layer=Layer.GEOMETRY,
    dependencies=["T2.01"],
    description="Classify each line as robust, pale or neutral",
)
def line_strength(ctx: PipelineContext) -> None:
    for line in ctx.normalized_lines:
        if line.label is None:
            continue
        feats = ctx.features_for(line.label)
        feats.mag_ratio = safe_ratio(line.avg_mag, line.mag_ref)
        feats.strength = classify_strength(line, ctx.config)
