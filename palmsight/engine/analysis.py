"""Entry points: detect lines in a raster, interpret lines, or do both."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any

from palmsight.engine.config import AnalysisConfig
from palmsight.engine.context import DetectedLine, LineFeatures, PipelineContext, RasterImage
from palmsight.engine.interpreter import HandReading, interpret
from palmsight.engine.labels import LineLabel
from palmsight.engine.pipeline import Pipeline, create_pipeline
from palmsight.engine.registry import IMAGE_LAYERS
from palmsight.engine.rules import RulesTable

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """≤4 labeled lines plus the composed narrative."""

    lines: list[DetectedLine] = field(default_factory=list)  # image coordinates
    normalized_lines: list[DetectedLine] = field(default_factory=list)
    rotation: float = 0.0
    features: dict[LineLabel, LineFeatures] = field(default_factory=dict)
    reading: HandReading = field(default_factory=HandReading)
    warnings: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)
    transforms_completed: int = 0

    @property
    def narrative(self) -> str:
        return self.reading.to_text()

    @property
    def degraded(self) -> bool:
        return bool(self.warnings or self.errors)

    @property
    def labels(self) -> list[LineLabel]:
        return [l.label for l in self.lines if l.label is not None]

    def to_dict(self, include_points: bool = True) -> dict[str, Any]:
        return {
            "narrative": self.narrative,
            "lines": [l.to_dict(include_points) for l in self.lines],
            "rotation_deg": math.degrees(self.rotation),
            "features": {
                label.value: {
                    "strength": f.strength.value if f.strength else None,
                    "length_class": f.length_class.value if f.length_class else None,
                    "length_ratio": f.length_ratio,
                    "mag_ratio": f.mag_ratio,
                    "start_mount": f.start_mount.value if f.start_mount else None,
                    "end_mount": f.right_mount.value if f.right_mount else None,
                    "end_bifurcated": f.end_bifurcated,
                    "conditions": [c.value for c in f.ordered_conditions()],
                }
                for label, f in self.features.items()
            },
            "degraded": self.degraded,
            "warnings": list(self.warnings),
            "errors": dict(self.errors),
            "transforms_completed": self.transforms_completed,
        }


def build_result(ctx: PipelineContext, rules: RulesTable) -> AnalysisResult:
    """Package a finished context and its narrative."""
    warnings: list[str] = []
    if rules.degraded:
        warnings.extend(rules.problems or ("Rule table is malformed",))
    return AnalysisResult(
        lines=list(ctx.lines),
        normalized_lines=list(ctx.normalized_lines),
        rotation=ctx.rotation,
        features=dict(ctx.features),
        reading=interpret(ctx, rules),
        warnings=warnings,
        errors=dict(ctx.errors),
        transforms_completed=len(ctx.completed_transforms),
    )


def analyze_image(
    image: RasterImage,
    rules: RulesTable | None = None,
    config: AnalysisConfig | None = None,
    pipeline: Pipeline | None = None,
) -> AnalysisResult:
    """Detect and interpret. ``config`` is the snapshot used for the whole run."""
    ctx = PipelineContext.from_image(image, config)
    ctx = (pipeline or create_pipeline()).run(ctx)
    result = build_result(ctx, rules if rules is not None else RulesTable.from_mapping(None))
    logger.info("Analyzed %dx%d image: %s", image.width, image.height, [l.value for l in result.labels])
    return result


def detect_palm_lines(image: RasterImage, config: AnalysisConfig | None = None) -> list[DetectedLine]:
    """Detection stage only: the ≤4 labeled lines in image coordinates."""
    ctx = PipelineContext.from_image(image, config)
    pipeline = create_pipeline()
    for layer in IMAGE_LAYERS:
        pipeline.run_layer(ctx, layer)
    for tid, message in ctx.errors.items():
        logger.warning("Detection step %s failed: %s", tid, message)
    return list(ctx.lines)


def interpret_lines(
    lines: list[DetectedLine],
    rules: RulesTable,
    canvas_width: float,
    canvas_height: float,
    config: AnalysisConfig | None = None,
    pipeline: Pipeline | None = None,
) -> AnalysisResult:
    """Interpretation stage only, over lines detected elsewhere."""
    ctx = PipelineContext.from_lines(lines, canvas_width, canvas_height, config)
    ctx = (pipeline or create_pipeline()).run(ctx)
    return build_result(ctx, rules)


def interpret_hand(
    lines: list[DetectedLine],
    rules: RulesTable,
    canvas_width: float,
    canvas_height: float,
    config: AnalysisConfig | None = None,
) -> str:
    """Narrative for ``lines`` on a canvas of the given size."""
    return interpret_lines(lines, rules, canvas_width, canvas_height, config).narrative
