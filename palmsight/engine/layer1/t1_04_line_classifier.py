"""T1.04 — Line Classifier.

Zone / orientation / length heuristics assign each candidate at most one
anatomical label; the highest-scoring candidate per label survives.

| Label   | Orientation          | Band (bbox center)      | Min length          |
|---------|----------------------|-------------------------|---------------------|
| coracao | horizontal           | 0.20 ≤ y/H ≤ 0.40       | > 0.35 · W          |
| cabeca  | horizontal/diagonal  | 0.40 ≤ y/H ≤ 0.60       | > 0.35 · W          |
| destino | vertical             | 0.40 ≤ x/W ≤ 0.60       | > 0.40 · H          |
| vida    | diagonal             | 0.20 ≤ x/W ≤ 0.45       | > 0.35 · max(W, H)  |
"""

from __future__ import annotations

from palmsight.engine.context import DetectedLine, PipelineContext
from palmsight.engine.labels import DETECTION_ORDER, LineLabel
from palmsight.engine.registry import Layer, transform
from palmsight.utils.math_helpers import is_diagonal, is_horizontal, is_vertical

_HEART_BAND = (0.20, 0.40)
_HEAD_BAND = (0.40, 0.60)
_FATE_BAND = (0.40, 0.60)
_LIFE_BAND = (0.20, 0.45)

_HEART_MIN_LEN = 0.35  # × width
_HEAD_MIN_LEN = 0.35  # × width
_FATE_MIN_LEN = 0.40  # × height
_LIFE_MIN_LEN = 0.35  # × max(width, height)


def _within(value: float, band: tuple[float, float]) -> bool:
    return band[0] <= value <= band[1]


def classify_line(line: DetectedLine, width: float, height: float) -> LineLabel | None:
    """First matching label in heart, head, fate, life order; None if nothing fits."""
    cx, cy = line.bbox.center
    norm_x, norm_y = cx / width, cy / height
    length = line.bbox.major
    horizontal = is_horizontal(line.angle)

    if horizontal and _within(norm_y, _HEART_BAND) and length > _HEART_MIN_LEN * width:
        return LineLabel.CORACAO
    if (horizontal or is_diagonal(line.angle)) and _within(norm_y, _HEAD_BAND) and length > _HEAD_MIN_LEN * width:
        return LineLabel.CABECA
    if is_vertical(line.angle) and _within(norm_x, _FATE_BAND) and length > _FATE_MIN_LEN * height:
        return LineLabel.DESTINO
    if is_diagonal(line.angle) and _within(norm_x, _LIFE_BAND) and length > _LIFE_MIN_LEN * max(width, height):
        return LineLabel.VIDA
    return None


def select_best(candidates: list[DetectedLine]) -> list[DetectedLine]:
    """Keep the highest-scoring labeled candidate per label, in detection order."""
    best: dict[LineLabel, DetectedLine] = {}
    for line in candidates:
        if line.label is None:
            continue
        current = best.get(line.label)
        if current is None or line.score > current.score:
            best[line.label] = line
    return [best[label] for label in DETECTION_ORDER if label in best]


@transform(
    id="T1.04",
    layer=Layer.SEGMENTATION,
    dependencies=["T1.03"],
    description="Label candidates as life/head/heart/fate and keep the best per label",
)
def line_classifier(ctx: PipelineContext) -> None:
    ctx.candidates = [
        line.with_label(classify_line(line, ctx.canvas_width, ctx.canvas_height))
        for line in ctx.candidates
    ]
    ctx.lines = select_best(ctx.candidates)
