"""Tests for Layer 1 transforms — threshold, components, features, classifier."""

import math

import numpy as np
import pytest

import palmsight.engine.layer0.t0_01_intensity_field
import palmsight.engine.layer0.t0_02_gradient_magnitude
import palmsight.engine.layer1.t1_01_edge_threshold
import palmsight.engine.layer1.t1_02_connected_components
import palmsight.engine.layer1.t1_03_line_features
import palmsight.engine.layer1.t1_04_line_classifier

from palmsight.engine.config import AnalysisConfig
from palmsight.engine.context import BBox, DetectedLine, PipelineContext
from palmsight.engine.labels import LineLabel
from palmsight.engine.layer1.t1_01_edge_threshold import binary_mask, percentile_threshold
from palmsight.engine.layer1.t1_02_connected_components import label_components
from palmsight.engine.layer1.t1_03_line_features import line_from_points, principal_angle
from palmsight.engine.layer1.t1_04_line_classifier import classify_line, select_best
from palmsight.engine.pipeline import Pipeline
from palmsight.engine.registry import Layer, get_registry


def _run_detection(image, config=None) -> PipelineContext:
    ctx = PipelineContext.from_image(image, config)
    pipeline = Pipeline()
    pipeline.run_layer(ctx, Layer.PREPROCESSING)
    pipeline.run_layer(ctx, Layer.SEGMENTATION)
    return ctx


def _line(label, score, cy=60.0, w=120.0):
    return DetectedLine(
        points=np.array([[40.0, cy], [40.0 + w, cy]]),
        angle=0.0,
        score=score,
        bbox=BBox(40.0, cy - 2, w, 4.0),
        label=label,
    )


def test_layer1_registers_4_transforms():
    reg = get_registry()
    layer1 = reg.get_layer(Layer.SEGMENTATION)
    assert [s.id for s in layer1] == ["T1.01", "T1.02", "T1.03", "T1.04"]


def test_percentile_threshold_index():
    mag = np.arange(10, dtype=np.float64)
    assert percentile_threshold(mag, 0.0) == 0.0
    assert percentile_threshold(mag, 0.85) == 8.0
    assert percentile_threshold(mag, 1.0) == 9.0


def test_percentile_monotonic():
    rng = np.random.default_rng(7)
    mag = rng.random((40, 50))
    counts = []
    for p in np.linspace(0.0, 1.0, 11):
        counts.append(int(binary_mask(mag, percentile_threshold(mag, p)).sum()))
    assert all(a >= b for a, b in zip(counts, counts[1:]))


def test_zero_gradient_is_never_foreground():
    mag = np.zeros((5, 5))
    mag[2, 2] = 1.0
    mask = binary_mask(mag, percentile_threshold(mag, 0.5))
    assert mask.sum() == 1


def test_components_eight_connected():
    mask = np.zeros((6, 6), dtype=bool)
    mask[0, 0] = mask[1, 1] = mask[2, 2] = True  # diagonal chain
    mask[5, 5] = True
    labels, count = label_components(mask, min_size=0)
    assert count == 2
    assert labels[0, 0] == labels[2, 2] == 1
    assert np.flatnonzero(labels == 1).tolist() == [0, 7, 14]


def test_components_noise_floor():
    mask = np.zeros((10, 10), dtype=bool)
    mask[0, :5] = True  # 5 pixels
    mask[9, :] = True  # 10 pixels
    labels, count = label_components(mask, min_size=5)
    assert count == 1
    assert labels[0, 0] == 0
    assert labels[9, 0] == 1


def test_principal_angle_axes():
    horizontal = np.array([[float(x), 3.0] for x in range(10)])
    vertical = np.array([[3.0, float(y)] for y in range(10)])
    assert principal_angle(horizontal) == pytest.approx(0.0)
    assert principal_angle(vertical) == pytest.approx(math.pi / 2)


def test_principal_angle_range():
    diagonal = np.array([[float(i), float(-i)] for i in range(10)])
    angle = principal_angle(diagonal)
    assert 0.0 <= angle <= math.pi
    assert angle == pytest.approx(3 * math.pi / 4)


def test_line_from_points_orders_left_to_right():
    pts = np.array([[50.0, 10.0], [10.0, 10.0], [30.0, 10.0]])
    line = line_from_points(pts, 100, 100)
    assert line.points[:, 0].tolist() == [10.0, 30.0, 50.0]
    assert line.bbox.w == 41.0
    assert line.score == pytest.approx(0.41)


def test_line_from_points_vertical_runs_bottom_to_top():
    pts = np.array([[5.0, 10.0], [5.0, 80.0], [5.0, 40.0]])
    line = line_from_points(pts, 100, 100)
    assert line.points[:, 1].tolist() == [80.0, 40.0, 10.0]


def test_thick_stroke_collapses_to_centerline():
    pts = np.array([[float(x), float(y)] for x in range(60, 140) for y in (59, 60, 61)])
    line = line_from_points(pts, 200, 200)
    assert line.num_points == 240
    assert len(line.path) == 80
    assert line.path[:, 0].tolist() == [float(x) for x in range(60, 140)]
    assert np.all(line.path[:, 1] == 60.0)


def test_vertical_centerline_runs_bottom_to_top():
    pts = np.array([[float(x), float(y)] for y in range(40, 160) for x in (99, 100, 101)])
    line = line_from_points(pts, 200, 200)
    assert line.path[0].tolist() == [100.0, 159.0]
    assert line.path[-1].tolist() == [100.0, 40.0]
    assert len(line.path) == 120


def _box(cx, cy, w, h, angle_deg):
    """Candidate described only by its bbox and principal angle."""
    return DetectedLine(
        points=np.array([[cx - w / 2, cy], [cx + w / 2, cy]]),
        angle=math.radians(angle_deg),
        score=max(w, h) / 200.0,
        bbox=BBox(cx - w / 2, cy - h / 2, w, h),
    )


@pytest.mark.parametrize(
    "candidate, label",
    [
        # coracao: horizontal, 0.20-0.40 H, longer than 0.35 W
        (_box(100, 60, 120, 4, 0), LineLabel.CORACAO),
        (_box(100, 38, 120, 4, 0), None),
        (_box(100, 60, 68, 4, 0), None),
        # cabeca: horizontal or diagonal, 0.40-0.60 H
        (_box(100, 100, 120, 4, 0), LineLabel.CABECA),
        (_box(100, 100, 100, 100, 45), LineLabel.CABECA),
        (_box(100, 124, 100, 100, 45), None),
        # destino: vertical, 0.40-0.60 W, longer than 0.40 H
        (_box(100, 120, 4, 100, 90), LineLabel.DESTINO),
        (_box(124, 120, 4, 100, 90), None),
        (_box(100, 120, 4, 78, 90), None),
        # vida: diagonal, 0.20-0.45 W, longer than 0.35 max(W, H)
        (_box(60, 130, 80, 80, 135), LineLabel.VIDA),
        (_box(94, 130, 80, 80, 135), None),
        (_box(60, 130, 68, 68, 135), None),
    ],
)
def test_classify_line_bands(candidate, label):
    assert classify_line(candidate, 200, 200) == label


def test_classifier_keeps_one_line_per_label():
    candidates = [
        _line(LineLabel.CORACAO, 0.5),
        _line(LineLabel.CORACAO, 0.7),
        _line(LineLabel.CORACAO, 0.7),
        _line(LineLabel.CABECA, 0.4, cy=100.0),
        _line(None, 0.9),
    ]
    best = select_best(candidates)
    assert [l.label for l in best] == [LineLabel.CABECA, LineLabel.CORACAO]
    assert best[1] is candidates[1]


def test_uniform_image_has_no_components(uniform_image):
    ctx = _run_detection(uniform_image)
    assert ctx.errors == {}
    assert ctx.component_labels.max() == 0
    assert ctx.lines == []


def test_detects_heart_line(heart_image):
    ctx = _run_detection(heart_image)
    assert ctx.errors == {}
    assert ctx.component_labels.max() == 1
    assert [l.label for l in ctx.lines] == [LineLabel.CORACAO]
    heart = ctx.lines[0]
    assert heart.bbox.center[1] == pytest.approx(60.0)
    assert heart.points[0][0] < heart.points[-1][0]
    # Both edge bands of the crease collapse onto its middle row
    assert heart.path[0].tolist() == [39.0, 59.5]
    assert heart.path[-1].tolist() == [160.0, 59.5]
    assert np.all(heart.path[:, 1] == 59.5)


def test_detects_heart_and_fate(heart_fate_image):
    ctx = _run_detection(heart_fate_image)
    assert [l.label for l in ctx.lines] == [LineLabel.CORACAO, LineLabel.DESTINO]
    fate = ctx.lines[1]
    assert np.all(fate.path[:, 0] == 99.5)
    assert fate.path[0][1] == 170.0 and fate.path[-1][1] == 69.0


def test_min_component_size_drops_everything(heart_image):
    ctx = _run_detection(heart_image, AnalysisConfig(min_component_size=100_000))
    assert ctx.component_labels.max() == 0
    assert ctx.lines == []
