"""End-to-end tests — detection plus narrative composition."""

import logging
import math

import numpy as np
import pytest

from palmsight.engine.analysis import analyze_image, detect_palm_lines, interpret_hand, interpret_lines
from palmsight.engine.config import AnalysisConfig
from palmsight.engine.context import PipelineContext, RasterImage
from palmsight.engine.interpreter import line_conditions
from palmsight.engine.labels import Condition, LineLabel
from palmsight.engine.layer1 import t1_03_line_features
from palmsight.engine.layer1.t1_03_line_features import line_from_points
from palmsight.engine.pipeline import create_pipeline
from palmsight.engine.rules import RulesTable, default_rules
from tests.conftest import blank_canvas, draw_rect

W = H = 200


def _heart_line():
    """Horizontal line at y = 0.3 H spanning 40% of the width."""
    xs = np.arange(60, 140, dtype=np.float64)
    pts = np.column_stack([xs, np.full_like(xs, 0.3 * H)])
    return line_from_points(pts, W, H, avg_mag=1.5, mag_ref=1.0).with_label(LineLabel.CORACAO)


def test_robust_heart_narrative(heart_rules):
    narrative = interpret_hand([_heart_line()], RulesTable.from_mapping(heart_rules), W, H)
    assert "Coração presente. Linha robusta." in narrative
    assert narrative == "Coração presente. Linha robusta."


def test_empty_table_gives_empty_narrative(heart_image):
    result = analyze_image(heart_image, RulesTable.empty())
    assert result.narrative == ""
    assert result.labels == [LineLabel.CORACAO]
    assert interpret_hand([_heart_line()], RulesTable.empty(), W, H) == ""


def test_absence_fragments_in_narrative_order(uniform_image, absence_rules):
    result = analyze_image(uniform_image, RulesTable.from_mapping(absence_rules))
    assert result.lines == []
    assert result.narrative == "Sem coração. Sem cabeça. Sem vida. Sem destino."
    assert not result.degraded


def test_presence_interleaves_with_absence(absence_rules, heart_rules):
    document = {"linhas": {**absence_rules["linhas"], "coracao": heart_rules["linhas"]["coracao"]}}
    narrative = interpret_hand([_heart_line()], RulesTable.from_mapping(document), W, H)
    assert narrative == "Coração presente. Linha robusta. Sem cabeça. Sem vida. Sem destino."


def test_missing_rules_is_degraded_not_fatal(heart_image):
    result = analyze_image(heart_image, None)
    assert result.degraded
    assert result.narrative == ""
    assert result.labels == [LineLabel.CORACAO]
    assert result.warnings


def test_detect_and_analyze_image(heart_image, heart_rules):
    lines = detect_palm_lines(heart_image)
    assert [l.label for l in lines] == [LineLabel.CORACAO]

    result = analyze_image(heart_image, RulesTable.from_mapping(heart_rules))
    assert result.narrative == "Coração presente. Linha robusta."
    assert result.errors == {}
    assert result.transforms_completed == 12


def test_heart_and_fate_with_default_rules(heart_fate_image):
    result = analyze_image(heart_fate_image, default_rules())
    assert result.labels == [LineLabel.CORACAO, LineLabel.DESTINO]
    assert set(result.features) == {LineLabel.CORACAO, LineLabel.DESTINO}
    assert result.narrative
    # Fate is the rotation baseline and is vertical already
    assert abs(result.rotation) < 0.1
    data = result.to_dict(include_points=False)
    assert "points" not in data["lines"][0]
    assert data["features"]["coracao"]["conditions"] == ["robusta", "longa", "descendente"]
    assert data["features"]["destino"]["conditions"] == ["robusta", "vertical"]


def test_straight_creases_read_straight(heart_fate_image):
    result = analyze_image(heart_fate_image, default_rules())
    heart = result.features[LineLabel.CORACAO]
    fate = result.features[LineLabel.DESTINO]
    # Crease edges are two bands wide; the centerline follows the middle
    assert heart.length_ratio == pytest.approx(121 / 200)
    assert fate.length_ratio == pytest.approx(101 / 200)
    assert heart.end_angle == pytest.approx(0.0)
    assert fate.end_angle == pytest.approx(-math.pi / 2)
    assert not heart.end_bifurcated
    assert not fate.end_bifurcated


def test_short_crease_is_curta():
    image = RasterImage.from_array(draw_rect(blank_canvas(), 60, 58, 140, 62))
    result = analyze_image(image, default_rules())
    assert result.labels == [LineLabel.CORACAO]
    feats = result.features[LineLabel.CORACAO]
    assert feats.length_ratio == pytest.approx(81 / 200)
    assert feats.ordered_conditions() == [Condition.ROBUSTA, Condition.CURTA, Condition.DESCENDENTE]


def test_detection_logs_failed_steps(heart_image, monkeypatch, caplog):
    def broken(*args, **kwargs):
        raise RuntimeError("feature extraction broke")

    monkeypatch.setattr(t1_03_line_features, "extract_line", broken)
    with caplog.at_level(logging.WARNING, logger="palmsight.engine.analysis"):
        lines = detect_palm_lines(heart_image)
    assert lines == []
    messages = [r.getMessage() for r in caplog.records if r.name == "palmsight.engine.analysis"]
    assert any("T1.03" in m and "feature extraction broke" in m for m in messages)


def test_line_conditions_for_absent_and_present():
    ctx = create_pipeline().run(PipelineContext.from_lines([_heart_line()], W, H))
    assert line_conditions(ctx, LineLabel.VIDA) == [Condition.AUSENCIA]
    assert line_conditions(ctx, LineLabel.CORACAO)[:3] == [Condition.PRESENCA, Condition.ROBUSTA, Condition.CURTA]


def test_config_snapshot_changes_outcome(heart_rules):
    strict = AnalysisConfig(mag_robust_ratio=2.0)
    result = interpret_lines([_heart_line()], RulesTable.from_mapping(heart_rules), W, H, config=strict)
    assert result.narrative == "Coração presente."
    assert result.features[LineLabel.CORACAO].strength is None
