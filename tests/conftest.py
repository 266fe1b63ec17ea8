"""Shared test fixtures."""

from __future__ import annotations

import numpy as np
import pytest

from palmsight.engine.context import RasterImage

CANVAS = 200

# Minimal rule document for the heart line
HEART_RULES = {
    "linhas": {
        "coracao": {
            "presenca": "Coração presente.",
            "robusta": "Linha robusta.",
        }
    }
}

# Absence text for every line, nothing else
ABSENCE_RULES = {
    "linhas": {
        "coracao": {"ausencia": "Sem coração."},
        "cabeca": {"ausencia": "Sem cabeça."},
        "vida": {"ausencia": "Sem vida."},
        "destino": {"ausencia": "Sem destino."},
    }
}


def blank_canvas(width: int = CANVAS, height: int = CANVAS, value: int = 255) -> np.ndarray:
    return np.full((height, width), value, dtype=np.uint8)


def draw_rect(canvas: np.ndarray, x0: int, y0: int, x1: int, y1: int, value: int = 0) -> np.ndarray:
    """Fill [x0, x1) × [y0, y1) in place."""
    canvas[y0:y1, x0:x1] = value
    return canvas


def heart_canvas() -> np.ndarray:
    """Dark horizontal crease centred at y = 0.3 H, 60% of the width long."""
    return draw_rect(blank_canvas(), 40, 58, 160, 62)


def heart_and_fate_canvas() -> np.ndarray:
    canvas = heart_canvas()
    return draw_rect(canvas, 98, 70, 102, 170)


@pytest.fixture
def uniform_image() -> RasterImage:
    return RasterImage.from_array(blank_canvas(value=180))


@pytest.fixture
def heart_image() -> RasterImage:
    return RasterImage.from_array(heart_canvas())


@pytest.fixture
def heart_fate_image() -> RasterImage:
    return RasterImage.from_array(heart_and_fate_canvas())


@pytest.fixture
def heart_rules() -> dict:
    return HEART_RULES


@pytest.fixture
def absence_rules() -> dict:
    return ABSENCE_RULES
