"""T3.05 — Directional Policy.

Turn end tangents, end mounts and bifurcation flags into the ordered list of
direction/zone conditions each line satisfies. Directions are read in screen
convention (y up), so "ascending" means toward the top of the image.
"""

from __future__ import annotations

import math

from palmsight.engine.context import LineFeatures, PipelineContext
from palmsight.engine.labels import TERMINATION_BY_MOUNT, Condition, LineLabel, Mount
from palmsight.engine.registry import Layer, transform
from palmsight.utils.math_helpers import circular_mean, is_diagonal

# Tolerance for "pointing straight up/down".
_VERTICAL_TOLERANCE = math.pi / 6


def screen_angle(image_angle: float) -> float:
    """Image-coordinate angle (y down) → screen angle (y up)."""
    return -image_angle


def _near_vertical(image_angle: float) -> bool:
    a = screen_angle(image_angle)
    return abs(a - math.pi / 2) < _VERTICAL_TOLERANCE or abs(a + math.pi / 2) < _VERTICAL_TOLERANCE


def _termination(mount: Mount | None) -> list[Condition]:
    cond = TERMINATION_BY_MOUNT.get(mount) if mount is not None else None
    return [cond] if cond is not None else []


def heart_conditions(f: LineFeatures) -> list[Condition]:
    out: list[Condition] = []
    end = screen_angle(f.end_angle)
    out.append(Condition.ASCENDENTE if end > 0 else Condition.DESCENDENTE)
    toward_upper_right = 0.0 <= end <= math.pi / 2
    if f.right_mount == Mount.JUPITER and toward_upper_right and f.end_bifurcated:
        out.append(Condition.BIFURCADA_PARA_JUPITER)
    if f.right_mount == Mount.SATURN and abs(end - math.pi / 2) < _VERTICAL_TOLERANCE:
        out.append(Condition.TERMINA_EM_SATURNO)
    if f.left_mount == Mount.MERCURY:
        out.append(Condition.ORIGEM_EM_MERCURIO)
    return out


def head_conditions(f: LineFeatures) -> list[Condition]:
    out: list[Condition] = []
    if is_diagonal(circular_mean([f.start_angle, f.end_angle])):
        out.append(Condition.DIAGONAL)
    if f.right_mount == Mount.JUPITER and f.end_bifurcated:
        out.append(Condition.RAMIFICADA)
    out.extend(_termination(f.right_mount))
    return out


def life_conditions(f: LineFeatures) -> list[Condition]:
    return [Condition.ORIGEM_EM_VENUS] if f.start_mount == Mount.VENUS else []


def fate_conditions(f: LineFeatures) -> list[Condition]:
    out: list[Condition] = []
    if _near_vertical(f.start_angle) or _near_vertical(f.end_angle):
        out.append(Condition.VERTICAL)
    if f.end_bifurcated:
        out.append(Condition.RAMIFICADA)
    out.extend(_termination(f.right_mount))
    return out


_POLICIES = {
    LineLabel.CORACAO: heart_conditions,
    LineLabel.CABECA: head_conditions,
    LineLabel.VIDA: life_conditions,
    LineLabel.DESTINO: fate_conditions,
}


@transform(
    id="T3.05",
    layer=Layer.GEOMETRY,
    dependencies=["T3.03", "T3.04"],
    description="Derive direction and zone conditions per line",
)
def directional_policy(ctx: PipelineContext) -> None:
    for line in ctx.normalized_lines:
        if line.label is None or line.num_points == 0:
            continue
        feats = ctx.features_for(line.label)
        feats.directional = _POLICIES[line.label](feats)
