"""T3.03 — End Geometry.

Averaged tangent direction near each end of a line, and the mount (palm
zone) the first, leftmost and rightmost centerline points fall in.

Mount zones, checked in this order:
    y ≤ 0.25 H              → sun
    y ≥ 0.85 H              → inferior
    x ≤ 0.33 W              → jupiter
    x ≥ 0.85 W              → mercury
    x > 0.6 W and y > 0.6 H → venus
    otherwise               → saturn
"""

from __future__ import annotations

from palmsight.engine.context import PipelineContext
from palmsight.engine.labels import Mount
from palmsight.engine.registry import Layer, transform
from palmsight.utils.geometry import direction_near_end, extreme_x_points

_TOP_BAND = 0.25
_BOTTOM_BAND = 0.85
_LEFT_BAND = 0.33
_RIGHT_BAND = 0.85
_VENUS_LEFT = 0.6
_VENUS_TOP = 0.6

# Segments averaged for an end direction.
END_TANGENT_SAMPLES = 12


def mount_of_point(x: float, y: float, canvas_width: float, canvas_height: float) -> Mount:
    if y <= canvas_height * _TOP_BAND:
        return Mount.SUN
    if y >= canvas_height * _BOTTOM_BAND:
        return Mount.INFERIOR
    if x <= canvas_width * _LEFT_BAND:
        return Mount.JUPITER
    if x >= canvas_width * _RIGHT_BAND:
        return Mount.MERCURY
    if x > canvas_width * _VENUS_LEFT and y > canvas_height * _VENUS_TOP:
        return Mount.VENUS
    return Mount.SATURN


@transform(
    id="T3.03",
    layer=Layer.GEOMETRY,
    dependencies=["T2.01"],
    description="Compute end tangents and end mounts per line",
)
def end_geometry(ctx: PipelineContext) -> None:
    w, h = ctx.canvas_width, ctx.canvas_height
    for line in ctx.normalized_lines:
        if line.label is None or line.num_points == 0:
            continue
        feats = ctx.features_for(line.label)
        trace = line.trace
        feats.start_angle = direction_near_end(trace, "start", END_TANGENT_SAMPLES)
        feats.end_angle = direction_near_end(trace, "end", END_TANGENT_SAMPLES)

        first = trace[0]
        left, right = extreme_x_points(trace)
        feats.start_mount = mount_of_point(first[0], first[1], w, h)
        feats.left_mount = mount_of_point(left[0], left[1], w, h)
        feats.right_mount = mount_of_point(right[0], right[1], w, h)
