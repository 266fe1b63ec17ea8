"""T3.04 — Bifurcation.

A line bifurcates near an end when the tangent angles of the segments closest
to that end split into two well-populated, well-separated groups.

The split is a two-means (Lloyd iterations, k = 2) in raw angle space, seeded
at the minimum and maximum observed angle. It is not circular-aware: two groups
straddling ±pi look maximally separated rather than adjacent.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from palmsight.engine.config import AnalysisConfig
from palmsight.engine.context import PipelineContext
from palmsight.engine.registry import Layer, transform
from palmsight.utils.geometry import segment_angles_near_end

BRANCH_SAMPLES = 40
SPLIT_ITERATIONS = 8
MIN_POINTS = 6


@dataclass(frozen=True)
class AngleSplit:
    c1: float
    c2: float
    n1: int
    n2: int

    @property
    def separation_deg(self) -> float:
        return abs(math.degrees(self.c1 - self.c2))


def two_means_split(angles: NDArray[np.float64], iterations: int = SPLIT_ITERATIONS) -> AngleSplit:
    """Two-means over raw angles seeded at (min, max), at most ``iterations`` rounds.

    A sample joins the first group only when strictly closer to its center,
    so ties go to the second group. Iteration stops early if a group empties.
    """
    a = np.asarray(angles, dtype=np.float64)
    if a.size == 0:
        return AngleSplit(0.0, 0.0, 0, 0)
    c1, c2 = float(a.min()), float(a.max())
    for _ in range(iterations):
        first = np.abs(a - c1) < np.abs(a - c2)
        if first.all() or not first.any():
            break
        c1, c2 = float(a[first].mean()), float(a[~first].mean())
    n1 = int(np.count_nonzero(np.abs(a - c1) < np.abs(a - c2)))
    return AngleSplit(c1, c2, n1, int(a.size) - n1)


def is_bifurcated(
    angles: NDArray[np.float64],
    min_cluster: int,
    min_sep_deg: float,
    sensitivity: float = 1.0,
) -> bool:
    a = np.asarray(angles, dtype=np.float64)
    if a.size < 2 * min_cluster:
        return False
    split = two_means_split(a)
    populated = split.n1 >= min_cluster and split.n2 >= min_cluster
    return populated and split.separation_deg >= min_sep_deg * sensitivity


def has_branch_near_end(points: NDArray[np.float64], near: str, config: AnalysisConfig) -> bool:
    if len(points) < MIN_POINTS:
        return False
    return is_bifurcated(
        segment_angles_near_end(points, near, BRANCH_SAMPLES),
        config.branch_min_cluster,
        config.branch_min_sep_deg,
        config.bifurcation_sensitivity,
    )


@transform(
    id="T3.04",
    layer=Layer.GEOMETRY,
    dependencies=["T2.01"],
    description="Detect tangent-direction bifurcation near each line's end",
)
def bifurcation(ctx: PipelineContext) -> None:
    for line in ctx.normalized_lines:
        if line.label is None:
            continue
        ctx.features_for(line.label).end_bifurcated = has_branch_near_end(line.trace, "end", ctx.config)
