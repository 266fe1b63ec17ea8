"""Transform registry — each pipeline step is a plain function registered via decorator.

Usage:
    @transform(id="T1.02", layer=Layer.SEGMENTATION, dependencies=["T1.01"])
    def connected_components(ctx: PipelineContext) -> None:
        ctx.component_labels, _ = label_components(ctx.edge_mask, ...)

Adding a step = adding one module under a layer package with the decorator.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from palmsight.engine.context import PipelineContext

logger = logging.getLogger(__name__)


class Layer(enum.IntEnum):
    PREPROCESSING = 0
    SEGMENTATION = 1
    NORMALIZATION = 2
    GEOMETRY = 3


# Layers that need pixels; skipped when the context carries lines only.
IMAGE_LAYERS = (Layer.PREPROCESSING, Layer.SEGMENTATION)


@dataclass
class TransformSpec:
    id: str
    layer: Layer
    fn: Callable[["PipelineContext"], None]
    dependencies: list[str] = field(default_factory=list)
    description: str = ""


class TransformRegistry:
    """Registry of pipeline steps keyed by transform ID."""

    def __init__(self) -> None:
        self._transforms: dict[str, TransformSpec] = {}

    def register(self, spec: TransformSpec) -> None:
        if spec.id in self._transforms:
            raise ValueError(f"Duplicate transform ID: {spec.id}")
        self._transforms[spec.id] = spec
        logger.debug("Registered transform %s (%s)", spec.id, spec.layer.name)

    def get(self, transform_id: str) -> TransformSpec:
        return self._transforms[transform_id]

    def get_layer(self, layer: Layer) -> list[TransformSpec]:
        return sorted((s for s in self._transforms.values() if s.layer == layer), key=lambda s: s.id)

    def all(self) -> list[TransformSpec]:
        return sorted(self._transforms.values(), key=lambda s: (s.layer, s.id))

    def resolve_order(self, requested_ids: set[str] | None = None) -> list[TransformSpec]:
        """Dependency order (Kahn). ``requested_ids`` pulls in transitive dependencies."""
        pool = self._transforms
        if requested_ids is not None:
            wanted: set[str] = set()
            stack = list(requested_ids)
            while stack:
                tid = stack.pop()
                if tid in wanted or tid not in pool:
                    continue
                wanted.add(tid)
                stack.extend(pool[tid].dependencies)
            pool = {k: v for k, v in pool.items() if k in wanted}

        pending = {tid: sum(1 for d in spec.dependencies if d in pool) for tid, spec in pool.items()}
        ready = sorted(tid for tid, n in pending.items() if n == 0)
        ordered: list[TransformSpec] = []

        while ready:
            tid = ready.pop(0)
            ordered.append(pool[tid])
            for other_id, other in pool.items():
                if tid in other.dependencies:
                    pending[other_id] -= 1
                    if pending[other_id] == 0:
                        ready.append(other_id)
                        ready.sort()

        if len(ordered) != len(pool):
            missing = set(pool) - {s.id for s in ordered}
            raise ValueError(f"Circular dependency detected among: {missing}")

        return ordered

    @property
    def count(self) -> int:
        return len(self._transforms)


# Module-level singleton
_registry = TransformRegistry()


def get_registry() -> TransformRegistry:
    return _registry


def transform(
    *,
    id: str,
    layer: Layer,
    dependencies: list[str] | None = None,
    description: str = "",
):
    """Decorator to register a transform function on the global registry."""

    def decorator(fn: Callable[["PipelineContext"], None]):
        _registry.register(
            TransformSpec(
                id=id,
                layer=layer,
                fn=fn,
                dependencies=dependencies or [],
                description=description,
            )
        )
        return fn

    return decorator
