"""Pipeline orchestrator — runs transforms in dependency order with input gating."""

from __future__ import annotations

import importlib
import logging
import pkgutil
import time
from collections.abc import Generator
from typing import Any

from palmsight.engine.context import PipelineContext
from palmsight.engine.registry import IMAGE_LAYERS, Layer, TransformRegistry, TransformSpec, get_registry

logger = logging.getLogger(__name__)

_LAYER_PACKAGES = ("layer0", "layer1", "layer2", "layer3")


class Pipeline:
    """Orchestrates the transform pipeline."""

    def __init__(self, registry: TransformRegistry | None = None) -> None:
        self.registry = registry or get_registry()

    def plan(self, ctx: PipelineContext) -> list[TransformSpec]:
        """Transforms that will run for ``ctx``, in execution order."""
        skip_ids = self._input_gate(ctx)
        requested = {s.id for s in self.registry.all()} - skip_ids
        # Dependencies of requested steps are pulled back in; drop gated ones again.
        return [s for s in self.registry.resolve_order(requested) if s.id not in skip_ids]

    def run(self, ctx: PipelineContext) -> PipelineContext:
        """Run the full pipeline on the given context."""
        start = time.perf_counter()
        ordered = self.plan(ctx)

        logger.info(
            "Pipeline: %d transforms queued (%s input)",
            len(ordered),
            "image" if ctx.has_image else "lines",
        )

        for spec in ordered:
            t0 = time.perf_counter()
            try:
                spec.fn(ctx)
                ctx.completed_transforms.add(spec.id)
                logger.debug("  %s completed in %.1fms", spec.id, (time.perf_counter() - t0) * 1000)
            except Exception as e:
                ctx.errors[spec.id] = str(e)
                logger.warning("  %s FAILED: %s", spec.id, e)

        logger.info(
            "Pipeline complete: %d/%d transforms in %.0fms",
            len(ctx.completed_transforms),
            len(ordered),
            (time.perf_counter() - start) * 1000,
        )
        return ctx

    def run_streaming(self, ctx: PipelineContext) -> Generator[dict[str, Any], None, None]:
        """Run the pipeline, yielding a progress dict before and after each transform.

        ``ctx`` is mutated in place, so once the generator is exhausted it
        holds the same results as ``run()``.
        """
        ordered = self.plan(ctx)
        total = len(ordered)

        for i, spec in enumerate(ordered):
            event = {
                "transform_id": spec.id,
                "description": spec.description,
                "layer": spec.layer.name,
                "index": i,
                "total": total,
                "elapsed_ms": 0.0,
                "status": "running",
                "error": "",
            }
            yield dict(event)

            t0 = time.perf_counter()
            try:
                spec.fn(ctx)
                ctx.completed_transforms.add(spec.id)
            except Exception as e:
                ctx.errors[spec.id] = str(e)
                event["status"] = "error"
                event["error"] = str(e)
                logger.warning("  %s FAILED: %s", spec.id, e)
            else:
                event["status"] = "ok"

            event["elapsed_ms"] = round((time.perf_counter() - t0) * 1000, 1)
            yield event

    def run_layer(self, ctx: PipelineContext, layer: Layer) -> PipelineContext:
        """Run only transforms in a specific layer."""
        for spec in self.registry.get_layer(layer):
            try:
                spec.fn(ctx)
                ctx.completed_transforms.add(spec.id)
            except Exception as e:
                ctx.errors[spec.id] = str(e)
                logger.warning("  %s FAILED: %s", spec.id, e)
        return ctx

    def _input_gate(self, ctx: PipelineContext) -> set[str]:
        """Without an image only the interpretation layers can run."""
        if ctx.has_image:
            return set()
        skip: set[str] = set()
        for layer in IMAGE_LAYERS:
            skip.update(s.id for s in self.registry.get_layer(layer))
        return skip


def load_transforms() -> None:
    """Import every layer module so the @transform decorators fire."""
    for layer_name in _LAYER_PACKAGES:
        package = importlib.import_module(f"palmsight.engine.{layer_name}")
        for _, module_name, _ in pkgutil.iter_modules(package.__path__):
            importlib.import_module(f"{package.__name__}.{module_name}")


def create_pipeline() -> Pipeline:
    """Factory: a pipeline over the global registry with all transforms loaded."""
    load_transforms()
    return Pipeline()
