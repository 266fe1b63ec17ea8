"""POST /api/analyze — palm photo to labeled lines and narrative."""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import AsyncGenerator
from typing import Any

import numpy as np
from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from palmsight.dependencies import get_config_store, get_rules
from palmsight.engine.analysis import analyze_image, build_result, interpret_lines
from palmsight.engine.config import AnalysisConfig
from palmsight.engine.context import PipelineContext
from palmsight.engine.labels import LineLabel
from palmsight.engine.layer1.t1_03_line_features import line_from_points
from palmsight.engine.pipeline import create_pipeline
from palmsight.engine.rules import RulesTable
from palmsight.models.requests import AnalyzeRequest, InterpretRequest
from palmsight.models.responses import AnalyzeResponse
from palmsight.utils.raster import decode_base64_image

router = APIRouter()


_SENTINEL = object()  # marks end of queue


def _resolve_config(overrides: dict[str, Any]) -> AnalysisConfig:
    """Snapshot of the shared config with per-request overrides applied."""
    snapshot = get_config_store().snapshot()
    if not overrides:
        return snapshot
    try:
        return snapshot.with_overrides(**overrides)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=json.loads(e.json())) from e


def _resolve_rules(document: dict[str, Any] | None) -> RulesTable:
    return get_rules() if document is None else RulesTable.from_mapping(document)


async def _stream_analyze(req: AnalyzeRequest, config: AnalysisConfig) -> AsyncGenerator[str, None]:
    """Drive pipeline.run_streaming() in a thread, yielding SSE events as they arrive."""
    start = time.perf_counter()

    try:
        ctx = PipelineContext.from_image(decode_base64_image(req.image), config)
        rules = _resolve_rules(req.rules)
    except Exception as e:
        data = json.dumps({"type": "error", "message": str(e)})
        yield f"event: error\ndata: {data}\n\n"
        return

    pipeline = create_pipeline()
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def _run_pipeline() -> None:
        """Sync pipeline in thread — pushes progress dicts onto the async queue."""
        try:
            for progress in pipeline.run_streaming(ctx):
                loop.call_soon_threadsafe(queue.put_nowait, progress)
        finally:
            loop.call_soon_threadsafe(queue.put_nowait, _SENTINEL)

    # Start pipeline in a thread so the event loop stays free to flush SSE
    loop.run_in_executor(None, _run_pipeline)

    while True:
        item = await queue.get()
        if item is _SENTINEL:
            break
        yield f"event: progress\ndata: {json.dumps(item)}\n\n"

    elapsed = (time.perf_counter() - start) * 1000
    result = build_result(ctx, rules)
    response = AnalyzeResponse.from_result(result.to_dict(req.include_points), elapsed)
    yield f"event: result\ndata: {response.model_dump_json()}\n\n"

    yield f"event: done\ndata: {json.dumps({'type': 'done'})}\n\n"


@router.post("/analyze/stream")
async def analyze_stream(req: AnalyzeRequest) -> StreamingResponse:
    return StreamingResponse(
        _stream_analyze(req, _resolve_config(req.config)),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze(req: AnalyzeRequest) -> AnalyzeResponse:
    start = time.perf_counter()
    config = _resolve_config(req.config)
    image = decode_base64_image(req.image)

    result = analyze_image(image, _resolve_rules(req.rules), config)

    elapsed = (time.perf_counter() - start) * 1000
    return AnalyzeResponse.from_result(result.to_dict(req.include_points), elapsed)


@router.post("/interpret", response_model=AnalyzeResponse)
async def interpret(req: InterpretRequest) -> AnalyzeResponse:
    """Narrative for lines detected elsewhere; detection layers are skipped."""
    start = time.perf_counter()
    config = _resolve_config(req.config)

    lines = []
    for item in req.lines:
        try:
            label = LineLabel(item.label)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=f"Unknown line label '{item.label}'") from e
        line = line_from_points(
            np.asarray(item.points, dtype=np.float64),
            req.canvas_width,
            req.canvas_height,
            avg_mag=item.avg_mag,
            mag_ref=item.mag_ref,
        )
        lines.append(line.with_label(label))

    result = interpret_lines(lines, _resolve_rules(req.rules), req.canvas_width, req.canvas_height, config)

    elapsed = (time.perf_counter() - start) * 1000
    return AnalyzeResponse.from_result(result.to_dict(include_points=False), elapsed)
