"""GET/PUT /api/config — the mutable analysis config owned by the UI."""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Body, HTTPException
from pydantic import ValidationError

from palmsight.dependencies import get_config_store
from palmsight.models.responses import ConfigResponse

router = APIRouter()


def _response() -> ConfigResponse:
    store = get_config_store()
    return ConfigResponse(config=store.snapshot().model_dump(), defaults=store.defaults.model_dump())


@router.get("/config", response_model=ConfigResponse)
async def read_config() -> ConfigResponse:
    return _response()


@router.put("/config", response_model=ConfigResponse)
async def update_config(changes: dict[str, Any] = Body(...)) -> ConfigResponse:
    try:
        get_config_store().apply(changes)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=json.loads(e.json())) from e
    return _response()


@router.post("/config/reset", response_model=ConfigResponse)
async def reset_config() -> ConfigResponse:
    get_config_store().reset()
    return _response()
