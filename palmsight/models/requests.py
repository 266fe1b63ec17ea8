"""API request models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class AnalyzeRequest(BaseModel):
    image: str = Field(..., description="Base64-encoded palm photo (PNG, JPEG, ...), data URL accepted")
    rules: dict[str, Any] | None = Field(
        default=None,
        description="Rule document ({'linhas': {...}}); the server default when omitted",
    )
    config: dict[str, Any] = Field(
        default_factory=dict,
        description="Per-request analysis overrides on top of the current config",
    )
    include_points: bool = Field(default=False, description="Return the pixel points of each line")


class LineInput(BaseModel):
    label: str = Field(..., description="vida, cabeca, coracao or destino")
    points: list[tuple[float, float]] = Field(..., min_length=1, description="(x, y) pixels, image coordinates")
    avg_mag: float = 0.0
    mag_ref: float = 1.0


class InterpretRequest(BaseModel):
    lines: list[LineInput] = Field(..., description="Labeled lines detected elsewhere")
    canvas_width: float = Field(..., gt=0)
    canvas_height: float = Field(..., gt=0)
    rules: dict[str, Any] | None = None
    config: dict[str, Any] = Field(default_factory=dict)
