"""API response models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from palmsight import __version__


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = __version__
    transforms_registered: int = 0


class BBoxModel(BaseModel):
    x: float
    y: float
    w: float
    h: float


class LineSummary(BaseModel):
    label: str | None = None
    angle: float = 0.0
    score: float = 0.0
    bbox: BBoxModel
    avg_mag: float = 0.0
    mag_ref: float = 1.0
    thickness: float = 1.0
    points: list[tuple[float, float]] | None = None
    path: list[tuple[float, float]] | None = None  # ordered centerline


class LineFeatureSummary(BaseModel):
    strength: str | None = None  # robusta, palida or neutral (None)
    length_class: str | None = None  # longa, curta or None
    length_ratio: float = 0.0
    mag_ratio: float = 0.0
    start_mount: str | None = None
    end_mount: str | None = None
    end_bifurcated: bool = False
    conditions: list[str] = Field(default_factory=list)


class AnalyzeResponse(BaseModel):
    narrative: str = ""
    lines: list[LineSummary] = Field(default_factory=list)
    rotation_deg: float = 0.0
    features: dict[str, LineFeatureSummary] = Field(default_factory=dict)
    degraded: bool = False
    warnings: list[str] = Field(default_factory=list)
    errors: dict[str, str] = Field(default_factory=dict)
    processing_time_ms: float = 0.0
    transforms_completed: int = 0
    transforms_failed: int = 0

    @classmethod
    def from_result(cls, data: dict[str, Any], elapsed_ms: float) -> AnalyzeResponse:
        return cls(
            **data,
            processing_time_ms=round(elapsed_ms, 1),
            transforms_failed=len(data.get("errors", {})),
        )


class ConfigResponse(BaseModel):
    config: dict[str, Any]
    defaults: dict[str, Any]
