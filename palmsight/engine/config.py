"""Analysis configuration — the knobs read by every pipeline run.

``AnalysisConfig`` is an immutable value. ``ConfigStore`` is the mutable,
process-wide holder owned by the UI/API: it hands each run a snapshot so that
no transform ever sees a half-updated threshold set.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


class AnalysisConfig(BaseModel):
    """Thresholds governing detection and interpretation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Bifurcation clustering
    branch_min_sep_deg: float = Field(45.0, ge=20.0, le=90.0)
    branch_min_cluster: int = Field(4, ge=2, le=12)
    bifurcation_sensitivity: float = Field(1.0, ge=0.5, le=2.0)

    # Strength classification: avg_mag / mag_ref
    mag_robust_ratio: float = Field(1.3, ge=1.0, le=2.5)
    mag_pale_ratio: float = Field(0.95, ge=0.5, le=1.2)

    # Strength classification: pixels per unit of major axis
    thickness_robust_ratio: float = Field(1.2, ge=1.0, le=2.0)
    thickness_pale_ratio: float = Field(0.8, ge=0.3, le=1.0)

    # Detection
    edges_percentile: float = Field(0.85, ge=0.0, le=1.0)  # top 15% of edges
    min_component_size: int = Field(100, ge=0)  # components at or below are noise
    contrast_stretch: bool = True
    contrast_gamma: float = Field(0.9, gt=0.0, le=5.0)

    def with_overrides(self, **changes: Any) -> AnalysisConfig:
        """Return a validated copy with ``changes`` applied."""
        data = self.model_dump()
        data.update(changes)
        return AnalysisConfig(**data)


class ConfigStore:
    """Mutable config owned by the UI; runs only ever see snapshots."""

    def __init__(self, defaults: AnalysisConfig | None = None) -> None:
        self._defaults = defaults or AnalysisConfig()
        self._current = self._defaults
        self._lock = threading.Lock()

    @property
    def defaults(self) -> AnalysisConfig:
        return self._defaults

    def snapshot(self) -> AnalysisConfig:
        """Single atomic read of the current config."""
        with self._lock:
            return self._current

    def apply(self, partial: dict[str, Any]) -> AnalysisConfig:
        """Apply a partial update. Raises ``ValidationError`` and keeps the old value on bad input."""
        with self._lock:
            try:
                updated = self._current.with_overrides(**partial)
            except ValidationError:
                logger.warning("Rejected config update: %s", sorted(partial))
                raise
            self._current = updated
            logger.info("Config updated: %s", sorted(partial))
            return updated

    def reset(self) -> AnalysisConfig:
        with self._lock:
            self._current = self._defaults
            return self._current
