"""PalmSight line-detection and interpretation engine."""

from palmsight.engine.analysis import (
    AnalysisResult,
    analyze_image,
    detect_palm_lines,
    interpret_hand,
    interpret_lines,
)
from palmsight.engine.config import AnalysisConfig, ConfigStore
from palmsight.engine.context import BBox, DetectedLine, PipelineContext, RasterImage
from palmsight.engine.errors import InvalidImageError, PalmSightError, RulesFormatError
from palmsight.engine.labels import Condition, LineLabel, Mount
from palmsight.engine.pipeline import Pipeline, create_pipeline
from palmsight.engine.registry import Layer, get_registry, transform
from palmsight.engine.rules import RulesTable, default_rules, load_rules

__all__ = [
    "AnalysisConfig",
    "AnalysisResult",
    "BBox",
    "Condition",
    "ConfigStore",
    "DetectedLine",
    "InvalidImageError",
    "Layer",
    "LineLabel",
    "Mount",
    "PalmSightError",
    "Pipeline",
    "PipelineContext",
    "RasterImage",
    "RulesFormatError",
    "RulesTable",
    "analyze_image",
    "create_pipeline",
    "default_rules",
    "detect_palm_lines",
    "get_registry",
    "interpret_hand",
    "interpret_lines",
    "load_rules",
    "transform",
]
