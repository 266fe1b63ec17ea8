"""PipelineContext — the single mutable state object flowing through all transforms.

Image-space intermediates → PipelineContext.intensity / gradient / edge_mask / component_labels
Per-line results → PipelineContext.features[label]
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

import numpy as np
from numpy.typing import NDArray

from palmsight.engine.config import AnalysisConfig
from palmsight.engine.errors import InvalidImageError
from palmsight.engine.labels import Condition, LineLabel, Mount


@dataclass(frozen=True)
class RasterImage:
    """RGBA raster, row-major, shape (height, width, 4). Never mutated by the engine."""

    width: int
    height: int
    pixels: NDArray[np.uint8]

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise InvalidImageError(f"Image must be non-empty, got {self.width}x{self.height}")
        shape = getattr(self.pixels, "shape", None)
        if shape != (self.height, self.width, 4):
            raise InvalidImageError(
                f"Pixel buffer shape {shape} does not match {self.height}x{self.width}x4"
            )

    @classmethod
    def from_buffer(cls, width: int, height: int, data: bytes | bytearray | memoryview) -> RasterImage:
        """Build from interleaved RGBA bytes (4 bytes per pixel)."""
        if width <= 0 or height <= 0:
            raise InvalidImageError(f"Image must be non-empty, got {width}x{height}")
        buf = np.frombuffer(bytes(data), dtype=np.uint8)
        if buf.size != width * height * 4:
            raise InvalidImageError(
                f"Expected {width * height * 4} RGBA bytes for {width}x{height}, got {buf.size}"
            )
        return cls(width=width, height=height, pixels=buf.reshape(height, width, 4))

    @classmethod
    def from_array(cls, array: NDArray) -> RasterImage:
        """Build from an (H, W), (H, W, 3) or (H, W, 4) array; alpha defaults to opaque."""
        arr = np.asarray(array)
        if arr.ndim == 2:
            arr = np.repeat(arr[:, :, None], 3, axis=2)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise InvalidImageError(f"Unsupported array shape {arr.shape}")
        h, w = arr.shape[:2]
        if arr.shape[2] == 3:
            alpha = np.full((h, w, 1), 255, dtype=np.uint8)
            arr = np.concatenate([arr.astype(np.uint8), alpha], axis=2)
        pixels = np.ascontiguousarray(arr, dtype=np.uint8).copy()
        pixels.setflags(write=False)
        return cls(width=w, height=h, pixels=pixels)


@dataclass(frozen=True)
class BBox:
    x: float
    y: float
    w: float
    h: float

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.w / 2, self.y + self.h / 2)

    @property
    def major(self) -> float:
        return max(self.w, self.h)


@dataclass
class DetectedLine:
    """One candidate ridge line.

    ``points`` is an Nx2 array of (x, y) member pixels, sorted along the line's
    principal axis (left→right for horizontal-dominant lines, bottom→top
    otherwise). ``path`` is the centerline in the same direction, one point
    per axis step; start/end analyses read ``trace``.
    """

    points: NDArray[np.float64]
    angle: float  # radians, image coordinates, 0 = horizontal
    score: float  # major bbox side / min(canvas side)
    bbox: BBox
    label: LineLabel | None = None
    avg_mag: float = 0.0  # mean gradient magnitude over member pixels
    mag_ref: float = 1.0  # threshold the component was cut at
    thickness: float = 1.0  # pixels per unit of major bbox side
    path: NDArray[np.float64] = field(default_factory=lambda: np.empty((0, 2)))

    @property
    def num_points(self) -> int:
        return len(self.points)

    @property
    def trace(self) -> NDArray[np.float64]:
        """Centerline when one was traced, else the member points."""
        return self.path if len(self.path) else self.points

    def with_points(self, points: NDArray[np.float64], path: NDArray[np.float64]) -> DetectedLine:
        return replace(self, points=points, path=path)

    def with_label(self, label: LineLabel | None) -> DetectedLine:
        return replace(self, label=label)

    def to_dict(self, include_points: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "label": self.label.value if self.label else None,
            "angle": float(self.angle),
            "score": float(self.score),
            "bbox": {"x": self.bbox.x, "y": self.bbox.y, "w": self.bbox.w, "h": self.bbox.h},
            "avg_mag": float(self.avg_mag),
            "mag_ref": float(self.mag_ref),
            "thickness": float(self.thickness),
        }
        if include_points:
            data["points"] = [[float(x), float(y)] for x, y in self.points]
            data["path"] = [[float(x), float(y)] for x, y in self.trace]
        return data


@dataclass
class LineFeatures:
    """Qualitative predicates derived for one present line."""

    label: LineLabel
    strength: Condition | None = None  # ROBUSTA / PALIDA / None (neutral)
    mag_ratio: float = 0.0
    length: float = 0.0
    length_ratio: float = 0.0
    length_class: Condition | None = None  # LONGA / CURTA / None
    # Averaged tangent near each end, radians, image coordinates
    start_angle: float = 0.0
    end_angle: float = 0.0
    start_mount: Mount | None = None  # mount of the first point
    left_mount: Mount | None = None  # mount of the leftmost point
    right_mount: Mount | None = None  # mount of the rightmost point
    end_bifurcated: bool = False
    # Directional / zone conditions in emission order
    directional: list[Condition] = field(default_factory=list)

    def ordered_conditions(self) -> list[Condition]:
        """Strength, length class, then directional conditions."""
        out: list[Condition] = []
        if self.strength is not None:
            out.append(self.strength)
        if self.length_class is not None:
            out.append(self.length_class)
        out.extend(self.directional)
        return out


@dataclass
class PipelineContext:
    """Shared state flowing through the entire pipeline."""

    # Input image; None when lines are supplied directly (interpretation only)
    image: RasterImage | None = None
    # Immutable config snapshot for this run
    config: AnalysisConfig = field(default_factory=AnalysisConfig)
    canvas_width: float = 0.0
    canvas_height: float = 0.0

    # --- Layer 0: preprocessing ---
    intensity: NDArray[np.float64] | None = None
    gradient: NDArray[np.float64] | None = None

    # --- Layer 1: segmentation ---
    threshold: float = 0.0
    edge_mask: NDArray[np.bool_] | None = None
    # Label image of the kept components (0 = background)
    component_labels: NDArray[np.int32] | None = None
    # Every extracted component, labeled or not
    candidates: list[DetectedLine] = field(default_factory=list)
    # Best line per label, in detection order
    lines: list[DetectedLine] = field(default_factory=list)

    # --- Layer 2: normalization ---
    rotation: float = 0.0  # radians; points were rotated by -rotation
    rotation_center: tuple[float, float] = (0.0, 0.0)
    normalized_lines: list[DetectedLine] = field(default_factory=list)

    # --- Layer 3: geometry ---
    features: dict[LineLabel, LineFeatures] = field(default_factory=dict)

    # --- Pipeline metadata ---
    completed_transforms: set[str] = field(default_factory=set)
    errors: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_image(cls, image: RasterImage, config: AnalysisConfig | None = None) -> PipelineContext:
        return cls(
            image=image,
            config=config or AnalysisConfig(),
            canvas_width=float(image.width),
            canvas_height=float(image.height),
        )

    @classmethod
    def from_lines(
        cls,
        lines: list[DetectedLine],
        canvas_width: float,
        canvas_height: float,
        config: AnalysisConfig | None = None,
    ) -> PipelineContext:
        return cls(
            config=config or AnalysisConfig(),
            canvas_width=float(canvas_width),
            canvas_height=float(canvas_height),
            lines=list(lines),
        )

    @property
    def has_image(self) -> bool:
        return self.image is not None

    def get_line(self, label: LineLabel) -> DetectedLine | None:
        """Normalized line for ``label`` (falls back to the raw detection)."""
        pool = self.normalized_lines or self.lines
        for line in pool:
            if line.label == label:
                return line
        return None

    def features_for(self, label: LineLabel) -> LineFeatures:
        if label not in self.features:
            self.features[label] = LineFeatures(label=label)
        return self.features[label]
