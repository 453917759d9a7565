"""Data models shared across the icon comparison pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

import numpy as np
from PIL import Image

CANONICAL_SIZE = 128


@dataclass(frozen=True)
class NormalizedIcon:
    """Canonical SVG markup: 128x128 root, ``currentColor`` resolved to black."""

    markup: str


@dataclass(frozen=True, eq=False)
class RasterImage:
    """Flat RGBA pixel buffer produced by the rasterizer."""

    pixels: np.ndarray
    width: int = CANONICAL_SIZE
    height: int = CANONICAL_SIZE

    def __post_init__(self) -> None:
        expected = self.width * self.height * 4
        if self.pixels.size != expected:
            raise ValueError(
                f"Expected {expected} RGBA values for {self.width}x{self.height}, "
                f"got {self.pixels.size}"
            )

    @classmethod
    def from_image(cls, img: Image.Image) -> "RasterImage":
        """Sample every pixel of *img* into a new raster."""
        rgba = img.convert("RGBA") if img.mode != "RGBA" else img
        width, height = rgba.size
        pixels = np.array(rgba, dtype=np.uint8).reshape(-1)
        return cls(pixels=pixels, width=width, height=height)

    def to_image(self) -> Image.Image:
        """Return the buffer as a Pillow image, mainly for debugging."""
        shaped = self.pixels.reshape(self.height, self.width, 4)
        return Image.fromarray(shaped)

    def __len__(self) -> int:
        return int(self.pixels.size)


@dataclass(slots=True)
class SimilarityScore:
    """Similarity percentage of one candidate against the reference."""

    name: str
    similarity: float


@dataclass(frozen=True)
class ComparisonProgress:
    """Items attempted so far out of the batch total."""

    current: int = 0
    total: int = 0

    @classmethod
    def idle(cls) -> "ComparisonProgress":
        return cls(0, 0)


@dataclass(slots=True)
class BatchRun:
    """State of the single active comparison batch."""

    reference: RasterImage
    names: List[str]
    generation: int
    scores: Dict[str, float] = field(default_factory=dict)
    progress: ComparisonProgress = field(default_factory=ComparisonProgress.idle)
