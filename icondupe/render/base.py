"""Capability interface shared by every icon source."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..io.models import RasterImage


@runtime_checkable
class Renderable(Protocol):
    """Anything that can produce a canonical 128x128 raster of itself."""

    def rasterize(self) -> RasterImage: ...
