"""Icon sources the batch comparer can rasterize."""

from __future__ import annotations

from dataclasses import dataclass

from ..extract.normalize import normalize_svg
from ..io.models import RasterImage
from .base import Renderable
from .raster import rasterize_markup
from .widget import WidgetIcon

__all__ = ["MarkupIcon", "Renderable", "WidgetIcon", "as_renderable"]


@dataclass(frozen=True)
class MarkupIcon:
    """An icon given as raw SVG markup."""

    markup: str | bytes

    def rasterize(self) -> RasterImage:
        return rasterize_markup(normalize_svg(self.markup))


def as_renderable(value: Renderable | str | bytes) -> Renderable:
    """Wrap raw markup in :class:`MarkupIcon`; pass renderables through."""
    if isinstance(value, (str, bytes)):
        return MarkupIcon(value)
    if isinstance(value, Renderable):
        return value
    raise TypeError(f"Cannot rasterize object of type {type(value).__name__}")
