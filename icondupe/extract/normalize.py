"""Utilities for normalizing raw SVG markup into a canonical, comparable form."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET

from ..errors import InvalidMarkupError
from ..io.models import CANONICAL_SIZE, NormalizedIcon

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

_THEME_COLOR = "currentColor"
_ABSOLUTE_BLACK = "#000000"
_LOCAL_REF_PREFIXES = ("#", "data:")

ET.register_namespace("", SVG_NS)
ET.register_namespace("xlink", XLINK_NS)


def normalize_svg(markup: str | bytes) -> NormalizedIcon:
    """Return *markup* canonicalized to a 128x128, color-neutral SVG document.

    The first ``<svg>`` element in document order becomes the root. Its width and
    height are forced to the canonical size while the viewBox and path geometry
    are left untouched; scaling happens when the icon is rasterized. Every
    ``currentColor`` token is resolved to black and references to anything
    outside the document are dropped.

    Raises :class:`InvalidMarkupError` when no ``<svg>`` element can be found.
    """
    if markup is None or not markup.strip():
        raise InvalidMarkupError("Empty markup cannot be normalized")

    try:
        root = ET.fromstring(markup)
    except ET.ParseError as exc:
        raise InvalidMarkupError(f"Markup is not well-formed: {exc}") from exc

    svg = _find_svg(root)
    if svg is None:
        raise InvalidMarkupError(f"No <svg> element found (root is <{_local(root.tag)}>)")

    _qualify(svg)
    _strip_external(svg)
    size = str(CANONICAL_SIZE)
    svg.set("width", size)
    svg.set("height", size)

    serialized = ET.tostring(svg, encoding="unicode")
    return NormalizedIcon(serialized.replace(_THEME_COLOR, _ABSOLUTE_BLACK))


def looks_like_svg(text: str | bytes | None) -> bool:
    """Return ``True`` when *text* plausibly holds a complete SVG document."""
    if not text:
        return False
    if isinstance(text, bytes):
        return b"<svg" in text and b"</svg>" in text
    return "<svg" in text and "</svg>" in text


def _find_svg(root: ET.Element) -> ET.Element | None:
    for element in root.iter():
        if isinstance(element.tag, str) and _local(element.tag) == "svg":
            return element
    return None


def _qualify(svg: ET.Element) -> None:
    # Bare <svg> input gets the SVG namespace so the output declares xmlns.
    for element in svg.iter():
        tag = element.tag
        if isinstance(tag, str) and not tag.startswith("{"):
            element.tag = f"{{{SVG_NS}}}{tag}"


def _strip_external(svg: ET.Element) -> None:
    for parent in svg.iter():
        for child in list(parent):
            if isinstance(child.tag, str) and _local(child.tag) == "script":
                parent.remove(child)

    for element in svg.iter():
        for key in list(element.attrib):
            if _local(key) != "href":
                continue
            value = element.attrib[key].strip()
            if not value.startswith(_LOCAL_REF_PREFIXES):
                logger.debug("Dropping external reference %s on <%s>", value, _local(element.tag))
                del element.attrib[key]


def _local(name: str) -> str:
    return name.rsplit("}", 1)[-1].lower()
