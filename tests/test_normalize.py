import xml.etree.ElementTree as ET

import pytest

from icondupe.errors import InvalidMarkupError
from icondupe.extract.normalize import SVG_NS, looks_like_svg, normalize_svg

ICON = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="24" height="24" viewBox="0 0 24 24">'
    '<path d="M4 4h16v16H4z" fill="currentColor" stroke="currentColor"/>'
    "</svg>"
)


def _root(markup: str) -> ET.Element:
    return ET.fromstring(markup)


def test_forces_canonical_size_and_keeps_viewbox():
    root = _root(normalize_svg(ICON).markup)
    assert root.get("width") == "128"
    assert root.get("height") == "128"
    assert root.get("viewBox") == "0 0 24 24"


def test_adds_size_when_missing():
    root = _root(normalize_svg('<svg xmlns="http://www.w3.org/2000/svg"/>').markup)
    assert root.get("width") == "128"
    assert root.get("height") == "128"


def test_resolves_current_color_to_black():
    markup = normalize_svg(ICON).markup
    assert "currentColor" not in markup
    assert markup.count("#000000") == 2


@pytest.mark.parametrize(
    "source",
    [
        ICON,
        '<svg viewBox="0 0 10 10"><circle cx="5" cy="5" r="4"/></svg>',
        '<?xml version="1.0" encoding="UTF-8"?>\n<svg xmlns="http://www.w3.org/2000/svg"'
        ' xmlns:xlink="http://www.w3.org/1999/xlink"><use xlink:href="#a"/></svg>',
        ICON.encode("utf-8"),
    ],
)
def test_normalize_is_idempotent(source):
    once = normalize_svg(source)
    assert normalize_svg(once.markup) == once


def test_bare_svg_gets_namespace():
    markup = normalize_svg('<svg><rect width="4" height="4"/></svg>').markup
    root = _root(markup)
    assert root.tag == f"{{{SVG_NS}}}svg"
    assert root[0].tag == f"{{{SVG_NS}}}rect"
    assert markup.startswith(f'<svg xmlns="{SVG_NS}"')


def test_finds_nested_svg():
    markup = normalize_svg(f"<div><span>{ICON}</span></div>").markup
    assert _root(markup).tag == f"{{{SVG_NS}}}svg"
    assert "span" not in markup


def test_drops_external_references_and_scripts():
    source = (
        '<svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink">'
        '<script>alert(1)</script>'
        '<image xlink:href="https://example.com/a.png" width="4" height="4"/>'
        '<image href="data:image/png;base64,AAAA" width="4" height="4"/>'
        '<use xlink:href="#shape"/>'
        "</svg>"
    )
    markup = normalize_svg(source).markup
    assert "example.com" not in markup
    assert "script" not in markup
    assert "data:image/png;base64,AAAA" in markup
    assert 'xlink:href="#shape"' in markup


@pytest.mark.parametrize(
    "source",
    ["", "   ", "<svg", "<html><body>nothing</body></html>", "just text", b""],
)
def test_rejects_input_without_svg(source):
    with pytest.raises(InvalidMarkupError):
        normalize_svg(source)


def test_looks_like_svg():
    assert looks_like_svg(ICON)
    assert looks_like_svg(ICON.encode("utf-8"))
    assert not looks_like_svg("<svg/>")
    assert not looks_like_svg("")
    assert not looks_like_svg(None)
