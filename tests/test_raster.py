import numpy as np
import pytest

try:
    import cairosvg  # noqa: F401
except (ImportError, OSError):  # cairocffi raises OSError when libcairo is missing
    pytest.skip("cairo is not available", allow_module_level=True)

from icondupe.errors import DecodeError, InvalidMarkupError
from icondupe.extract.normalize import normalize_svg
from icondupe.group.batch import IconComparer
from icondupe.io.models import CANONICAL_SIZE
from icondupe.render.raster import offscreen_canvas, rasterize_markup
from icondupe.render.sources import MarkupIcon, as_renderable

BLACK_SQUARE = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 16 16">'
    '<rect width="16" height="16" fill="currentColor"/></svg>'
)
EMPTY_ICON = '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 16 16"></svg>'


def rgba(image):
    return image.pixels.reshape(CANONICAL_SIZE, CANONICAL_SIZE, 4)


def test_offscreen_canvas_is_opaque_white():
    with offscreen_canvas() as canvas:
        assert canvas.size == (CANONICAL_SIZE, CANONICAL_SIZE)
        assert canvas.getpixel((0, 0)) == (255, 255, 255, 255)


def test_black_square_fills_canvas():
    image = rasterize_markup(normalize_svg(BLACK_SQUARE))
    pixels = rgba(image)
    assert image.width == image.height == CANONICAL_SIZE
    assert len(image) == CANONICAL_SIZE * CANONICAL_SIZE * 4
    assert np.all(pixels[:, :, 3] == 255)
    assert pixels[:, :, :3].mean() < 5


def test_transparent_icon_flattens_to_white():
    pixels = rgba(rasterize_markup(normalize_svg(EMPTY_ICON)))
    assert np.all(pixels == 255)


def test_non_square_viewbox_still_yields_canonical_size():
    markup = (
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 40 10">'
        '<rect width="40" height="10"/></svg>'
    )
    image = rasterize_markup(normalize_svg(markup))
    assert image.to_image().size == (CANONICAL_SIZE, CANONICAL_SIZE)


@pytest.mark.parametrize("markup", ["", "<svg", "not markup at all"])
def test_undecodable_markup_raises_decode_error(markup):
    with pytest.raises(DecodeError):
        rasterize_markup(markup)


def test_markup_icon_normalizes_before_rasterizing():
    image = MarkupIcon(BLACK_SQUARE).rasterize()
    assert rgba(image)[64, 64, :3].tolist() == [0, 0, 0]


def test_as_renderable_wraps_markup():
    assert isinstance(as_renderable(BLACK_SQUARE), MarkupIcon)
    icon = MarkupIcon(EMPTY_ICON)
    assert as_renderable(icon) is icon
    with pytest.raises(TypeError):
        as_renderable(3.5)


def test_search_scores_identical_and_blank_icons():
    scores = IconComparer().search(
        BLACK_SQUARE,
        {"same": BLACK_SQUARE, "inverted": EMPTY_ICON, "broken": "<svg><g></svg>"},
    )
    assert scores["same"] == pytest.approx(100.0)
    assert "inverted" in scores
    assert scores["inverted"] < 30.0
    assert "broken" not in scores


def test_search_rejects_reference_without_svg():
    comparer = IconComparer()
    seen = []
    comparer.on_progress(seen.append)
    candidate = MarkupIcon(BLACK_SQUARE)

    with pytest.raises(InvalidMarkupError):
        comparer.search("<div>no icon here</div>", {"a": candidate})

    assert seen == []
    assert comparer.running is False
    assert comparer.scores == {}
