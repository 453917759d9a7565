"""Render HTML/JS icon widgets in a headless browser and rasterize their SVG."""

from __future__ import annotations

import atexit
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from threading import Lock
from typing import Any, Iterator

from ..errors import RenderFailure
from ..extract.normalize import normalize_svg
from ..io.models import CANONICAL_SIZE, RasterImage
from .raster import rasterize_markup

try:
    from playwright.sync_api import (  # type: ignore[import-untyped]
        Error as PlaywrightError,
        sync_playwright,
    )
except ImportError:  # pragma: no cover - graceful degradation when playwright missing
    sync_playwright = None  # type: ignore[assignment]
    PlaywrightError = Exception  # type: ignore[assignment,misc]


logger = logging.getLogger(__name__)

WIDGET_SIZE = 64
_PLAYWRIGHT_TIMEOUT_MS = 10_000
SCRIPT_TIMEOUT_MS = 5_000
_BLANK_DOCUMENT = "<!doctype html><html><head></head><body></body></html>"

_CREATE_CONTAINER_JS = """
(size) => {
  const el = document.createElement('div');
  el.setAttribute('data-icondupe-mount', '');
  Object.assign(el.style, {
    position: 'absolute',
    left: '-9999px',
    top: '-9999px',
    width: size + 'px',
    height: size + 'px',
  });
  document.body.appendChild(el);
  return el;
}
"""

_MOUNT_HTML_JS = "(el, html) => { el.innerHTML = html; }"

_REMOVE_CONTAINER_JS = "(el) => { el.replaceChildren(); el.remove(); }"

_NEXT_PAINT_JS = """
(timeoutMs) => Promise.race([
  new Promise((resolve) => {
    requestAnimationFrame(() => requestAnimationFrame(() => resolve(true)));
  }),
  new Promise((_, reject) => setTimeout(
    () => reject(new Error('paint did not settle within ' + timeoutMs + 'ms')), timeoutMs)),
])
"""

_RUN_SCRIPT_JS = """
(el, args) => {
  const fn = (0, eval)('(' + args.source + ')');
  return Promise.race([
    Promise.resolve(fn(el)).then(() => true),
    new Promise((_, reject) => setTimeout(
      () => reject(new Error('widget script did not finish within ' + args.timeoutMs + 'ms')),
      args.timeoutMs)),
  ]);
}
"""

_EXTRACT_SVG_JS = """
(el, size) => {
  const svg = el.querySelector('svg');
  if (!svg) return null;
  const clone = svg.cloneNode(true);
  clone.setAttribute('width', String(size));
  clone.setAttribute('height', String(size));
  return new XMLSerializer().serializeToString(clone);
}
"""


@dataclass(frozen=True)
class WidgetIcon:
    """An icon produced by markup and script running in a browser page.

    ``html`` is placed inside the mount container. ``script``, when given, is a
    JavaScript function expression called with the container element, for
    example ``"(el) => customElements.whenDefined('x-icon')"``. A returned
    promise is awaited for at most ``SCRIPT_TIMEOUT_MS``.
    """

    html: str = ""
    script: str | None = None
    label: str | None = None

    def rasterize(self) -> RasterImage:
        return render_widget(self)


_playwright_lock = Lock()
_playwright = None
_browser = None
_page = None


def shutdown_browser() -> None:
    """Close the shared Playwright page, browser and driver."""
    global _playwright, _browser, _page
    with _playwright_lock:
        if _page is not None:
            try:
                _page.close()
            except Exception:  # pragma: no cover - best-effort cleanup
                logger.debug("Failed to close page", exc_info=True)
            _page = None
        if _browser is not None:
            try:
                _browser.close()
            except Exception:  # pragma: no cover - best-effort cleanup
                logger.debug("Failed to close browser", exc_info=True)
            _browser = None
        if _playwright is not None:
            try:
                _playwright.stop()
            except Exception:  # pragma: no cover - best-effort cleanup
                logger.debug("Failed to stop Playwright", exc_info=True)
            _playwright = None


def _ensure_page():
    """Start Playwright on first use and return the shared mount page."""
    global _playwright, _browser, _page
    if sync_playwright is None:
        logger.error("Playwright is not installed; cannot render widgets.")
        return None
    with _playwright_lock:
        if _page is not None:
            return _page
        playwright = sync_playwright().start()
        browser = None
        try:
            browser = playwright.chromium.launch(headless=True)
            page = browser.new_page()
            page.set_default_timeout(_PLAYWRIGHT_TIMEOUT_MS)
            page.set_content(_BLANK_DOCUMENT)
        except Exception:
            _stop_partial(playwright, browser)
            raise
        _playwright = playwright
        _browser = browser
        _page = page
        atexit.register(shutdown_browser)
        return _page


def _stop_partial(playwright, browser) -> None:
    if browser is not None:
        try:
            browser.close()
        except Exception:  # pragma: no cover - best-effort cleanup
            logger.debug("Failed to close browser after launch failure", exc_info=True)
    try:
        playwright.stop()
    except Exception:  # pragma: no cover - best-effort cleanup
        logger.debug("Failed to stop Playwright after launch failure", exc_info=True)


@contextmanager
def offscreen_container(page: Any, size: int = WIDGET_SIZE) -> Iterator[Any]:
    """Yield an invisible mount element, emptied and detached on every exit."""
    container = page.evaluate_handle(_CREATE_CONTAINER_JS, size)
    try:
        yield container
    finally:
        try:
            container.evaluate(_REMOVE_CONTAINER_JS)
        except PlaywrightError:  # pragma: no cover - page already gone
            logger.debug("Failed to remove offscreen container", exc_info=True)
        finally:
            container.dispose()


def wait_for_settle(page: Any, timeout_ms: int = SCRIPT_TIMEOUT_MS) -> None:
    """Block until two consecutive animation frames have been painted."""
    page.evaluate(_NEXT_PAINT_JS, timeout_ms)


def render_widget(
    widget: WidgetIcon,
    page: Any = None,
    size: int = CANONICAL_SIZE,
    timeout_ms: int = SCRIPT_TIMEOUT_MS,
) -> RasterImage:
    """Mount *widget* offscreen, extract its ``<svg>`` and rasterize it.

    Raises :class:`RenderFailure` when the widget yields no ``<svg>`` after
    settling, its script or the paint wait exceeds *timeout_ms*, or the
    browser cannot be driven.
    """
    label = widget.label or "widget"
    try:
        target = page if page is not None else _ensure_page()
        if target is None:
            raise RenderFailure("Playwright is not installed; cannot render widgets")
        with offscreen_container(target) as container:
            container.evaluate(_MOUNT_HTML_JS, widget.html)
            if widget.script:
                container.evaluate(
                    _RUN_SCRIPT_JS, {"source": widget.script, "timeoutMs": timeout_ms}
                )
            wait_for_settle(target, timeout_ms)
            markup = container.evaluate(_EXTRACT_SVG_JS, size)
    except RenderFailure:
        raise
    except PlaywrightError as exc:
        raise RenderFailure(f"{label} failed to render: {exc}") from exc

    if not markup:
        raise RenderFailure(f"{label} produced no <svg> output after settling")
    logger.debug("Extracted %d characters of markup from %s", len(markup), label)
    return rasterize_markup(normalize_svg(markup), size)
