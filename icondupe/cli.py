"""Command-line interface for finding duplicate icons in an icon library."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Iterable, Sequence

from tqdm import tqdm

from .errors import IconCompareError
from .extract.normalize import looks_like_svg
from .group.batch import IconComparer, Source
from .group.ranking import (
    DUPLICATE_THRESHOLD,
    SIMILAR_THRESHOLD,
    filter_names,
    rank_scores,
    similarity_band,
)
from .io.models import ComparisonProgress, SimilarityScore
from .render.widget import WidgetIcon

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for the icon duplicate search."""
    parser = argparse.ArgumentParser(
        description="Score every icon in a library against a reference SVG."
    )
    parser.add_argument(
        "--reference",
        required=True,
        help="Path to the reference SVG, or '-' to read pasted markup from stdin.",
    )
    parser.add_argument(
        "--icons",
        default=None,
        help="Directory of *.svg candidate icons, named by file stem.",
    )
    parser.add_argument(
        "--widgets",
        default=None,
        help="JSON file mapping names to widget HTML or {\"html\", \"script\"} objects.",
    )
    parser.add_argument(
        "--filter",
        default=None,
        help="Only compare candidates whose name contains this text.",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=20,
        metavar="N",
        help="Show the N most similar icons (0 shows all).",
    )
    parser.add_argument(
        "--duplicate-threshold",
        type=float,
        default=DUPLICATE_THRESHOLD,
        help="Similarity above which an icon is reported as a likely duplicate.",
    )
    parser.add_argument(
        "--similar-threshold",
        type=float,
        default=SIMILAR_THRESHOLD,
        help="Similarity above which an icon is reported as very similar.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the name to similarity mapping as JSON instead of a table.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=_LOG_LEVELS,
        type=str.upper,
        help="Logging verbosity (default WARNING).",
    )
    args = parser.parse_args(list(argv) if argv is not None else None)
    if not args.icons and not args.widgets:
        parser.error("at least one of --icons or --widgets is required")
    return args


def read_reference(value: str) -> str:
    """Return reference markup from *value*, a file path or ``-`` for stdin."""
    if value == "-":
        return sys.stdin.read()
    path = Path(value)
    if not path.exists():
        raise FileNotFoundError(f"Reference file does not exist: {path}")
    return path.read_text(encoding="utf-8-sig")


def load_icon_dir(path: Path) -> dict[str, str]:
    """Read every ``*.svg`` file under *path* in name order."""
    if not path.is_dir():
        raise NotADirectoryError(f"Icon directory does not exist: {path}")
    icons: dict[str, str] = {}
    for svg_path in sorted(path.glob("*.svg")):
        icons[svg_path.stem] = svg_path.read_text(encoding="utf-8-sig", errors="replace")
    return icons


def load_widgets(path: Path) -> dict[str, WidgetIcon]:
    """Read a JSON widget manifest and return :class:`WidgetIcon` entries."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Widget manifest must be a JSON object: {path}")
    widgets: dict[str, WidgetIcon] = {}
    for name, entry in data.items():
        widget = _widget_from_entry(name, entry)
        if widget is None:
            logger.warning("Ignoring widget %s: unsupported manifest entry", name)
            continue
        widgets[name] = widget
    return widgets


def _widget_from_entry(name: str, entry: Any) -> WidgetIcon | None:
    if isinstance(entry, str):
        return WidgetIcon(html=entry, label=name)
    if isinstance(entry, dict):
        html = entry.get("html")
        script = entry.get("script")
        if not isinstance(html, str) and not isinstance(script, str):
            return None
        return WidgetIcon(
            html=html if isinstance(html, str) else "",
            script=script if isinstance(script, str) else None,
            label=name,
        )
    return None


def _collect_candidates(args: argparse.Namespace) -> dict[str, Source]:
    candidates: dict[str, Source] = {}
    if args.icons:
        candidates.update(load_icon_dir(Path(args.icons)))
    if args.widgets:
        candidates.update(load_widgets(Path(args.widgets)))
    names = filter_names(candidates, args.filter)
    return {name: candidates[name] for name in names}


def _print_report(
    rows: Sequence[SimilarityScore], top: int, duplicate: float, similar: float
) -> None:
    shown = rows[:top] if top > 0 else rows
    if not shown:
        print("[results] no icons could be scored")
        return
    for index, row in enumerate(shown, start=1):
        band = similarity_band(row.similarity, duplicate=duplicate, similar=similar)
        label = f" [{band}]" if band else ""
        print(f"  {index}. {row.name} {row.similarity:.1f}%{label}")
    duplicates = sum(1 for row in rows if row.similarity > duplicate)
    print(
        f"[results] {len(rows)} scored, {duplicates} likely duplicates "
        f"(>{duplicate:.0f}%), showing {len(shown)}"
    )


def main(argv: Iterable[str] | None = None) -> int:
    """Entry point for the CLI."""
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    reference = read_reference(args.reference)
    if not looks_like_svg(reference):
        print("[error] reference does not contain <svg>...</svg> markup", file=sys.stderr)
        return 2

    candidates = _collect_candidates(args)
    print(f"[icons] {len(candidates)} candidates", file=sys.stderr)

    comparer = IconComparer()
    with tqdm(total=len(candidates), desc="Comparing icons", unit="icon", leave=False) as bar:

        @comparer.on_progress
        def _advance(progress: ComparisonProgress) -> None:
            bar.update(progress.current - bar.n)

        try:
            scores = comparer.search(reference, candidates)
        except IconCompareError as exc:
            print(f"[error] reference icon rejected: {exc}", file=sys.stderr)
            return 2

    if scores is None:
        return 1
    if args.json:
        print(json.dumps(scores, indent=2, sort_keys=True))
    else:
        _print_report(
            rank_scores(scores), args.top, args.duplicate_threshold, args.similar_threshold
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
