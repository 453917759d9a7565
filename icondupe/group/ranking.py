"""Order and label comparison results for display by a host."""

from __future__ import annotations

from typing import Iterable, Mapping

from ..io.models import SimilarityScore

DUPLICATE_THRESHOLD = 90.0
SIMILAR_THRESHOLD = 70.0
RELATED_THRESHOLD = 50.0


def rank_scores(scores: Mapping[str, float]) -> list[SimilarityScore]:
    """Return *scores* as :class:`SimilarityScore` rows, most similar first."""
    ordered = sorted(scores.items(), key=lambda item: (-float(item[1]), item[0]))
    return [SimilarityScore(name=name, similarity=float(value)) for name, value in ordered]


def similarity_band(
    similarity: float,
    duplicate: float = DUPLICATE_THRESHOLD,
    similar: float = SIMILAR_THRESHOLD,
) -> str | None:
    """Return ``"duplicate"``, ``"similar"``, ``"related"`` or ``None``."""
    if similarity > duplicate:
        return "duplicate"
    if similarity > similar:
        return "similar"
    if similarity > RELATED_THRESHOLD:
        return "related"
    return None


def filter_names(names: Iterable[str], term: str | None) -> list[str]:
    """Return the *names* containing *term*, ignoring case."""
    if not term:
        return list(names)
    needle = term.lower()
    return [name for name in names if needle in name.lower()]
