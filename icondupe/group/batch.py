"""Drive rasterization and scoring across a named collection of candidate icons."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Mapping, Union

from ..errors import IconCompareError
from ..features.pixel import compare
from ..io.models import BatchRun, ComparisonProgress, RasterImage
from ..render.base import Renderable

logger = logging.getLogger(__name__)

Source = Union[Renderable, str, bytes]
Scores = Dict[str, float]
ProgressListener = Callable[[ComparisonProgress], None]
CompleteListener = Callable[[Scores], None]


class IconComparer:
    """Single-flight batch comparison of candidate icons against a reference.

    Only one batch may run per instance. Calls to :meth:`run` or :meth:`search`
    while a batch is active are ignored and return ``None``. Candidates are
    processed in input order, progress is published before each attempt, and a
    candidate that fails to rasterize is logged and left out of the result.
    """

    def __init__(self) -> None:
        self.running = False
        self.progress = ComparisonProgress.idle()
        self.scores: Scores = {}
        self.generation = 0
        self._batch: BatchRun | None = None
        self._progress_listeners: List[ProgressListener] = []
        self._complete_listeners: List[CompleteListener] = []

    def on_progress(self, listener: ProgressListener) -> ProgressListener:
        self._progress_listeners.append(listener)
        return listener

    def on_complete(self, listener: CompleteListener) -> CompleteListener:
        self._complete_listeners.append(listener)
        return listener

    def search(self, reference: Source, candidates: Mapping[str, Source]) -> Scores | None:
        """Rasterize the *reference* markup and score every candidate against it.

        Reference failures (:class:`~icondupe.errors.InvalidMarkupError`,
        :class:`~icondupe.errors.DecodeError`) propagate to the caller before any
        candidate is touched.
        """
        if self.running:
            logger.debug("Comparison already running; ignoring search request")
            return None
        self.running = True
        try:
            reference_image = _as_renderable(reference).rasterize()
        except Exception:
            self.running = False
            raise
        return self._execute(reference_image, candidates)

    def run(self, reference: RasterImage, candidates: Mapping[str, Source]) -> Scores | None:
        """Score every candidate against an already rasterized *reference*."""
        if self.running:
            logger.debug("Comparison already running; ignoring run request")
            return None
        self.running = True
        return self._execute(reference, candidates)

    def reset(self) -> None:
        """Clear scores and progress and abandon any batch still in flight."""
        if self._batch is not None:
            logger.info("Abandoning comparison batch %d", self._batch.generation)
        self.generation += 1
        self._batch = None
        self.running = False
        self.scores = {}
        self.progress = ComparisonProgress.idle()

    def _execute(self, reference: RasterImage, candidates: Mapping[str, Source]) -> Scores | None:
        self.generation += 1
        entries = list(candidates.items())
        total = len(entries)
        batch = BatchRun(
            reference=reference,
            names=[name for name, _ in entries],
            generation=self.generation,
        )
        self._batch = batch
        self.scores = {}
        logger.info("Comparing %d candidates (batch %d)", total, batch.generation)

        try:
            self._publish(batch, ComparisonProgress(0, total))
            for index, (name, source) in enumerate(entries, start=1):
                if self._superseded(batch):
                    return None
                self._publish(batch, ComparisonProgress(index, total))
                if self._superseded(batch):
                    return None
                try:
                    candidate = _as_renderable(source).rasterize()
                    batch.scores[name] = compare(reference, candidate)
                except IconCompareError as exc:
                    logger.warning("Skipping %s: %s", name, exc)
                except Exception:
                    logger.exception("Unexpected error processing %s", name)

            if self._superseded(batch):
                return None
            scores = dict(batch.scores)
            self.scores = scores
            self._finish(batch)
            logger.info(
                "Scored %d of %d candidates (batch %d)", len(scores), total, batch.generation
            )
            for listener in self._complete_listeners:
                listener(dict(scores))
            return scores
        finally:
            if self._batch is batch:
                self._finish(batch)

    def _publish(self, batch: BatchRun, progress: ComparisonProgress) -> None:
        batch.progress = progress
        self.progress = progress
        for listener in self._progress_listeners:
            listener(progress)

    def _finish(self, batch: BatchRun) -> None:
        if self._batch is batch:
            self._batch = None
            self.running = False
            self.progress = ComparisonProgress.idle()

    def _superseded(self, batch: BatchRun) -> bool:
        if batch.generation == self.generation and self._batch is batch:
            return False
        logger.info("Discarding superseded comparison batch %d", batch.generation)
        return True


def _as_renderable(value: Source) -> Renderable:
    if isinstance(value, Renderable):
        return value
    # Deferred so the comparer stays importable without cairo.
    from ..render.sources import as_renderable

    return as_renderable(value)
