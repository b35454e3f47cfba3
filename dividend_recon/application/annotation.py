"""Attach narrative annotations to detected breaks."""
from __future__ import annotations

import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Iterator, Sequence

from dividend_recon.domain.errors import AnnotationFailure
from dividend_recon.domain.models import Annotation, Break
from dividend_recon.domain.repositories import BreakAnnotator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnnotationRun:
    breaks: Sequence[Break] = field(default_factory=tuple)
    annotated: int = 0
    failed: int = 0
    skipped: int = 0
    total_cost: float = 0.0
    total_tokens: int = 0
    budget_exhausted: bool = False


def annotate_breaks(
    breaks: Sequence[Break],
    annotator: BreakAnnotator,
    *,
    max_concurrency: int = 4,
    budget: float | None = None,
) -> AnnotationRun:
    """Annotate every break, at most ``max_concurrency`` calls at a time.

    Once accumulated cost reaches ``budget`` no new calls are started;
    in-flight calls still complete and keep their result. An error from any
    single call counts as that break's failure. Breaks that fail or are never
    submitted are returned unchanged, in their original position.
    """
    if max_concurrency < 1:
        raise ValueError("max_concurrency must be at least 1")

    results: list[Break] = list(breaks)
    queue: Iterator[tuple[int, Break]] = iter(enumerate(breaks))
    pending: dict[Future[Annotation], int] = {}
    annotated = failed = total_tokens = 0
    total_cost = 0.0
    exhausted = budget is not None and budget <= 0

    with ThreadPoolExecutor(max_workers=max_concurrency) as executor:

        def fill() -> None:
            while not exhausted and len(pending) < max_concurrency:
                try:
                    index, item = next(queue)
                except StopIteration:
                    return
                pending[executor.submit(annotator.annotate, item)] = index

        fill()
        while pending:
            done, _ = wait(pending, return_when=FIRST_COMPLETED)
            for future in done:
                index = pending.pop(future)
                try:
                    annotation = future.result()
                except AnnotationFailure as exc:
                    failed += 1
                    item = results[index]
                    logger.warning(
                        "Annotation failed for %s break on event %s: %s", item.kind.value, item.event_key, exc
                    )
                    continue
                except Exception:
                    failed += 1
                    item = results[index]
                    logger.exception(
                        "Annotator raised unexpectedly for %s break on event %s", item.kind.value, item.event_key
                    )
                    continue
                results[index] = results[index].with_annotation(annotation)
                annotated += 1
                total_cost += annotation.usage.cost
                total_tokens += annotation.usage.total_tokens
            if not exhausted and budget is not None and total_cost >= budget:
                exhausted = True
                logger.info("Annotation budget %.4f reached at %.4f; stopping new calls", budget, total_cost)
            fill()

    skipped = len(results) - annotated - failed
    logger.info(
        "Annotated %d of %d breaks (%d failed, %d skipped, cost %.6f)",
        annotated,
        len(results),
        failed,
        skipped,
        total_cost,
    )
    return AnnotationRun(
        breaks=tuple(results),
        annotated=annotated,
        failed=failed,
        skipped=skipped,
        total_cost=total_cost,
        total_tokens=total_tokens,
        budget_exhausted=exhausted,
    )
