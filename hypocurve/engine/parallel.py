"""Per-segment fan-out. Results come back in segment order regardless of completion order."""

from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable, TypeVar

from hypocurve.errors import CurveError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def map_segments(fn: Callable[[int], T], n: int, max_workers: int = 1) -> list[T]:
    """Run fn(i) for i in range(n) and return the results indexed by i.

    The first CurveError aborts the whole map: pending work is cancelled,
    partial results are dropped and the error is re-raised tagged with the
    failing segment index.
    """
    if n <= 0:
        return []

    if max_workers <= 1 or n == 1:
        results: list[T] = []
        for i in range(n):
            try:
                results.append(fn(i))
            except CurveError as e:
                e.with_segment(i)
                raise
        return results

    with ThreadPoolExecutor(max_workers=min(max_workers, n)) as pool:
        futures = [pool.submit(fn, i) for i in range(n)]
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)

        failed = [i for i, f in enumerate(futures) if f in done and f.exception() is not None]
        if failed:
            for f in pending:
                f.cancel()
            i = failed[0]
            error = futures[i].exception()
            logger.debug("Segment %d failed, cancelled %d pending tasks", i, len(pending))
            if isinstance(error, CurveError):
                raise error.with_segment(i)
            raise error

        return [f.result() for f in futures]
