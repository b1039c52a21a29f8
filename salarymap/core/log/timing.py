"""Stopwatch blocks that log how long a pipeline step took and what it kept."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from time import perf_counter
from typing import Iterator, Optional


class Stopwatch:
    """Counts processed and skipped items while a step runs."""

    def __init__(self, label: str, unit: str, total: Optional[int] = None) -> None:
        self.label = label
        self.unit = unit
        self.total = total
        self.processed = 0
        self.skipped = 0
        self._started = perf_counter()

    def add(self, amount: int = 1) -> None:
        self.processed += amount

    def skip(self, amount: int = 1) -> None:
        """Record items that were read but left out of the result."""
        self.skipped += amount

    def set_total(self, total: int) -> None:
        self.total = total

    @property
    def elapsed(self) -> float:
        return perf_counter() - self._started

    def summary(self) -> str:
        elapsed = self.elapsed
        count = self.total if self.total is not None else self.processed
        text = f"{self.label}: {count:,} {self.unit} in {elapsed:.3f}s"
        if count and elapsed > 0:
            text += f" ({count / elapsed:,.0f}/s)"
        if self.skipped:
            text += f", {self.skipped:,} skipped"
        return text


@contextmanager
def timeit(
    label: str,
    *,
    logger: Optional[logging.Logger] = None,
    level: int = logging.INFO,
    unit: str = "items",
    total: Optional[int] = None,
) -> Iterator[Stopwatch]:
    """Log the duration, throughput and skip count of the enclosed block.

    A block that raises is logged at error level and the exception propagates.
    """

    log = logger or logging.getLogger("salarymap.timing")
    watch = Stopwatch(label, unit, total)
    try:
        yield watch
    except Exception:
        log.error("%s failed after %.3fs", label, watch.elapsed)
        raise
    log.log(level, watch.summary())
