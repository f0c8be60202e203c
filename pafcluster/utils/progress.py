from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Iterator
from typing import Optional, TypeVar

T = TypeVar("T")


class ProgressLogger:
    """Throttled progress lines for long edge streams.

    Logs at most every ``step_every`` items or ``secs_every`` seconds,
    whichever comes first, plus a final line when the stream ends.
    """

    def __init__(
        self,
        total: Optional[int],
        label: str,
        step_every: int = 100_000,
        secs_every: float = 5.0,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.total = total
        self.label = label
        self.step_every = step_every
        self.secs_every = secs_every
        self.count = 0
        self._last_log_count = 0
        self._last_log_time = time.time()
        self._start = self._last_log_time
        self._logger = logger or logging.getLogger(__name__)

    def _should_log(self, i: int) -> bool:
        if i - self._last_log_count >= self.step_every:
            return True
        return time.time() - self._last_log_time >= self.secs_every

    def _fmt(self, i: int) -> str:
        elapsed = time.time() - self._start
        rate = i / elapsed if elapsed > 0 else 0.0
        eta = ""
        if self.total is not None and rate > 0:
            remaining = max(self.total - i, 0)
            eta = f" | eta={remaining / rate:,.0f}s"
        return f"{self.label}: {i:,}/{self.total if self.total is not None else '?'} it | {rate:,.0f} it/s | elapsed={elapsed:,.1f}s{eta}"

    def wrap(self, it: Iterable[T]) -> Iterator[T]:
        for i, item in enumerate(it, 1):
            self.count = i
            if self._should_log(i):
                self._logger.info(self._fmt(i))
                self._last_log_count = i
                self._last_log_time = time.time()
            yield item
        self._logger.info(self._fmt(self.count))
