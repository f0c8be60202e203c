"""Stage timing for clustering runs.

Stages are the self-score load (``self_scores``), each pass labelled by
phase and source groups (``rbh 1/2``, ``threshold 1``), and the
pipeline-level ``clustering`` and ``emit``. Each stage logs a start line
and an end line with its duration, even when the stage raises.
"""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager


@contextmanager
def time_stage(stage: str, logger: logging.Logger) -> Iterator[None]:
    """Log the start and duration of a clustering stage.

    Args:
        stage: Stage label, e.g. ``threshold 1/2``
        logger: Logger receiving both lines

    """
    started = time.perf_counter()
    logger.info(f"[stage:start] {stage}")
    try:
        yield
    finally:
        logger.info(f"[stage:end] {stage} ({time.perf_counter() - started:.2f}s)")
