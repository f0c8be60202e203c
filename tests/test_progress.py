"""
Tests for progress and stage-timing log helpers.
"""

import logging

from pafcluster.utils.perf_utils import time_stage
from pafcluster.utils.progress import ProgressLogger


def test_progress_logger_passes_items_through(caplog):
    progress = ProgressLogger(total=None, label="edges", step_every=2, secs_every=3600)

    with caplog.at_level(logging.INFO):
        items = list(progress.wrap(range(5)))

    assert items == [0, 1, 2, 3, 4]
    assert progress.count == 5
    lines = [r.getMessage() for r in caplog.records if r.getMessage().startswith("edges:")]
    # every second item plus the final line
    assert len(lines) == 3
    assert lines[-1].startswith("edges: 5/?")


def test_progress_logger_empty_stream(caplog):
    progress = ProgressLogger(total=0, label="edges")

    with caplog.at_level(logging.INFO):
        assert list(progress.wrap([])) == []

    assert any("edges: 0/0" in r.getMessage() for r in caplog.records)


def test_time_stage_logs_on_error(caplog):
    logger = logging.getLogger("test.stage")

    with caplog.at_level(logging.INFO):
        try:
            with time_stage("rbh 1/2", logger):
                raise ValueError("boom")
        except ValueError:
            pass

    messages = [r.getMessage() for r in caplog.records]
    assert "[stage:start] rbh 1/2" in messages
    assert any(m.startswith("[stage:end] rbh 1/2") for m in messages)
