import logging

import pytest

from matchgraph.core.logging import (
    ProgressLogger,
    get_logger,
    log_timing,
    setup_logging,
)


def test_setup_logging_writes_file(tmp_path):
    log_file = tmp_path / "crawl.log"
    logger = setup_logging("DEBUG", log_file=log_file, format_style="simple")
    get_logger("continuous.manager").debug("hello from a worker")
    for handler in logger.handlers:
        handler.flush()

    assert logger.name == "matchgraph"
    assert logger.level == logging.DEBUG
    assert "DEBUG: hello from a worker" in log_file.read_text()


def test_log_timing_reraises(caplog):
    logger = logging.getLogger("matchgraph.test")
    caplog.set_level(logging.INFO, logger="matchgraph.test")
    with pytest.raises(RuntimeError):
        with log_timing(logger, "rating pass"):
            raise RuntimeError("boom")
    assert any("Failed rating pass" in m for m in caplog.messages)


def test_progress_logger_reports_at_interval(caplog):
    logger = logging.getLogger("matchgraph.test")
    caplog.set_level(logging.INFO, logger="matchgraph.test")
    with ProgressLogger(logger, "frontier drain", update_interval=2) as progress:
        for i in range(1, 6):
            progress.update(i, "queued")
    progress_lines = [m for m in caplog.messages if "items" in m]
    assert len(progress_lines) == 2
    assert progress_lines[0].startswith("frontier drain: 2 items")
