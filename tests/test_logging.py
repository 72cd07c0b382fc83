from __future__ import annotations

import logging
from pathlib import Path

from palettemap.logging import CONSOLE_FORMAT, configure_logging, get_logger


def test_get_logger_nests_under_package_logger() -> None:
    assert get_logger("merge").name == "palettemap.merge"
    assert get_logger().name == "palettemap"


def test_reconfiguring_replaces_handlers(tmp_path: Path) -> None:
    configure_logging(log_file=tmp_path / "first.log")
    logger = configure_logging(verbose=True)

    assert logger.level == logging.DEBUG
    assert logger.propagate is False
    assert len(logger.handlers) == 1
    assert logger.handlers[0].formatter._fmt == CONSOLE_FORMAT  # type: ignore[union-attr]


def test_file_sink_includes_thread_name(tmp_path: Path) -> None:
    log_file = tmp_path / "nested" / "run.log"
    configure_logging(log_file=log_file)

    get_logger("orchestrator").info("hello")

    assert "[MainThread] palettemap.orchestrator: hello" in log_file.read_text(encoding="utf-8")
