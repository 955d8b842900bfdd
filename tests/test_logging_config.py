import logging
import sys

import pytest

from downpour.logging_config import NOISY_LOGGERS, setup_logging


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level, hook = list(root.handlers), root.level, sys.excepthook
    levels = {name: logging.getLogger(name).level for name in NOISY_LOGGERS}
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    sys.excepthook = hook
    for name, lvl in levels.items():
        logging.getLogger(name).setLevel(lvl)


def test_logs_go_to_stderr_not_stdout(capsys):
    setup_logging("INFO")
    logging.getLogger("downpour.core").info("progress: completed=10")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "progress: completed=10" in captured.err


def test_debug_keeps_http_stack_quiet():
    root = setup_logging("debug")
    assert root.level == logging.DEBUG
    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING


def test_log_file_mirrors_records(tmp_path):
    log_file = tmp_path / "run.log"
    setup_logging("INFO", log_file=str(log_file))
    logging.getLogger("downpour.core").warning("Progress callback failed: boom")
    for h in logging.getLogger().handlers:
        h.flush()
    text = log_file.read_text(encoding="utf-8")
    assert "Progress callback failed: boom" in text
    assert "| WARNING  |" in text
