import asyncio
import json
import logging
import sys

import pytest

from downpour import cli


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level, hook = list(root.handlers), root.level, sys.excepthook
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    sys.excepthook = hook


def test_missing_stopping_condition_exits_2(capsys):
    code = asyncio.run(cli.run(["--url", "http://127.0.0.1/ok"]))
    assert code == 2
    assert capsys.readouterr().out == ""


def test_bad_header_exits_2():
    argv = ["--url", "http://127.0.0.1/ok", "--requests", "1", "--header", "nocolon"]
    assert asyncio.run(cli.run(argv)) == 2


def test_zero_requests_json_report(capsys):
    argv = ["--url", "http://127.0.0.1/ok", "--requests", "0", "--output", "json", "--no-progress-bar"]
    assert asyncio.run(cli.run(argv)) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["sent"] == 0
    assert data["requests_target"] == 0


def test_bad_env_default_exits_2(monkeypatch, capsys):
    monkeypatch.setenv("DOWNPOUR_CONCURRENCY", "four")
    code = asyncio.run(cli.run(["--url", "http://127.0.0.1/ok", "--requests", "1"]))
    assert code == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "DOWNPOUR_CONCURRENCY" in captured.err
