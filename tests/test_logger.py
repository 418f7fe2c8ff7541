"""Tests for the logger utility."""

from __future__ import annotations

import pytest

from chatloop.utils.logger import LogLevel, Logger, get_log_level, parse_log_level, set_log_level


@pytest.fixture(autouse=True)
def restore_level():
    level = get_log_level()
    yield
    set_log_level(level)


def test_parse_log_level():
    assert parse_log_level("debug") is LogLevel.DEBUG
    assert parse_log_level("WARN") is LogLevel.WARNING
    assert parse_log_level("nonsense") is LogLevel.INFO
    assert parse_log_level(None, LogLevel.ERROR) is LogLevel.ERROR


def test_context_prefix_and_child(capsys):
    set_log_level("info")
    Logger("Agent").child("Executor").info("hello")

    out = capsys.readouterr().out
    assert "[Agent:Executor] hello" in out
    assert "[INFO]" in out


def test_level_filtering(capsys):
    set_log_level(LogLevel.WARNING)
    log = Logger("Test")

    log.info("hidden")
    log.warning("shown")

    out = capsys.readouterr().out
    assert "hidden" not in out
    assert "shown" in out


def test_errors_go_to_stderr_with_details(capsys):
    set_log_level("info")

    Logger("Test").error("failed", ValueError("bad value"))

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "failed" in captured.err
    assert '"error_type": "ValueError"' in captured.err
    assert "bad value" in captured.err


def test_data_is_dumped(capsys):
    set_log_level("debug")

    Logger("Test").debug("tick", {"entries": 3})

    assert '"entries": 3' in capsys.readouterr().out
