import io
import json
from datetime import datetime

import pytest

from voicetype import logger
from voicetype.logger import LogLevel, Logger


def _entries(text):
    return [json.loads(line) for line in text.splitlines()]


@pytest.fixture
def default_state():
    saved = (logger._default.level, logger._default.debug_enabled)
    yield
    logger._default.level, logger._default.debug_enabled = saved


def test_info_entry_format():
    out = io.StringIO()
    Logger(LogLevel.INFO, out).info("hello %s", "world")
    entries = _entries(out.getvalue())
    assert len(entries) == 1
    assert entries[0]["level"] == "INFO"
    assert entries[0]["message"] == "hello world"
    assert set(entries[0]) == {"timestamp", "level", "message"}


def test_entry_ends_with_newline():
    out = io.StringIO()
    Logger(LogLevel.DEBUG, out).warn("careful")
    assert out.getvalue().endswith("\n")
    assert out.getvalue().count("\n") == 1


def test_timestamp_is_rfc3339_with_zone():
    out = io.StringIO()
    Logger(LogLevel.DEBUG, out).info("tick")
    stamp = _entries(out.getvalue())[0]["timestamp"]
    parsed = datetime.fromisoformat(stamp.replace("Z", "+00:00"))
    assert parsed.tzinfo is not None
    assert parsed.microsecond == 0


def test_level_filtering():
    out = io.StringIO()
    log = Logger(LogLevel.WARN, out)
    log.debug("a")
    log.info("b")
    log.warn("c")
    log.error("d")
    levels = [e["level"] for e in _entries(out.getvalue())]
    assert levels == ["WARN", "ERROR"]


def test_changing_level():
    out = io.StringIO()
    log = Logger(LogLevel.ERROR, out)
    log.info("hidden")
    log.level = LogLevel.DEBUG
    log.debug("shown")
    assert [e["message"] for e in _entries(out.getvalue())] == ["shown"]


def test_error_also_goes_to_stderr(capsys):
    out = io.StringIO()
    Logger(LogLevel.INFO, out).error("failed %d times", 3)
    assert capsys.readouterr().err == "failed 3 times\n"
    assert _entries(out.getvalue())[0]["message"] == "failed 3 times"


def test_message_without_args_is_literal():
    out = io.StringIO()
    Logger(LogLevel.INFO, out).info("100% done")
    assert _entries(out.getvalue())[0]["message"] == "100% done"


def test_default_logger_writes_to_stdout(capsys, default_state):
    logger.info("started %s", "app")
    entries = _entries(capsys.readouterr().out)
    assert entries[0]["message"] == "started app"
    assert entries[0]["level"] == "INFO"


def test_default_logger_hides_debug_until_enabled(capsys, default_state):
    logger._default.level = LogLevel.INFO
    logger.debug("quiet")
    assert capsys.readouterr().out == ""
    logger.set_debug(True)
    logger.debug("loud")
    entries = _entries(capsys.readouterr().out)
    assert [e["level"] for e in entries] == ["DEBUG"]
    assert logger._default.debug_enabled is True


def test_default_warn_and_error(capsys, default_state):
    logger.warn("w")
    logger.error("e")
    captured = capsys.readouterr()
    assert [e["level"] for e in _entries(captured.out)] == ["WARN", "ERROR"]
    assert captured.err == "e\n"