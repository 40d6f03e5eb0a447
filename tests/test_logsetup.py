import json
import logging

import pytest

from n8nctl import logsetup


def _json_lines(text):
    return [json.loads(line) for line in text.splitlines() if line.strip()]


def test_debug_flag_enables_debug_level(capsys):
    logger = logsetup.init_logger(True, {})
    assert logger.level == logging.DEBUG
    assert "Debug logging enabled" in capsys.readouterr().err


@pytest.mark.parametrize("value", ["1", "true"])
def test_debug_environment_enables_debug(value, capsys):
    logger = logsetup.init_logger(False, {"DEBUG": value})
    assert logger.level == logging.DEBUG


def test_other_debug_value_keeps_info(capsys):
    logger = logsetup.init_logger(False, {"DEBUG": "yes"})
    assert logger.level == logging.INFO


def test_production_output_is_json(capsys):
    logsetup.init_logger(False, {})
    logsetup.debug("hidden %s", "detail")
    logsetup.info("value %s", 42)
    records = _json_lines(capsys.readouterr().err)
    assert len(records) == 1
    assert records[0]["msg"] == "value 42"
    assert records[0]["level"] == "info"
    assert records[0]["logger"] == "n8n-cli"


def test_warn_and_error_levels(capsys):
    logsetup.init_logger(False, {})
    logsetup.warn("careful")
    logsetup.error("broken")
    records = _json_lines(capsys.readouterr().err)
    assert [(r["level"], r["msg"]) for r in records] == [
        ("warning", "careful"),
        ("error", "broken"),
    ]


def test_debug_messages_shown_in_debug_mode(capsys):
    logsetup.init_logger(True, {})
    logsetup.debug("File size: %d bytes", 12)
    assert "File size: 12 bytes" in capsys.readouterr().err


def test_reinit_keeps_single_handler(capsys):
    logsetup.init_logger(False, {})
    logger = logsetup.init_logger(False, {})
    assert len(logger.handlers) == 1