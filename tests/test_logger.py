"""Test structured log formatting."""

import json
import logging

from peel_n_edit.utils.logger import JSONFormatter, get_logger


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("peel_n_edit.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formats_message_and_extras():
    output = json.loads(JSONFormatter().format(make_record(session_id="s1", step=2)))

    assert output["message"] == "hello world"
    assert output["level"] == "INFO"
    assert output["session_id"] == "s1"
    assert output["step"] == 2
    assert output["timestamp"].endswith("Z")


def test_image_payloads_are_not_logged():
    data_url = "data:image/png;base64," + "A" * 500
    output = json.loads(JSONFormatter().format(make_record(image=b"\x00" * 10, url=data_url, items=[b"ab"])))

    assert output["image"] == "<bytes: 10 bytes>"
    assert output["url"] == f"<data-url: {len(data_url)} chars>"
    assert output["items"] == ["<bytes: 2 bytes>"]


def test_get_logger_configures_once():
    logger = get_logger("peel_n_edit.test_once")
    again = get_logger("peel_n_edit.test_once")

    assert logger is again
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, JSONFormatter)
