import io
import json
import logging

import pytest

from captcha_gateway.app import logging as logging_config


def _reset_root_logger(original_handlers):
    root = logging.getLogger()
    root.handlers = list(original_handlers)
    root.setLevel(logging.NOTSET)


@pytest.mark.parametrize("initial_handlers", [None, [logging.StreamHandler(io.StringIO())]])
def test_setup_logging_respects_existing_handlers(initial_handlers):
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    try:
        if initial_handlers is None:
            root.handlers = []
            expected_handlers = 1
        else:
            root.handlers = list(initial_handlers)
            expected_handlers = len(initial_handlers)

        logging_config.setup_logging(level="DEBUG")

        assert len(root.handlers) == expected_handlers
        assert root.level == logging.DEBUG
        for handler in root.handlers:
            if initial_handlers is None:
                assert handler.level in (logging.NOTSET, logging.DEBUG)
            else:
                assert handler.level == logging.DEBUG
    finally:
        _reset_root_logger(original_handlers)


def test_structlog_events_rendered_as_json(capsys):
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    try:
        logging_config.setup_logging(level="INFO")
        logging_config.get_logger("captcha_gateway.test").warning(
            "settings_self_test_failed", integrations=["wordpress_core_enable_login"]
        )
        logging_config.get_logger("captcha_gateway.test").debug("hidden_event")
    finally:
        _reset_root_logger(original_handlers)

    output = capsys.readouterr().out
    with capsys.disabled():
        logging_config.setup_logging(level="INFO")

    lines = [line for line in output.splitlines() if line.strip()]
    events = [json.loads(line) for line in lines]
    assert [event["event"] for event in events] == ["settings_self_test_failed"]
    assert events[0]["level"] == "warning"
    assert events[0]["integrations"] == ["wordpress_core_enable_login"]
    assert "timestamp" in events[0]
