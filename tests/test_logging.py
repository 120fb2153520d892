"""Tests for the logging setup."""

import logging

import pytest

from airdash import logging as app_logging
from airdash.logging import RedactApiKey, configure, get_logger

PROVIDER_URL = (
    "https://api.openweathermap.org/data/2.5/weather"
    "?q=Long+Beach&appid=secret123&units=imperial"
)


def make_record(msg, *args):
    return logging.LogRecord("httpx", logging.INFO, __file__, 1, msg, args, None)


class TestRedactApiKey:
    def test_masks_appid_in_arguments(self):
        record = make_record(
            'HTTP Request: %s %s "%s"', "GET", PROVIDER_URL, "HTTP/1.1 200 OK"
        )

        assert RedactApiKey().filter(record) is True

        message = record.getMessage()
        assert "secret123" not in message
        assert "appid=***&units=imperial" in message

    def test_masks_appid_in_plain_message(self):
        record = make_record(f"Request failed for {PROVIDER_URL}")

        RedactApiKey().filter(record)

        assert record.getMessage().endswith("appid=***&units=imperial")

    def test_leaves_other_records_alone(self):
        record = make_record("Read %s = %s", "co2", 410.0)

        RedactApiKey().filter(record)

        assert record.args == ("co2", 410.0)
        assert record.getMessage() == "Read co2 = 410.0"


class TestConfigure:
    @pytest.fixture(autouse=True)
    def restore_loggers(self, monkeypatch):
        monkeypatch.setattr(app_logging, "_handler", None)
        names = ("airdash", "uvicorn", *app_logging._QUIET_LOGGERS)
        saved = []
        for name in names:
            logger = logging.getLogger(name)
            saved.append(
                (logger, logger.level, list(logger.handlers), logger.propagate)
            )
        yield
        for logger, level, handlers, propagate in saved:
            logger.setLevel(level)
            logger.handlers[:] = handlers
            logger.propagate = propagate

    def test_configures_once(self):
        handler = configure("debug")

        assert configure(logging.ERROR) is handler
        assert logging.getLogger("airdash").level == logging.DEBUG
        assert logging.getLogger("airdash").handlers.count(handler) == 1

    def test_routes_uvicorn_and_quiets_third_party(self):
        handler = configure()

        assert logging.getLogger("uvicorn").handlers == [handler]
        httpx_logger = logging.getLogger("httpx")
        assert httpx_logger.level == logging.WARNING
        assert handler in httpx_logger.handlers
        assert httpx_logger.propagate is False

    def test_handler_redacts(self):
        handler = configure()

        assert any(isinstance(f, RedactApiKey) for f in handler.filters)


def test_get_logger_namespace():
    assert get_logger("device.link").name == "airdash.device.link"
