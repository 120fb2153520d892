"""Logging setup for Airdash.

Everything is written to stderr through one handler shared by the
``airdash`` loggers and uvicorn. The handler masks the provider API key,
which travels as the ``appid`` query parameter and so shows up in request
URLs logged by httpx and in the messages of its errors.
"""

import logging
import re
import sys

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s - %(message)s"

# bleak logs every GATT read, httpx every request, uvicorn every websocket
_QUIET_LOGGERS = ("bleak", "httpx", "uvicorn.protocols.websockets")

_APPID = re.compile(r"(appid=)[^&\s'\"]+")

_handler: logging.Handler | None = None


class RedactApiKey(logging.Filter):
    """Replace the value of any ``appid=`` query parameter with ``***``."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _APPID.sub(r"\1***", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure(level: int | str = logging.INFO) -> logging.Handler:
    """Attach the shared stderr handler, once per process.

    Args:
        level: Level for the 'airdash' loggers, as a number or a name
            such as "debug".

    Returns:
        The handler, so callers can route other loggers through it.
    """
    global _handler
    if _handler is not None:
        return _handler

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RedactApiKey())

    airdash = logging.getLogger("airdash")
    airdash.setLevel(level.upper() if isinstance(level, str) else level)
    airdash.addHandler(handler)

    uvicorn = logging.getLogger("uvicorn")
    uvicorn.handlers.clear()
    uvicorn.addHandler(handler)

    for name in _QUIET_LOGGERS:
        quiet = logging.getLogger(name)
        quiet.setLevel(logging.WARNING)
        quiet.addHandler(handler)
        quiet.propagate = False

    _handler = handler
    return handler


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the 'airdash' namespace, e.g. 'device.link'."""
    return logging.getLogger(f"airdash.{name}")
