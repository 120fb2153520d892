"""Test utilities for configuration.

This module provides helpers for overriding settings in tests. It should NOT
be imported in production code.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import airdash.lib.config.settings as _settings_module
from airdash.lib.config.settings import Settings, _load_settings


def set_settings(settings: Settings | None) -> None:
    """Set or clear the global settings override.

    Args:
        settings: Settings instance to use, or None to go back to
            environment-based settings.
    """
    _settings_module._settings_override = settings
    _load_settings.cache_clear()


@contextmanager
def override_settings(**fields: Any) -> Iterator[Settings]:
    """Temporarily install settings built from mock-mode defaults plus fields.

    The environment and any .env file are ignored. The previous override is
    restored on exit.
    """
    previous = _settings_module._settings_override
    settings = Settings(_env_file=None, **{"mock_sensors": True, **fields})
    set_settings(settings)
    try:
        yield settings
    finally:
        set_settings(previous)
