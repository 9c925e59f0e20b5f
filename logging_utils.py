"""Tagged logging helper shared by the sensor, mapper and UI modules.

Every message goes out as ``[LEVEL][Tag] message | key=value ...``.
Float fields are printed with a fixed precision so per-sample tilt values
can be passed straight through without pre-formatting them.
"""
from __future__ import annotations

import logging
from typing import Any

_logger = logging.getLogger("bubblelevel")
if not _logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("[%(levelname)s][%(tag)s] %(message)s")
    handler.setFormatter(formatter)
    _logger.addHandler(handler)
    _logger.setLevel(logging.INFO)

FLOAT_PRECISION = 3


class _TagAdapter(logging.LoggerAdapter):
    def process(self, msg: Any, kwargs: dict[str, Any]):
        tag = kwargs.pop("tag", "Level")
        kwargs.setdefault("extra", {})["tag"] = tag
        return msg, kwargs


_logger_adapter = _TagAdapter(_logger, {})


def _format_field(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.{FLOAT_PRECISION}f}"
    return str(value)


def log_event(level: str, tag: str, message: str, **fields: Any) -> None:
    """Log a message with level+tag, appending key=value fields when provided.
    Nothing is formatted when the level is filtered out."""
    level_val = getattr(logging, level.upper(), logging.INFO)
    if not _logger.isEnabledFor(level_val):
        return
    if fields:
        extras = " ".join(f"{k}={_format_field(v)}" for k, v in fields.items())
        message = f"{message} | {extras}"
    _logger_adapter.log(level_val, message, tag=tag)


def debug_enabled() -> bool:
    """True when DEBUG messages would be emitted (per-sample tracing)."""
    return _logger.isEnabledFor(logging.DEBUG)


def set_log_level(level: str) -> None:
    """Set global log level (DEBUG/INFO/WARNING/ERROR)."""
    level_name = (level or "INFO").upper()
    level_val = getattr(logging, level_name, logging.INFO)
    _logger.setLevel(level_val)


def get_log_level() -> str:
    """Return current global log level name."""
    return logging.getLevelName(_logger.level)


def configure_logging(config) -> None:
    """Apply Config.log_level and note the active sensor source."""
    set_log_level(config.log_level)
    log_event("INFO", "Config", "Logging configured",
              log_level=get_log_level(), source=config.sensor.source)
