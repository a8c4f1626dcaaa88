"""
Logging configuration.

The packaged YAML config (`src/routescore/config/logging.yaml`) sets up one stderr
handler. The effective level comes from, in order: the `level` argument (the CLI's
`--log-level`), `ROUTESCORE_LOG_LEVEL`, then `app.log_level` in settings.

Only the root logger, the `routescore` logger and the handlers follow that level.
Third-party loggers keep their YAML levels (httpx stays at WARNING) unless DEBUG is
requested, so a debug run also shows the provider request lines.
"""

from __future__ import annotations

import logging
import logging.config

from routescore.config.settings import get_logging_config, get_settings
from routescore.core.errors import InvalidArgumentError

APP_LOGGER = "routescore"


def resolve_level(level: str | None = None) -> str:
    """Return the upper-cased level name to apply, validating explicit overrides."""
    name = (level or get_settings().app.log_level).strip().upper()
    if not isinstance(logging.getLevelName(name), int):
        raise InvalidArgumentError(f"Unknown log level {level!r}")
    return name


def configure_logging(level: str | None = None) -> str:
    """Apply the packaged logging config; returns the level that was applied."""
    name = resolve_level(level)
    config = get_logging_config()

    config.setdefault("root", {})["level"] = name
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict):
            handler["level"] = name

    loggers = config.setdefault("loggers", {})
    loggers.setdefault(APP_LOGGER, {})["level"] = name
    if name == "DEBUG":
        for logger_cfg in loggers.values():
            logger_cfg["level"] = name

    logging.config.dictConfig(config)
    return name
