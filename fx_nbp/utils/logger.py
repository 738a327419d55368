"""Logging setup shared by the fx_nbp modules."""

from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV_VAR = "FX_NBP_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_configured = False


def _resolve_level(value: str | None) -> int:
    if not value:
        return logging.INFO
    level = logging.getLevelName(value.strip().upper())
    # ``getLevelName`` hands back "Level X" for names it does not know.
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name``.

    The first call installs the root handler; its level is taken from
    ``$FX_NBP_LOG_LEVEL`` (default INFO).
    """

    global _configured
    if not _configured:
        logging.basicConfig(
            level=_resolve_level(os.environ.get(LOG_LEVEL_ENV_VAR)),
            format=LOG_FORMAT,
        )
        _configured = True
    return logging.getLogger(name)


__all__ = ["LOG_LEVEL_ENV_VAR", "get_logger"]
