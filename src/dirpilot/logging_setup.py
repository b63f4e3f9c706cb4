"""Diagnostic logging for dirpilot.

Application logs (``LogInfo`` and friends) live in the session state; this
module only wires the ``dirpilot`` logger hierarchy used for diagnostics.
"""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

LOG_LEVEL_ENV = "DIRPILOT_LOG_LEVEL"


def _parse_level(raw: str | None) -> int:
    normalized = str(raw or "WARNING").strip().upper()
    level = logging.getLevelName(normalized)
    return level if isinstance(level, int) else logging.WARNING


def configure(level: str | None = None) -> int:
    """Send ``dirpilot`` log records to stderr through rich.

    Returns the effective level. Repeated calls replace the handler.
    """

    resolved = _parse_level(level or os.environ.get(LOG_LEVEL_ENV))
    logger = logging.getLogger("dirpilot")
    logger.setLevel(resolved)
    logger.propagate = False
    logger.handlers.clear()
    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    handler.setLevel(resolved)
    logger.addHandler(handler)
    return resolved
