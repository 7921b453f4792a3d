"""Central level-based logger (standard library `logging`).

Env:
- LOG_LEVEL: DEBUG|INFO|WARNING|ERROR|CRITICAL (default: INFO)

Secrets never go through here: log names, paths and parameters only.
"""

from __future__ import annotations

import logging
import os
from typing import Optional


def _level_from_env() -> int:
    raw = (os.getenv("LOG_LEVEL") or "INFO").upper().strip()
    return getattr(logging, raw, logging.INFO)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a configured logger.

    This configures the root logger once (idempotent).
    """
    root = logging.getLogger()
    if not getattr(root, "_kayring_configured", False):
        logging.basicConfig(
            level=_level_from_env(),
            format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        )
        root.setLevel(_level_from_env())
        setattr(root, "_kayring_configured", True)
    return logging.getLogger(name or "kayring")


def set_level(level: int) -> None:
    """Override the level picked from LOG_LEVEL (used by the CLI's --silent)."""
    get_logger()
    logging.getLogger().setLevel(level)
