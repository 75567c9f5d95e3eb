from __future__ import annotations

import logging
from typing import Optional, Union

from dndtracker.config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def setup_logging(level: Optional[Union[int, str]] = None) -> None:
    """Настроить корневой логгер один раз на процесс."""
    global _configured
    lvl = level if level is not None else LOG_LEVEL
    if isinstance(lvl, str):
        lvl = logging.getLevelName(lvl.upper())
        if not isinstance(lvl, int):
            lvl = logging.INFO

    if _configured:
        logging.getLogger().setLevel(lvl)
        return

    logging.basicConfig(level=lvl, format=LOG_FORMAT)
    _configured = True
    logging.getLogger(__name__).debug("logging configured at %s", logging.getLevelName(lvl))
