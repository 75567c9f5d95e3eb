from __future__ import annotations

import logging

from .base import Base
from .session import engine

# модели должны быть импортированы до create_all
from . import models  # noqa: F401

logger = logging.getLogger(__name__)


def init_db() -> None:
    Base.metadata.create_all(bind=engine)
    logger.info("database schema ready")
