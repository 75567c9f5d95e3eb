from __future__ import annotations

import os


def _flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# читаем один раз при импорте; в тестах движок БД подменяется в conftest
DATABASE_URL = os.getenv("DNDTRACKER_DATABASE_URL", "sqlite:///./dndtracker.sqlite3")
LOG_LEVEL = os.getenv("DNDTRACKER_LOG_LEVEL", "INFO").upper()
SQL_ECHO = _flag("DNDTRACKER_SQL_ECHO")
