from __future__ import annotations

from typing import Iterator

from sqlalchemy.orm import Session

from dndtracker.core.library.conditions import ConditionVocabulary
from dndtracker.core.library.templates import TemplateLibrary
from dndtracker.core.persistence.kv_store import SqlKeyValueStore
from dndtracker.db import session as db_session


def get_db() -> Iterator[Session]:
    db = db_session.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _kv_store() -> SqlKeyValueStore:
    # SessionLocal берём в момент вызова: тесты подменяют его в conftest
    return SqlKeyValueStore(lambda: db_session.SessionLocal())


def get_template_library() -> TemplateLibrary:
    return TemplateLibrary(_kv_store())


def get_condition_vocabulary() -> ConditionVocabulary:
    return ConditionVocabulary(_kv_store())
