from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dndtracker.api.main import app
from dndtracker.core.engine.ids import IdGenerator
from dndtracker.core.engine.state import EncounterState
from dndtracker.db.base import Base
from dndtracker.db.models import KeyValue
import dndtracker.db.session as db_session
import dndtracker.db.init_db as db_init
from dndtracker.db.deps import get_db


@pytest.fixture(scope="session")
def engine():
    # SQLite in-memory (один коннект на всю сессию тестов)
    eng = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    return eng


@pytest.fixture(scope="session")
def TestingSessionLocal(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture(scope="session", autouse=True)
def _patch_db(engine, TestingSessionLocal):
    # патчим "боевые" engine/SessionLocal на тестовые
    db_session.engine = engine
    db_session.SessionLocal = TestingSessionLocal

    db_init.engine = engine

    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(TestingSessionLocal):
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    # библиотека и словарь между тестами не должны протекать
    with TestingSessionLocal() as db:
        db.query(KeyValue).delete()
        db.commit()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def state():
    # свой генератор: id в тестах предсказуемы (c_1, c_2, ...)
    return EncounterState(ids=IdGenerator())
