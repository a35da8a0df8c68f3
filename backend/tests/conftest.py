import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient #gives you a fake http client that can call your FastAPI routes without running a real server.
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.core.security import create_access_token
from app.db.base import Base
from app.main import app
from app.services.schedule_hub import ScheduleHub
from app.services.schedule_store import SqlScheduleStore
from app.services.slot_manager import SlotManager


@pytest.fixture()
def engine():
    engine = create_engine( #create isolated DB
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def hub():
    return ScheduleHub()


@pytest.fixture()
def store(db_session, hub):
    return SqlScheduleStore(db_session, hub=hub)


@pytest.fixture()
def manager(store):
    return SlotManager(store)


@pytest.fixture() #test client
def client(session_factory): #fake http client
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def auth_headers(role: str, user_id: str | None = None, name: str | None = None) -> dict:
    token = create_access_token(user_id or f"{role}-1", name=name or f"{role.title()} User", role=role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_headers():
    return auth_headers


@pytest.fixture()
def admin_headers():
    return auth_headers("admin")


@pytest.fixture()
def teacher_headers():
    return auth_headers("teacher", user_id="teacher-1", name="Dr. Rao")


@pytest.fixture()
def student_headers():
    return auth_headers("student", user_id="student-1", name="Asha")
