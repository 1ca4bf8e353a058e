import os

# Keep the app's own engine off the on-disk database
os.environ.setdefault("ESCALA_DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from deps import get_store_sync
from escala.schedule_manager import initialize_store
from main import app
from routers.notifications import get_sender
from store_sync import StoreSync

ADMIN = {"X-User": "admin"}
COORDINATOR = {"X-User": "coordenador"}
ASSISTANT = {"X-User": "assistente"}
DOCTOR = {"X-User": "medico"}


class FakeSender:
    def __init__(self, ok=True):
        self.ok = ok
        self.sent = []

    def send(self, to, subject, text, html=None):
        self.sent.append({"to": to, "subject": subject, "text": text, "html": html})
        return self.ok


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def sync(session_factory):
    return StoreSync(session_factory, sleep=lambda s: None)


@pytest.fixture
def store():
    return initialize_store()


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def client(session_factory, sync, sender):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_store_sync] = lambda: sync
    app.dependency_overrides[get_sender] = lambda: sender
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
