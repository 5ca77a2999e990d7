import os
from datetime import datetime, timedelta, timezone

import pytest

# Configuración de pruebas antes de importar la aplicación
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from fastapi.testclient import TestClient  # noqa: E402

import app.models  # noqa: E402,F401
from app.core.security import create_access_token  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import SessionLocal, engine  # noqa: E402
from app.main import app as fastapi_app  # noqa: E402
from app.models.message_settings import MessageSettings  # noqa: E402
from app.models.user import User  # noqa: E402
from app.services.messaging_service import MessagingService  # noqa: E402


class FakeClock:
    """Reloj controlable: cada prueba decide cuánto avanza el tiempo."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingNotifier:
    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def make_user(db, username, **kwargs):
    user = User(
        email=f"{username}@test.com",
        username=username,
        display_name=username.capitalize(),
        role=kwargs.pop("role", "usuario"),
        status=kwargs.pop("status", "active"),
        **kwargs,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def alice(db):
    return make_user(db, "alice")


@pytest.fixture
def bob(db):
    return make_user(db, "bob")


@pytest.fixture
def carol(db):
    return make_user(db, "carol")


@pytest.fixture
def admin(db):
    return make_user(db, "admin", role="administrador")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def service(db, clock, notifier):
    return MessagingService(db, notifier=notifier, clock=clock)


@pytest.fixture
def client():
    return TestClient(fastapi_app)


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = create_access_token({"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def block_strangers(db):
    def _block(user):
        db.add(MessageSettings(user_id=user.id, allow_strangers=False))
        db.commit()
    return _block


@pytest.fixture
def user_factory(db):
    return lambda username, **kwargs: make_user(db, username, **kwargs)
