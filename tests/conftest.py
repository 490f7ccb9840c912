import os
import tempfile
import uuid

# Settings, the engine and the rate limiter are all built at import time,
# so the test environment has to be in place before anything from the app loads.
_TEST_DB_DIR = tempfile.mkdtemp(prefix="gymcoach-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DB_DIR}/test_gymcoach.db"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_TO_FILE"] = "false"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "development"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

TEST_PASSWORD = "password123!"


@pytest.fixture(scope="session")
def app():
    import main as main_module
    from gymcoach.db.database import Base, engine

    app_instance = main_module.app
    app_instance.router.on_startup.clear()
    app_instance.router.on_shutdown.clear()

    Base.metadata.create_all(bind=engine)
    return app_instance


@pytest.fixture()
def db_session(app):
    from gymcoach.db.database import SessionLocal
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def unique_email(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}@example.com"


@pytest.fixture()
def make_coach(db_session):
    from gymcoach.core.security import get_password_hash
    from gymcoach.models.user import User, UserRole

    def _make(first_name="Coach"):
        coach = User(
            email=unique_email("coach"),
            first_name=first_name,
            last_name="Test",
            role=UserRole.COACH,
            hashed_password=get_password_hash(TEST_PASSWORD),
        )
        db_session.add(coach)
        db_session.commit()
        return coach

    return _make


@pytest.fixture()
def make_client(db_session):
    from gymcoach.core.security import get_password_hash
    from gymcoach.models.client import Client
    from gymcoach.models.user import User, UserRole

    def _make(coach, first_name="Client", is_active=True):
        user = User(
            email=unique_email("client"),
            first_name=first_name,
            last_name="Test",
            role=UserRole.CLIENT,
            hashed_password=get_password_hash(TEST_PASSWORD),
        )
        db_session.add(user)
        db_session.flush()
        roster_entry = Client(user_id=user.id, coach_id=coach.id, is_active=is_active)
        db_session.add(roster_entry)
        db_session.commit()
        return roster_entry

    return _make


@pytest.fixture()
def make_broadcast(db_session):
    from datetime import timedelta

    from gymcoach.core.utils import utcnow
    from gymcoach.schemas.broadcast import BroadcastCreate
    from gymcoach.services.broadcast_store import create_broadcast

    def _make(coach, audience=None, scheduled_at=None, **fields):
        data = BroadcastCreate(
            body=fields.pop("body", "Team session moved to 7am"),
            scheduled_at=scheduled_at or utcnow() - timedelta(minutes=1),
            audience=audience or {"type": "all"},
            **fields,
        )
        broadcast = create_broadcast(db_session, coach.id, data)
        db_session.commit()
        return broadcast

    return _make
