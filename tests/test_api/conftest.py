from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from labtrack.clock import get_clock
from labtrack.database import Base, get_db
from labtrack.main import app
from labtrack.models.item import Item
from labtrack.models.user import User
from labtrack.services.user_service import hash_password

TEST_DB_URL = "sqlite:///:memory:"

USERS = {
    "admin": ("admin123", "admin"),
    "technik": ("technik123", "manager"),
    "zakaznik": ("zakaznik123", "user"),
}


class _ApiClock:
    def __init__(self):
        self.current = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)

    def now(self):
        return self.current

    def today(self):
        return self.current.date()


@pytest.fixture
def api_clock():
    return _ApiClock()


@pytest.fixture
def api_session(api_clock):
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # Ensure all connections share same in-memory DB
    )
    Base.metadata.create_all(engine)
    TestSession = sessionmaker(bind=engine, autoflush=False)

    def override_get_db():
        db = TestSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: api_clock

    db = TestSession()
    for username, (password, role) in USERS.items():
        db.add(User(username=username, email=f"{username}@test.com", hashed_password=hash_password(password), role=role))
    db.add(Item(serial_number="SN-100", name="Detektor plynů Dräger X-am 5000", category="Detekce plynů"))
    db.add(Item(serial_number="SN-200", name="Multimetr Fluke 87V", category="Měřicí technika"))
    db.commit()
    db.close()

    yield TestSession

    app.dependency_overrides.clear()
    Base.metadata.drop_all(engine)


def _login(username: str) -> TestClient:
    # bez "with", lifespan by sahal na skutečnou DB
    c = TestClient(app)
    response = c.post("/login", data={"username": username, "password": USERS[username][0]})
    assert response.status_code == 200
    return c


@pytest.fixture
def admin_client(api_session):
    return _login("admin")


@pytest.fixture
def manager_client(api_session):
    return _login("technik")


@pytest.fixture
def user_client(api_session):
    return _login("zakaznik")


@pytest.fixture
def anon_client(api_session):
    return TestClient(app)
