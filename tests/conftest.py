from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from labtrack.database import Base
from labtrack.identity import Actor
import labtrack.models  # noqa: F401, registers all models
from labtrack.models.item import Item
from labtrack.models.user import User


TEST_DB_URL = "sqlite:///:memory:"


class FixedClock:
    """Hodiny pro testy, posouvají se ručně."""

    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def today(self) -> date:
        return self.current.date()

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


@pytest.fixture(scope="function")
def db():
    engine = create_engine(TEST_DB_URL, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False)
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(engine)


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc))


def _user(db, username: str, role: str) -> User:
    # hash se v servisních testech neověřuje
    user = User(username=username, email=f"{username}@test.com", hashed_password="x", role=role)
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def admin(db) -> Actor:
    user = _user(db, "admin", "admin")
    return Actor(actor_id=user.id, role=user.role)


@pytest.fixture
def manager(db) -> Actor:
    user = _user(db, "technik", "manager")
    return Actor(actor_id=user.id, role=user.role)


@pytest.fixture
def customer(db) -> Actor:
    user = _user(db, "zakaznik", "user")
    return Actor(actor_id=user.id, role=user.role)


@pytest.fixture
def other_customer(db) -> Actor:
    user = _user(db, "jiny", "user")
    return Actor(actor_id=user.id, role=user.role)


@pytest.fixture
def make_item(db):
    def _make(serial: str = "SN-100", name: str = "Detektor plynů", **kwargs) -> Item:
        item = Item(serial_number=serial, name=name, **kwargs)
        db.add(item)
        db.commit()
        return item
    return _make
