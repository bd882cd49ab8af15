"""Unit testy pro SQLAlchemy modely."""
import pytest
from datetime import date, datetime, timezone
from sqlalchemy.exc import IntegrityError

from labtrack.models.user import User
from labtrack.models.item import Item, ItemStatus
from labtrack.models.requests import Calibration, Rental, RequestStatus, WorkflowKind
from labtrack.models.history import ItemHistory, HistoryAction
from labtrack.models.reminder import Reminder, ReminderType, ReminderStatus
from labtrack.models.documents import DocumentSequence, DocumentType

NOW = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)


# ─── User ────────────────────────────────────────────────────────────────────

def test_user_create(db):
    user = User(username="testuser", email="test@example.com", hashed_password="hashedpw")
    db.add(user)
    db.commit()
    db.refresh(user)

    assert user.id is not None
    assert user.role == "user"
    assert user.is_active is True
    assert isinstance(user.created_at, datetime)


def test_user_unique_username(db):
    db.add(User(username="dup", email="a@a.com", hashed_password="x"))
    db.commit()
    db.add(User(username="dup", email="b@b.com", hashed_password="x"))
    with pytest.raises(IntegrityError):
        db.commit()


# ─── Item ────────────────────────────────────────────────────────────────────

def test_item_defaults(db):
    item = Item(serial_number="SN-1", name="Multimetr")
    db.add(item)
    db.commit()
    db.refresh(item)

    assert item.status == ItemStatus.AVAILABLE
    assert item.version == 1
    assert item.last_verified is None


def test_item_version_increments(db):
    item = Item(serial_number="SN-2", name="Multimetr")
    db.add(item)
    db.commit()
    item.status = ItemStatus.DAMAGED
    db.commit()
    db.refresh(item)
    assert item.version == 2


def test_datetimes_are_utc_aware(db):
    item = Item(serial_number="SN-3", name="Kalibrátor", last_verified=NOW)
    db.add(item)
    db.commit()
    db.expire_all()
    loaded = db.get(Item, "SN-3")
    assert loaded.last_verified.tzinfo is not None
    assert loaded.last_verified == NOW


# ─── Requests ────────────────────────────────────────────────────────────────

def test_request_defaults(db):
    user = User(username="u", email="u@u.com", hashed_password="x")
    item = Item(serial_number="SN-4", name="Detektor")
    db.add_all([user, item])
    db.commit()
    cal = Calibration(item=item, user_id=user.id)
    db.add(cal)
    db.commit()
    db.refresh(cal)

    assert len(cal.id) == 36
    assert cal.status == RequestStatus.PENDING
    assert cal.kind == WorkflowKind.calibration
    assert cal.is_open is True
    assert cal.version == 1


def test_rental_kind(db):
    assert Rental.kind == WorkflowKind.rental


# ─── ItemHistory ─────────────────────────────────────────────────────────────

def _history(serial: str, related_id: str, end=None) -> ItemHistory:
    return ItemHistory(
        item_serial=serial,
        action=HistoryAction.RENTED,
        related_kind=WorkflowKind.rental,
        related_id=related_id,
        start_date=NOW,
        end_date=end,
    )


def test_only_one_open_history_row_per_item(db):
    db.add(Item(serial_number="SN-5", name="X"))
    db.commit()
    db.add(_history("SN-5", "r1"))
    db.commit()
    db.add(_history("SN-5", "r2"))
    with pytest.raises(IntegrityError):
        db.commit()


def test_closed_history_rows_do_not_collide(db):
    db.add(Item(serial_number="SN-6", name="X"))
    db.commit()
    db.add_all([_history("SN-6", "r1", end=NOW), _history("SN-6", "r2", end=NOW), _history("SN-6", "r3")])
    db.commit()
    assert db.query(ItemHistory).count() == 3


# ─── Reminder ────────────────────────────────────────────────────────────────

def _reminder(user_id: int, status=ReminderStatus.PENDING) -> Reminder:
    return Reminder(
        type=ReminderType.CALIBRATION,
        related_id="cal-1",
        user_id=user_id,
        due_date=date(2025, 7, 10),
        fire_date=date(2025, 6, 10),
        title="t",
        message="m",
        status=status,
    )


def test_only_one_pending_reminder_per_request(db):
    user = User(username="u", email="u@u.com", hashed_password="x")
    db.add(user)
    db.commit()
    db.add(_reminder(user.id))
    db.commit()
    db.add(_reminder(user.id))
    with pytest.raises(IntegrityError):
        db.commit()


def test_sent_reminder_allows_new_pending(db):
    user = User(username="u", email="u@u.com", hashed_password="x")
    db.add(user)
    db.commit()
    db.add(_reminder(user.id, status=ReminderStatus.SENT))
    db.add(_reminder(user.id))
    db.commit()
    assert db.query(Reminder).count() == 2


# ─── DocumentSequence ────────────────────────────────────────────────────────

def test_document_sequence_unique_period(db):
    db.add(DocumentSequence(doc_type=DocumentType.CSR, year=2025, month=1, last_value=3))
    db.commit()
    db.add(DocumentSequence(doc_type=DocumentType.CSR, year=2025, month=1, last_value=0))
    with pytest.raises(IntegrityError):
        db.commit()
