"""Souběžné změny stejného požadavku ze dvou sessions."""
from datetime import date, datetime, timezone

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from labtrack.database import Base
from labtrack.errors import ConflictError
from labtrack.identity import Actor
import labtrack.models  # noqa
from labtrack.models.item import Item, ItemStatus
from labtrack.models.reminder import Notification, NotificationType, Reminder, ReminderStatus, ReminderType
from labtrack.models.requests import RequestStatus, WorkflowKind
from labtrack.models.user import User
from labtrack.schemas.requests import RequestCreate, TransitionRequest
from labtrack.services import history_service, reminder_service, request_service

NOW = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def sessions(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}")
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, autoflush=False)
    yield Session
    engine.dispose()


def _setup(Session):
    with Session() as s:
        admin = User(username="admin", email="admin@test.com", hashed_password="x", role="admin")
        owner = User(username="zakaznik", email="z@test.com", hashed_password="x", role="user")
        s.add_all([admin, owner, Item(serial_number="SN-200", name="Multimetr")])
        s.commit()
        admin_actor = Actor(actor_id=admin.id, role="admin")
        owner_actor = Actor(actor_id=owner.id, role="user")
        rental = request_service.create_request(
            s, WorkflowKind.rental, RequestCreate(item_serial="SN-200", end_date=date(2025, 3, 1)), owner_actor, NOW
        )
        return admin_actor, owner_actor, rental.id


def test_stale_transition_is_rejected(sessions):
    admin, owner, rental_id = _setup(sessions)
    s1 = sessions()
    s2 = sessions()
    try:
        # s1 načte požadavek, s2 ho mezitím změní
        held = request_service.get_request(s1, WorkflowKind.rental, rental_id)
        assert held.status == RequestStatus.PENDING
        request_service.transition(
            s2, WorkflowKind.rental, rental_id, owner, TransitionRequest(status=RequestStatus.CANCELLED), NOW
        )
        with pytest.raises(ConflictError):
            request_service.transition(
                s1, WorkflowKind.rental, rental_id, admin, TransitionRequest(status=RequestStatus.APPROVED), NOW
            )
    finally:
        s1.close()
        s2.close()

    with sessions() as check:
        rental = request_service.get_request(check, WorkflowKind.rental, rental_id)
        assert rental.status == RequestStatus.CANCELLED
        assert check.get(Item, "SN-200").status == ItemStatus.AVAILABLE
        assert history_service.count_open_intervals(check, "SN-200") == 0
        assert len(history_service.get_status_logs(check, WorkflowKind.rental, rental_id)) == 2


def test_concurrent_reminder_checks_notify_once(sessions):
    admin, owner, _ = _setup(sessions)
    with sessions() as s:
        reminder_service.schedule_reminder(
            s, ReminderType.RENTAL, date(2025, 1, 12), "rent-race", owner.actor_id,
            title="Výpůjčka končí", message="Vraťte SN-200", now=NOW, item_serial="SN-200",
        )
        s.commit()

    s1 = sessions()
    s2 = sessions()
    try:
        # obě kontroly vidí reminder jako splatný, s2 ho rozešle dřív
        due = reminder_service.due_reminders(s1, NOW)
        assert len(due) == 1
        first = reminder_service.check_due_reminders(s2, NOW)
        second = reminder_service.CheckResult()
        for reminder in due:
            reminder_service.dispatch_reminder(s1, reminder, NOW, None, second)
    finally:
        s1.close()
        s2.close()

    assert (first.processed, first.created) == (1, 2)
    assert (second.processed, second.created, second.skipped) == (0, 0, 1)
    with sessions() as check:
        per_user = dict(
            check.execute(
                select(Notification.user_id, func.count())
                .where(Notification.type == NotificationType.REMINDER)
                .group_by(Notification.user_id)
            ).all()
        )
        assert per_user == {owner.actor_id: 1, admin.actor_id: 1}
        status = check.scalar(select(Reminder.status).where(Reminder.related_id == "rent-race"))
        assert status == ReminderStatus.SENT
