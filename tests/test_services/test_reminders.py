from datetime import date

import pytest
from sqlalchemy import select

from labtrack.errors import Forbidden, NotFound
from labtrack.models.history import ActivityLog
from labtrack.models.reminder import Notification, NotificationType, Reminder, ReminderStatus, ReminderType
from labtrack.services import reminder_service
from labtrack.services.channels import OutboundMessage


class RecordingChannel:
    def __init__(self, fail: bool = False):
        self.sent: list[OutboundMessage] = []
        self.fail = fail

    def send(self, message: OutboundMessage) -> None:
        if self.fail:
            raise ConnectionError("smtp unreachable")
        self.sent.append(message)


@pytest.fixture
def calibration_reminder(db, clock, customer, make_item):
    make_item("SN-100")
    reminder = reminder_service.schedule_reminder(
        db, ReminderType.CALIBRATION, date(2025, 7, 10), "cal-1", customer.actor_id,
        title="Kalibrace brzy vyprší", message="Kalibrace vyprší 10.07.2025",
        now=clock.now(), item_serial="SN-100",
    )
    db.commit()
    return reminder


def test_fire_date_uses_type_offset():
    assert reminder_service.fire_date_for(ReminderType.CALIBRATION, date(2025, 7, 10)) == date(2025, 6, 10)
    assert reminder_service.fire_date_for(ReminderType.RENTAL, date(2025, 3, 1)) == date(2025, 2, 22)


def test_schedule_is_idempotent(db, clock, customer, calibration_reminder):
    again = reminder_service.schedule_reminder(
        db, ReminderType.CALIBRATION, date(2025, 8, 1), "cal-1", customer.actor_id,
        title="x", message="y", now=clock.now(),
    )
    assert again is None
    assert len(db.scalars(select(Reminder)).all()) == 1


def test_nothing_due_before_fire_date(db, clock, calibration_reminder):
    result = reminder_service.check_due_reminders(db, clock.now())
    assert result.processed == 0
    assert db.scalars(select(Notification)).all() == []


def test_due_reminder_notifies_owner_and_admins(db, clock, admin, customer, calibration_reminder):
    clock.current = clock.current.replace(month=6, day=10)
    result = reminder_service.check_due_reminders(db, clock.now())

    assert result.processed == 1
    assert result.created == 2
    db.refresh(calibration_reminder)
    assert calibration_reminder.status == ReminderStatus.SENT
    recipients = sorted(n.user_id for n in db.scalars(select(Notification)).all())
    assert recipients == sorted([admin.actor_id, customer.actor_id])
    assert all(
        n.type == NotificationType.REMINDER and n.reminder_id == calibration_reminder.id
        for n in db.scalars(select(Notification)).all()
    )


def test_second_check_is_noop(db, clock, admin, calibration_reminder):
    clock.current = clock.current.replace(month=6, day=20)
    reminder_service.check_due_reminders(db, clock.now())
    result = reminder_service.check_due_reminders(db, clock.now())
    assert result.processed == 0
    assert len(db.scalars(select(Notification)).all()) == 2


def test_calibration_email_sent_once(db, clock, admin, calibration_reminder):
    channel = RecordingChannel()
    clock.current = clock.current.replace(month=6, day=10)
    result = reminder_service.check_due_reminders(db, clock.now(), channel)

    assert result.emails_sent == 1
    assert channel.sent[0].recipient == "zakaznik@test.com"
    db.refresh(calibration_reminder)
    assert calibration_reminder.email_sent is True
    assert calibration_reminder.email_sent_at == clock.now()


def test_email_failure_does_not_block_notifications(db, clock, admin, calibration_reminder):
    clock.current = clock.current.replace(month=6, day=10)
    result = reminder_service.check_due_reminders(db, clock.now(), RecordingChannel(fail=True))

    assert result.emails_sent == 0
    assert result.errors == []
    db.refresh(calibration_reminder)
    assert calibration_reminder.status == ReminderStatus.SENT
    assert calibration_reminder.email_sent is False


def test_rental_reminder_sends_no_email(db, clock, customer, make_item):
    make_item("SN-200")
    reminder_service.schedule_reminder(
        db, ReminderType.RENTAL, date(2025, 1, 12), "rent-1", customer.actor_id,
        title="Výpůjčka končí", message="...", now=clock.now(), item_serial="SN-200",
    )
    db.commit()
    channel = RecordingChannel()
    result = reminder_service.check_due_reminders(db, clock.now(), channel)
    assert result.processed == 1
    assert channel.sent == []


def test_new_reminder_allowed_after_previous_sent(db, clock, customer, calibration_reminder):
    clock.current = clock.current.replace(month=6, day=10)
    reminder_service.check_due_reminders(db, clock.now())
    fresh = reminder_service.schedule_reminder(
        db, ReminderType.CALIBRATION, date(2026, 7, 10), "cal-1", customer.actor_id,
        title="x", message="y", now=clock.now(),
    )
    assert fresh is not None


def test_acknowledge_marks_notifications_read(db, clock, admin, customer, calibration_reminder):
    clock.current = clock.current.replace(month=6, day=10)
    reminder_service.check_due_reminders(db, clock.now())

    reminder = reminder_service.acknowledge_reminder(db, calibration_reminder.id, customer, clock.now())

    assert reminder.status == ReminderStatus.ACKNOWLEDGED
    assert reminder.acknowledged_at == clock.now()
    notifications = db.scalars(select(Notification)).all()
    assert all(n.is_read for n in notifications)
    assert db.scalar(select(ActivityLog).where(ActivityLog.action == "REMINDER_ACKNOWLEDGED")) is not None


def test_acknowledge_foreign_reminder(db, clock, other_customer, calibration_reminder):
    with pytest.raises(Forbidden):
        reminder_service.acknowledge_reminder(db, calibration_reminder.id, other_customer, clock.now())


def test_acknowledge_unknown(db, clock, admin):
    with pytest.raises(NotFound):
        reminder_service.acknowledge_reminder(db, "missing", admin, clock.now())


def test_list_reminders_scoped_to_owner(db, clock, admin, other_customer, calibration_reminder):
    assert reminder_service.get_reminders(db, other_customer).total == 0
    assert reminder_service.get_reminders(db, admin).total == 1


def _at(clock, month, day, hour=9):
    clock.current = clock.current.replace(month=month, day=day, hour=hour)
    return clock.now()


def _titles_for(db, user_id):
    return [
        n.title for n in db.scalars(
            select(Notification).where(Notification.user_id == user_id).order_by(Notification.id)
        ).all()
    ]


def test_milestones_on_due_date_and_daily_when_overdue(db, clock, admin, customer, calibration_reminder):
    channel = RecordingChannel()
    checks = [
        ((6, 10, 9), 1),     # H-30
        ((6, 20, 9), 0),
        ((7, 10, 9), 1),     # den splatnosti
        ((7, 10, 18), 0),
        ((7, 11, 8), 1),     # po termínu
        ((7, 11, 22), 0),
        ((7, 12, 23), 1),
        ((7, 13, 2), 0),     # po půlnoci, ale méně než 12 h od posledního
    ]
    for (month, day, hour), expected in checks:
        result = reminder_service.check_due_reminders(db, _at(clock, month, day, hour), channel)
        assert result.processed == expected, (month, day, hour)

    assert _titles_for(db, customer.actor_id) == [
        "Kalibrace brzy vyprší",
        "Dnes: Kalibrace brzy vyprší",
        "Po termínu: Kalibrace brzy vyprší",
        "Po termínu: Kalibrace brzy vyprší",
    ]
    assert len(_titles_for(db, admin.actor_id)) == 4
    assert len(channel.sent) == 1
    last = db.scalars(select(Notification).order_by(Notification.id.desc())).first()
    assert "překročen o 2 d" in last.message
    db.refresh(calibration_reminder)
    assert calibration_reminder.last_notified_at == clock.current.replace(day=12, hour=23)


def test_acknowledged_reminder_stops_overdue_notices(db, clock, admin, customer, calibration_reminder):
    reminder_service.check_due_reminders(db, _at(clock, 6, 10))
    reminder_service.acknowledge_reminder(db, calibration_reminder.id, customer, clock.now())

    assert reminder_service.check_due_reminders(db, _at(clock, 7, 10)).processed == 0
    assert reminder_service.check_due_reminders(db, _at(clock, 7, 20)).processed == 0
    assert len(_titles_for(db, customer.actor_id)) == 1


def test_late_first_check_skips_to_current_milestone(db, clock, customer, calibration_reminder):
    result = reminder_service.check_due_reminders(db, _at(clock, 7, 15))
    assert result.processed == 1
    assert _titles_for(db, customer.actor_id) == ["Po termínu: Kalibrace brzy vyprší"]


def test_milestone_for():
    reminder = Reminder(due_date=date(2025, 7, 10))
    assert reminder_service.milestone_for(reminder, date(2025, 6, 10)) == reminder_service.Milestone.ADVANCE
    assert reminder_service.milestone_for(reminder, date(2025, 7, 10)) == reminder_service.Milestone.DUE
    assert reminder_service.milestone_for(reminder, date(2025, 7, 11)) == reminder_service.Milestone.OVERDUE
