"""Plánování reminderů a jejich rozesílání do notifikací."""
import enum
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from sqlalchemy import and_, or_, select, func, update
from sqlalchemy.orm import Session

from labtrack.config import settings
from labtrack.errors import NotFound, Forbidden
from labtrack.identity import Actor
from labtrack.models.reminder import (
    Reminder, ReminderType, ReminderStatus, Notification, NotificationType,
)
from labtrack.models.requests import WorkflowKind, RequestStatus
from labtrack.models.user import User
from labtrack.schemas.pagination import Page
from labtrack.services import history_service, notification_service
from labtrack.services.channels import NotificationChannel, OutboundMessage

logger = logging.getLogger(__name__)


def offset_days(type: ReminderType) -> int:
    return {
        ReminderType.CALIBRATION: settings.CALIBRATION_REMINDER_DAYS,
        ReminderType.RENTAL: settings.RENTAL_REMINDER_DAYS,
        ReminderType.MAINTENANCE: settings.MAINTENANCE_REMINDER_DAYS,
    }[type]


def fire_date_for(type: ReminderType, due_date: date) -> date:
    return due_date - timedelta(days=offset_days(type))


def find_pending(db: Session, type: ReminderType, related_id: str) -> Reminder | None:
    return db.scalar(
        select(Reminder).where(
            Reminder.type == type,
            Reminder.related_id == related_id,
            Reminder.status == ReminderStatus.PENDING,
        )
    )


def schedule_reminder(
    db: Session,
    type: ReminderType,
    due_date: date,
    related_id: str,
    owner_id: int,
    title: str,
    message: str,
    now: datetime,
    item_serial: str | None = None,
) -> Reminder | None:
    """Založí reminder, pokud pro (typ, požadavek) ještě žádný nečeká. Jinak None."""
    if find_pending(db, type, related_id) is not None:
        logger.info("Reminder %s pro %s už čeká, přeskočeno", type.value, related_id)
        return None
    reminder = Reminder(
        type=type,
        related_id=related_id,
        item_serial=item_serial,
        user_id=owner_id,
        due_date=due_date,
        fire_date=fire_date_for(type, due_date),
        title=title,
        message=message,
        created_at=now,
    )
    db.add(reminder)
    db.flush()
    return reminder


def _fmt(d: date) -> str:
    return d.strftime("%d.%m.%Y")


def reminder_for_transition(
    db: Session,
    kind: WorkflowKind,
    request,
    status: RequestStatus,
    now: datetime,
) -> Reminder | None:
    """Reminder pro přechod, který zakládá budoucí termín."""
    item_name = request.item.name if request.item else request.item_serial
    serial = request.item_serial

    if kind == WorkflowKind.calibration and status == RequestStatus.COMPLETED:
        due = request.valid_until
        return schedule_reminder(
            db, ReminderType.CALIBRATION, due, request.id, request.user_id,
            title=f"Kalibrace brzy vyprší: {item_name}",
            message=f"Kalibrace přístroje {item_name} (SN: {serial}) vyprší {_fmt(due)}. Kontaktujte zákazníka.",
            now=now, item_serial=serial,
        )
    if kind == WorkflowKind.rental and status == RequestStatus.APPROVED and request.end_date:
        due = request.end_date
        return schedule_reminder(
            db, ReminderType.RENTAL, due, request.id, request.user_id,
            title=f"Výpůjčka brzy končí: {item_name}",
            message=f"Výpůjčka přístroje {item_name} (SN: {serial}) končí {_fmt(due)}.",
            now=now, item_serial=serial,
        )
    if kind == WorkflowKind.maintenance and status == RequestStatus.COMPLETED:
        finished = (request.end_date or now).date()
        due = finished + timedelta(days=settings.MAINTENANCE_FOLLOWUP_DAYS)
        return schedule_reminder(
            db, ReminderType.MAINTENANCE, due, request.id, request.user_id,
            title=f"Kontrola po údržbě: {item_name}",
            message=f"Kontrola přístroje {item_name} (SN: {serial}) po údržbě je plánována na {_fmt(due)}.",
            now=now, item_serial=serial,
        )
    return None


def cancel_pending(db: Session, related_id: str) -> int:
    """Smaže čekající remindery požadavku (purge)."""
    rows = db.scalars(
        select(Reminder).where(
            Reminder.related_id == related_id, Reminder.status == ReminderStatus.PENDING
        )
    ).all()
    for r in rows:
        db.delete(r)
    return len(rows)


def retire_reminders(db: Session, related_id: str, now: datetime) -> int:
    """Uzavřený požadavek už nemá co připomínat.

    Čekající remindery smaže, rozeslané uzavře, aby nechodila upozornění po termínu.
    """
    dropped = cancel_pending(db, related_id)
    db.flush()
    closed = db.execute(
        update(Reminder)
        .where(Reminder.related_id == related_id, Reminder.status == ReminderStatus.SENT)
        .values(status=ReminderStatus.ACKNOWLEDGED, acknowledged_at=now)
        .execution_options(synchronize_session=False)
    ).rowcount
    return dropped + closed


# ── Dispatch ─────────────────────────────────────────────────────────────────

class Milestone(str, enum.Enum):
    ADVANCE = "ADVANCE"    # H-30 / H-7
    DUE = "DUE"            # H-0
    OVERDUE = "OVERDUE"


@dataclass
class CheckResult:
    processed: int = 0
    created: int = 0
    emails_sent: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


def milestone_for(reminder: Reminder, today: date) -> Milestone:
    if today < reminder.due_date:
        return Milestone.ADVANCE
    if today == reminder.due_date:
        return Milestone.DUE
    return Milestone.OVERDUE


def renotify_cutoff(now: datetime) -> datetime:
    """Reminder rozeslaný před tímto okamžikem je možné rozeslat znovu.

    Nejdřív po REMINDER_RENOTIFY_HOURS hodinách a nejvýše jednou za kalendářní den.
    """
    start_of_day = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
    return min(now - timedelta(hours=settings.REMINDER_RENOTIFY_HOURS), start_of_day)


def _eligible(now: datetime):
    today = now.date()
    return and_(
        Reminder.acknowledged_at.is_(None),
        or_(
            and_(Reminder.status == ReminderStatus.PENDING, Reminder.fire_date <= today),
            and_(Reminder.status == ReminderStatus.SENT, Reminder.due_date <= today),
        ),
        or_(
            Reminder.last_notified_at.is_(None),
            Reminder.last_notified_at < renotify_cutoff(now),
        ),
    )


def due_reminders(db: Session, now: datetime) -> list[Reminder]:
    """Nepotvrzené remindery, které mají dnes dosažený milník a ještě nebyly rozeslány."""
    return db.scalars(
        select(Reminder)
        .where(_eligible(now))
        .order_by(Reminder.fire_date, Reminder.created_at)
    ).all()


def _claim(db: Session, reminder_id: str, now: datetime) -> bool:
    # podmíněný UPDATE: ze souběžných kontrol projde jen jedna
    claimed = db.execute(
        update(Reminder)
        .where(Reminder.id == reminder_id, _eligible(now))
        .values(status=ReminderStatus.SENT, last_notified_at=now)
        .execution_options(synchronize_session=False)
    ).rowcount
    return claimed == 1


def _content(reminder: Reminder, milestone: Milestone, today: date) -> tuple[str, str]:
    if milestone is Milestone.DUE:
        return (
            f"Dnes: {reminder.title}",
            f"{reminder.message} Termín je dnes ({_fmt(reminder.due_date)}).",
        )
    if milestone is Milestone.OVERDUE:
        late = (today - reminder.due_date).days
        return (
            f"Po termínu: {reminder.title}",
            f"{reminder.message} Termín {_fmt(reminder.due_date)} je překročen o {late} d.",
        )
    return reminder.title, reminder.message


def _recipients(db: Session, reminder: Reminder) -> list[int]:
    ids = [reminder.user_id]
    for admin_id in notification_service.admin_ids(db):
        if admin_id not in ids:
            ids.append(admin_id)
    return ids


def _send_email(db: Session, reminder: Reminder, channel: NotificationChannel, now: datetime) -> bool:
    owner = db.get(User, reminder.user_id)
    recipient = settings.SMTP_RECIPIENT or (owner.email if owner else "")
    if not recipient:
        return False
    try:
        channel.send(OutboundMessage(subject=reminder.title, body=reminder.message, recipient=recipient))
    except Exception:
        logger.exception("Odeslání emailu pro reminder %s selhalo", reminder.id)
        return False
    reminder.email_sent = True
    reminder.email_sent_at = now
    return True


def dispatch_reminder(
    db: Session,
    reminder: Reminder,
    now: datetime,
    channel: NotificationChannel | None,
    result: CheckResult,
) -> None:
    """Zabere reminder a rozešle ho do schránek vlastníka a adminů.

    Reminder zabraný jinou kontrolou se přeskočí. Vše běží v jedné transakci.
    """
    reminder_id = reminder.id
    try:
        if not _claim(db, reminder_id, now):
            db.rollback()
            result.skipped += 1
            logger.info("Reminder %s už rozeslala jiná kontrola", reminder_id)
            return
        db.refresh(reminder)
        result.processed += 1
        today = now.date()
        title, message = _content(reminder, milestone_for(reminder, today), today)
        for user_id in _recipients(db, reminder):
            notification_service.create_notification(
                db, user_id, NotificationType.REMINDER, title, message,
                now, reminder_id=reminder_id,
            )
            result.created += 1
        if channel is not None and reminder.type == ReminderType.CALIBRATION and not reminder.email_sent:
            if _send_email(db, reminder, channel, now):
                result.emails_sent += 1
        db.commit()
    except Exception as exc:
        db.rollback()
        logger.exception("Zpracování reminderu %s selhalo", reminder_id)
        result.errors.append(f"{reminder_id}: {exc!r}")


def check_due_reminders(
    db: Session,
    now: datetime,
    channel: NotificationChannel | None = None,
) -> CheckResult:
    """Rozešle notifikace pro remindery, které dosáhly milníku.

    Milníky jsou předstih (fire_date), den splatnosti a každý den po termínu
    až do potvrzení. Každý reminder se zpracuje ve vlastní transakci, chyba
    jednoho nezastaví ostatní.
    """
    result = CheckResult()
    reminder_ids = [r.id for r in due_reminders(db, now)]
    for reminder_id in reminder_ids:
        reminder = db.get(Reminder, reminder_id)
        if reminder is None:
            result.skipped += 1
            continue
        dispatch_reminder(db, reminder, now, channel, result)
    if result.processed or result.skipped:
        logger.info(
            "Zpracováno %d reminderů, vytvořeno %d notifikací, přeskočeno %d",
            result.processed, result.created, result.skipped,
        )
    return result


# ── Správa ───────────────────────────────────────────────────────────────────

def get_reminder(db: Session, reminder_id: str) -> Reminder:
    reminder = db.get(Reminder, reminder_id)
    if not reminder:
        raise NotFound("Reminder nenalezen")
    return reminder


def get_reminders(
    db: Session,
    actor: Actor,
    page: int = 1,
    size: int = 50,
    status: ReminderStatus | None = None,
) -> Page:
    query = select(Reminder)
    if not actor.is_admin:
        query = query.where(Reminder.user_id == actor.actor_id)
    if status is not None:
        query = query.where(Reminder.status == status)
    query = query.order_by(Reminder.fire_date)
    total = db.scalar(select(func.count()).select_from(query.subquery()))
    rows = db.scalars(query.offset((page - 1) * size).limit(size)).all()
    return Page(items=rows, total=total, page=page, pages=math.ceil(total / size) if total else 1, size=size)


def acknowledge_reminder(db: Session, reminder_id: str, actor: Actor, now: datetime) -> Reminder:
    reminder = get_reminder(db, reminder_id)
    if reminder.user_id != actor.actor_id and not actor.is_admin:
        raise Forbidden("Reminder patří jinému uživateli")
    if reminder.status == ReminderStatus.ACKNOWLEDGED:
        return reminder
    reminder.status = ReminderStatus.ACKNOWLEDGED
    reminder.acknowledged_at = now
    db.execute(
        update(Notification)
        .where(Notification.reminder_id == reminder.id, Notification.is_read == False)
        .values(is_read=True, read_at=now)
    )
    history_service.log_activity(
        db, actor.actor_id, "REMINDER_ACKNOWLEDGED",
        f"Reminder {reminder.type.value} ({reminder.title}) potvrzen",
        now, item_serial=reminder.item_serial, related_id=reminder.related_id,
    )
    db.commit()
    db.refresh(reminder)
    return reminder
