import logging
import math
from datetime import datetime

from sqlalchemy import select, func, update
from sqlalchemy.orm import Session

from labtrack.errors import NotFound
from labtrack.identity import Actor
from labtrack.models.reminder import Notification, NotificationType
from labtrack.models.requests import WorkflowKind, RequestStatus
from labtrack.models.user import User, Role
from labtrack.schemas.pagination import Page
from labtrack.services import history_service
from labtrack.services.effects import EffectQueue

logger = logging.getLogger(__name__)

KIND_LABELS = {
    WorkflowKind.calibration: "Kalibrace",
    WorkflowKind.rental: "Výpůjčka",
    WorkflowKind.maintenance: "Údržba",
}

STATUS_LABELS = {
    RequestStatus.PENDING: "čeká na schválení",
    RequestStatus.APPROVED: "schváleno",
    RequestStatus.IN_PROGRESS: "probíhá",
    RequestStatus.COMPLETED: "dokončeno",
    RequestStatus.REJECTED: "zamítnuto",
    RequestStatus.CANCELLED: "zrušeno",
}


def create_notification(
    db: Session,
    user_id: int,
    type: NotificationType,
    title: str,
    message: str,
    now: datetime,
    reminder_id: str | None = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        reminder_id=reminder_id,
        created_at=now,
    )
    db.add(notification)
    return notification


def admin_ids(db: Session) -> list[int]:
    return db.scalars(
        select(User.id).where(User.role == Role.admin.value, User.is_active == True).order_by(User.id)
    ).all()


def broadcast_to_admins(
    db: Session,
    title: str,
    message: str,
    now: datetime,
    exclude_user_id: int | None = None,
    type: NotificationType = NotificationType.STATUS_CHANGE,
) -> list[Notification]:
    created = [
        create_notification(db, admin_id, type, title, message, now)
        for admin_id in admin_ids(db)
        if admin_id != exclude_user_id
    ]
    db.flush()
    for n in created:
        history_service.log_activity(
            db, None, "NOTIFICATION_CREATED", f"Notifikace #{n.id} pro uživatele {n.user_id}: {title}", now,
        )
    return created


def status_change_message(kind: WorkflowKind, request, status: RequestStatus) -> tuple[str, str]:
    label = KIND_LABELS[kind]
    item_name = request.item.name if request.item else request.item_serial
    title = f"{label}: {STATUS_LABELS[status]}"
    message = f"{label} pro {item_name} (SN: {request.item_serial}) je nyní ve stavu {status.value}."
    return title, message


def notify_status_change(
    db: Session,
    kind: WorkflowKind,
    request,
    actor: Actor,
    status: RequestStatus,
    now: datetime,
    effects: EffectQueue,
) -> Notification:
    """Notifikace vlastníkovi je součástí transakce, broadcast adminům je best-effort."""
    title, message = status_change_message(kind, request, status)
    owner_notification = create_notification(
        db, request.user_id, NotificationType.STATUS_CHANGE, title, message, now
    )
    if actor.is_admin:
        effects.defer(
            "admin-broadcast",
            lambda session: broadcast_to_admins(
                session, title, message, now, exclude_user_id=actor.actor_id
            ),
        )
    return owner_notification


# ── Inbox ────────────────────────────────────────────────────────────────────

def get_notifications(
    db: Session,
    user_id: int,
    page: int = 1,
    size: int = 50,
    unread_only: bool = False,
    overdue_only: bool = False,
) -> Page:
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only or overdue_only:
        query = query.where(Notification.is_read == False)
    if overdue_only:
        query = query.where(Notification.reminder_id.is_not(None))
    query = query.order_by(Notification.created_at.desc(), Notification.id.desc())
    total = db.scalar(select(func.count()).select_from(query.subquery()))
    rows = db.scalars(query.offset((page - 1) * size).limit(size)).all()
    return Page(items=rows, total=total, page=page, pages=math.ceil(total / size) if total else 1, size=size)


def unread_count(db: Session, user_id: int) -> int:
    return db.scalar(
        select(func.count()).select_from(Notification).where(
            Notification.user_id == user_id, Notification.is_read == False
        )
    )


def _get_own(db: Session, user_id: int, notification_id: int) -> Notification:
    notification = db.get(Notification, notification_id)
    if not notification or notification.user_id != user_id:
        raise NotFound("Notifikace nenalezena")
    return notification


def mark_read(db: Session, user_id: int, notification_id: int, now: datetime) -> Notification:
    notification = _get_own(db, user_id, notification_id)
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = now
        db.commit()
        db.refresh(notification)
    return notification


def mark_all_read(db: Session, user_id: int, now: datetime) -> int:
    result = db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read == False)
        .values(is_read=True, read_at=now)
    )
    db.commit()
    return result.rowcount


def delete_notification(db: Session, user_id: int, notification_id: int) -> None:
    notification = _get_own(db, user_id, notification_id)
    db.delete(notification)
    db.commit()
