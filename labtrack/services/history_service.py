"""Auditní stopa: status logy, intervaly držení položky a activity log."""
import logging
import math
from datetime import datetime

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from labtrack.errors import ConflictError, NotFound
from labtrack.models.history import ItemHistory, HistoryAction, ActivityLog
from labtrack.models.item import Item
from labtrack.models.requests import WorkflowKind, RequestStatus, STATUS_LOG_MODELS
from labtrack.schemas.pagination import Page

logger = logging.getLogger(__name__)


# ── Status log (append-only) ─────────────────────────────────────────────────

def append_status_log(
    db: Session,
    kind: WorkflowKind,
    request_id: str,
    status: RequestStatus,
    actor_id: int,
    now: datetime,
    notes: str | None = None,
):
    model, fk = STATUS_LOG_MODELS[kind]
    row = model(status=status, user_id=actor_id, notes=notes, created_at=now, **{fk: request_id})
    db.add(row)
    return row


def get_status_logs(db: Session, kind: WorkflowKind, request_id: str) -> list:
    model, fk = STATUS_LOG_MODELS[kind]
    return db.scalars(
        select(model).where(getattr(model, fk) == request_id).order_by(model.id)
    ).all()


# ── Item history intervals ───────────────────────────────────────────────────

def current_holder(db: Session, item_serial: str) -> ItemHistory | None:
    """Jediný otevřený interval položky, pokud existuje."""
    return db.scalar(
        select(ItemHistory).where(
            ItemHistory.item_serial == item_serial,
            ItemHistory.end_date.is_(None),
        )
    )


def open_interval(
    db: Session,
    item_serial: str,
    action: HistoryAction,
    kind: WorkflowKind,
    related_id: str,
    now: datetime,
    details: str | None = None,
) -> ItemHistory:
    row = ItemHistory(
        item_serial=item_serial,
        action=action,
        related_kind=kind,
        related_id=related_id,
        details=details,
        start_date=now,
    )
    db.add(row)
    db.flush()
    return row


def close_interval(
    db: Session,
    item_serial: str,
    related_id: str,
    now: datetime,
    details: str | None = None,
) -> ItemHistory:
    row = db.scalar(
        select(ItemHistory).where(
            ItemHistory.item_serial == item_serial,
            ItemHistory.related_id == related_id,
            ItemHistory.end_date.is_(None),
        )
    )
    if row is None:
        # uvolnění bez otevřeného intervalu by položku pustilo bez auditní stopy
        logger.warning("Otevřený interval pro %s / %s nenalezen", item_serial, related_id)
        raise ConflictError(f"Položka {item_serial} nemá otevřený záznam historie pro {related_id}")
    row.end_date = now
    if details:
        row.details = details
    db.flush()
    return row


def discard_open_interval(db: Session, item_serial: str, related_id: str) -> bool:
    """Smaže otevřený interval požadavku, jako by nikdy nezačal (purge)."""
    row = db.scalar(
        select(ItemHistory).where(
            ItemHistory.item_serial == item_serial,
            ItemHistory.related_id == related_id,
            ItemHistory.end_date.is_(None),
        )
    )
    if row is None:
        return False
    db.delete(row)
    db.flush()
    return True


def count_open_intervals(db: Session, item_serial: str) -> int:
    return db.scalar(
        select(func.count()).select_from(ItemHistory).where(
            ItemHistory.item_serial == item_serial,
            ItemHistory.end_date.is_(None),
        )
    )


def item_timeline(db: Session, item_serial: str) -> list[ItemHistory]:
    if not db.get(Item, item_serial):
        raise NotFound("Položka nenalezena")
    return db.scalars(
        select(ItemHistory)
        .where(ItemHistory.item_serial == item_serial)
        .order_by(ItemHistory.start_date, ItemHistory.id)
    ).all()


# ── Activity log ─────────────────────────────────────────────────────────────

def log_activity(
    db: Session,
    actor_id: int | None,
    action: str,
    details: str,
    now: datetime,
    item_serial: str | None = None,
    kind: WorkflowKind | None = None,
    related_id: str | None = None,
) -> ActivityLog:
    entry = ActivityLog(
        user_id=actor_id,
        action=action,
        details=details,
        item_serial=item_serial,
        related_kind=kind.value if kind else None,
        related_id=related_id,
        created_at=now,
    )
    db.add(entry)
    return entry


def get_activity(
    db: Session,
    page: int = 1,
    size: int = 50,
    action: str = "",
    item_serial: str = "",
) -> Page:
    query = select(ActivityLog)
    if action:
        query = query.where(ActivityLog.action == action)
    if item_serial:
        query = query.where(ActivityLog.item_serial == item_serial)
    query = query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
    total = db.scalar(select(func.count()).select_from(query.subquery()))
    rows = db.scalars(query.offset((page - 1) * size).limit(size)).all()
    return Page(items=rows, total=total, page=page, pages=math.ceil(total / size) if total else 1, size=size)
