"""Životní cyklus požadavků: kalibrace, výpůjčka, údržba.

Každý přechod běží v jedné transakci: stav požadavku, stav položky, interval
historie, status log, audit, notifikace vlastníkovi, reminder a případně
vydání čísla dokumentu. Broadcast adminům běží až po commitu jako best-effort.
"""
import logging
import math
from datetime import datetime

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from labtrack.errors import NotFound, Forbidden, ValidationError, InvalidTransition
from labtrack.identity import Actor
from labtrack.models.item import Item
from labtrack.models.reminder import NotificationType
from labtrack.models.requests import (
    WorkflowKind, RequestStatus, REQUEST_MODELS, Calibration, Rental, Maintenance,
)
from labtrack.schemas.pagination import Page
from labtrack.schemas.requests import RequestCreate, TransitionRequest
from labtrack.services import (
    document_service, history_service, item_sync, notification_service, reminder_service,
)
from labtrack.services.effects import EffectQueue
from labtrack.services.transaction import run_in_transaction
from labtrack.services.workflows import WORKFLOWS, authorize, check_transition, is_terminal

logger = logging.getLogger(__name__)

PRIVILEGED_ROLES = {"admin", "manager"}


def get_request(db: Session, kind: WorkflowKind, request_id: str):
    request = db.get(REQUEST_MODELS[kind], request_id)
    if not request:
        raise NotFound(f"{notification_service.KIND_LABELS[kind]} nenalezena")
    return request


def get_visible_request(db: Session, kind: WorkflowKind, request_id: str, actor: Actor):
    request = get_request(db, kind, request_id)
    if actor.role not in PRIVILEGED_ROLES and request.user_id != actor.actor_id:
        raise Forbidden("Požadavek patří jinému uživateli")
    return request


def list_requests(
    db: Session,
    kind: WorkflowKind,
    actor: Actor,
    page: int = 1,
    size: int = 50,
    status: RequestStatus | None = None,
    item_serial: str = "",
) -> Page:
    model = REQUEST_MODELS[kind]
    query = select(model)
    if actor.role not in PRIVILEGED_ROLES:
        query = query.where(model.user_id == actor.actor_id)
    if status is not None:
        query = query.where(model.status == status)
    if item_serial:
        query = query.where(model.item_serial == item_serial)
    query = query.order_by(model.created_at.desc())
    total = db.scalar(select(func.count()).select_from(query.subquery()))
    rows = db.scalars(query.offset((page - 1) * size).limit(size)).all()
    return Page(items=rows, total=total, page=page, pages=math.ceil(total / size) if total else 1, size=size)


def get_status_logs(db: Session, kind: WorkflowKind, request_id: str, actor: Actor) -> list:
    get_visible_request(db, kind, request_id, actor)
    return history_service.get_status_logs(db, kind, request_id)


# ── Create ───────────────────────────────────────────────────────────────────

def _new_request(kind: WorkflowKind, item: Item, data: RequestCreate, actor: Actor, now: datetime):
    common = dict(item=item, user_id=actor.actor_id, status=data.status, notes=data.notes, created_at=now)
    if kind == WorkflowKind.rental:
        if data.end_date is None:
            raise ValidationError("Výpůjčka vyžaduje datum vrácení (end_date)")
        start = data.start_date or now.date()
        if data.end_date < start:
            raise ValidationError("Datum vrácení nesmí být před začátkem výpůjčky")
        return Rental(start_date=start, end_date=data.end_date, **common)
    if kind == WorkflowKind.maintenance:
        return Maintenance(start_date=now, **common)
    return Calibration(**common)


def create_request(
    db: Session,
    kind: WorkflowKind,
    data: RequestCreate,
    actor: Actor,
    now: datetime,
    effects: EffectQueue | None = None,
):
    workflow = WORKFLOWS[kind]
    effects = effects if effects is not None else EffectQueue()
    if data.status not in workflow.initial_statuses:
        raise InvalidTransition(f"Požadavek nelze založit ve stavu {data.status.value}")
    item = db.get(Item, data.item_serial)
    if not item:
        raise NotFound("Položka nenalezena")
    request = _new_request(kind, item, data, actor, now)
    label = notification_service.KIND_LABELS[kind]

    with run_in_transaction(db):
        db.add(request)
        db.flush()
        item_sync.apply_transition(db, workflow, request, None, request.status, now, note=data.notes)
        history_service.append_status_log(db, kind, request.id, request.status, actor.actor_id, now, data.notes)
        history_service.log_activity(
            db, actor.actor_id, "REQUEST_CREATED",
            f"{label} pro {item.name} (SN: {item.serial_number}) založena ve stavu {request.status.value}",
            now, item_serial=item.serial_number, kind=kind, related_id=request.id,
        )
        title = f"Nový požadavek: {label}"
        message = f"{label} pro {item.name} (SN: {item.serial_number}) čeká na zpracování."
        effects.defer(
            "admin-broadcast",
            lambda session: notification_service.broadcast_to_admins(
                session, title, message, now,
                exclude_user_id=actor.actor_id, type=NotificationType.REQUEST_CREATED,
            ),
        )

    logger.info("%s %s založena uživatelem %s", label, request.id, actor.actor_id)
    effects.run(db)
    db.refresh(request)
    return request


# ── Transition ───────────────────────────────────────────────────────────────

def _complete(db: Session, kind: WorkflowKind, request, data: TransitionRequest, now: datetime) -> list[str]:
    """Náležitosti dokončení, vrací vydaná čísla dokumentů."""
    if kind == WorkflowKind.calibration:
        if data.calibration is None:
            raise ValidationError("Dokončení kalibrace vyžaduje calibration_date a valid_until")
        cert = document_service.issue_certificate(db, request, data.calibration, now)
        request.item.last_verified = now
        return [cert.number]
    if kind == WorkflowKind.rental:
        if request.return_date is None:
            request.return_date = now
        return []
    payload = data.maintenance
    if payload is None:
        raise ValidationError("Dokončení údržby vyžaduje servisní nebo technický report")
    request.end_date = now
    return document_service.issue_maintenance_reports(
        db, request, payload.service_report, payload.technical_report, now
    )


def transition(
    db: Session,
    kind: WorkflowKind,
    request_id: str,
    actor: Actor,
    data: TransitionRequest,
    now: datetime,
    effects: EffectQueue | None = None,
):
    workflow = WORKFLOWS[kind]
    effects = effects if effects is not None else EffectQueue()
    request = get_request(db, kind, request_id)
    target = data.status
    authorize(workflow, request.user_id, actor, target)
    check_transition(workflow, request.status, target)
    old = request.status

    with run_in_transaction(db):
        numbers = []
        if target == RequestStatus.COMPLETED:
            numbers = _complete(db, kind, request, data, now)
        request.status = target
        item_sync.apply_transition(db, workflow, request, old, target, now, note=data.notes)
        history_service.append_status_log(db, kind, request.id, target, actor.actor_id, now, data.notes)
        details = f"{notification_service.KIND_LABELS[kind]} {request.id}: {old.value} → {target.value}"
        if numbers:
            details += f" (dokumenty: {', '.join(numbers)})"
        history_service.log_activity(
            db, actor.actor_id, "STATUS_CHANGED", details, now,
            item_serial=request.item_serial, kind=kind, related_id=request.id,
        )
        notification_service.notify_status_change(db, kind, request, actor, target, now, effects)
        if is_terminal(target):
            reminder_service.retire_reminders(db, request.id, now)
        reminder_service.reminder_for_transition(db, kind, request, target, now)

    logger.info(
        "%s %s: %s -> %s (uživatel %s)", kind.value, request.id, old.value, target.value, actor.actor_id
    )
    effects.run(db)
    db.refresh(request)
    return request


# ── Purge ────────────────────────────────────────────────────────────────────

def purge_request(db: Session, kind: WorkflowKind, request_id: str, actor: Actor, now: datetime) -> None:
    """Administrátorské odstranění požadavku včetně vrácení jeho vedlejších efektů."""
    if not actor.is_admin:
        raise Forbidden("Požadavek může odstranit jen administrátor")
    workflow = WORKFLOWS[kind]
    request = get_request(db, kind, request_id)
    serial = request.item_serial
    status = request.status

    with run_in_transaction(db):
        released = item_sync.discard_engagement(db, workflow, request)
        dropped = reminder_service.cancel_pending(db, request.id)
        # status logy a dokumenty jdou přes cascade
        db.delete(request)
        history_service.log_activity(
            db, actor.actor_id, "REQUEST_DELETED",
            f"{notification_service.KIND_LABELS[kind]} {request_id} ({status.value}) odstraněna"
            + (", položka uvolněna" if released else ""),
            now, item_serial=serial, kind=kind, related_id=request_id,
        )

    logger.info(
        "AUDIT: %s %s odstraněn uživatelem %s (uvolněno=%s, remindery=%d)",
        kind.value, request_id, actor.actor_id, released, dropped,
    )
