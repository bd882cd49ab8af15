"""Synchronizace stavu položky se stavem požadavku.

Položka je AVAILABLE právě tehdy, když ji nedrží žádný otevřený požadavek.
Převzetí i uvolnění běží ve stejné transakci jako přechod požadavku.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from labtrack.errors import ConflictError
from labtrack.models.item import ItemStatus
from labtrack.models.requests import RequestStatus
from labtrack.services import history_service
from labtrack.services.workflows import Workflow

logger = logging.getLogger(__name__)


def item_status_delta(
    workflow: Workflow,
    old: RequestStatus | None,
    new: RequestStatus,
) -> ItemStatus | None:
    """Nový stav položky po přechodu old → new, None = beze změny.

    old=None znamená založení požadavku.
    """
    held_before = workflow.holds_item(old)
    held_after = workflow.holds_item(new)
    if held_after and not held_before:
        return workflow.held_item_status
    if held_before and not held_after:
        return ItemStatus.AVAILABLE
    return None


def apply_transition(
    db: Session,
    workflow: Workflow,
    request,
    old: RequestStatus | None,
    new: RequestStatus,
    now: datetime,
    note: str | None = None,
) -> ItemStatus | None:
    delta = item_status_delta(workflow, old, new)
    if delta is None:
        return None

    item = request.item
    if delta == workflow.held_item_status:
        _engage(db, workflow, request, now, note)
    else:
        _release(db, workflow, request, now, note)

    # nejvýše jeden otevřený interval na položku
    if history_service.count_open_intervals(db, item.serial_number) > 1:
        raise ConflictError(f"Položka {item.serial_number} má více otevřených záznamů historie")
    return item.status


def _engage(db: Session, workflow: Workflow, request, now: datetime, note: str | None) -> None:
    item = request.item
    if item.status not in workflow.engageable_from:
        raise ConflictError(
            f"Položka {item.serial_number} není k dispozici (stav {item.status.value})"
        )
    holder = history_service.current_holder(db, item.serial_number)
    if holder is not None and holder.related_id != request.id:
        raise ConflictError(
            f"Položka {item.serial_number} je držena požadavkem {holder.related_kind.value} {holder.related_id}"
        )
    item.status = workflow.held_item_status
    history_service.open_interval(
        db,
        item_serial=item.serial_number,
        action=workflow.history_action,
        kind=workflow.kind,
        related_id=request.id,
        now=now,
        details=note,
    )


def _release(db: Session, workflow: Workflow, request, now: datetime, note: str | None) -> None:
    item = request.item
    if item.status != workflow.held_item_status:
        logger.warning(
            "Položka %s měla stav %s, očekáván %s",
            item.serial_number, item.status.value, workflow.held_item_status.value,
        )
    history_service.close_interval(db, item.serial_number, request.id, now, details=note)
    item.status = ItemStatus.AVAILABLE


def discard_engagement(db: Session, workflow: Workflow, request) -> bool:
    """Vrátí položku do AVAILABLE bez uzavření intervalu, interval se smaže."""
    if not workflow.holds_item(request.status):
        return False
    item = request.item
    history_service.discard_open_interval(db, item.serial_number, request.id)
    if item.status == workflow.held_item_status:
        item.status = ItemStatus.AVAILABLE
    else:
        logger.warning(
            "Položka %s má při odstranění požadavku stav %s, ponechán",
            item.serial_number, item.status.value,
        )
    return True
