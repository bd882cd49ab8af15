from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from labtrack.clock import Clock, get_clock
from labtrack.database import get_db
from labtrack.identity import Actor
from labtrack.models.documents import DocumentType
from labtrack.models.reminder import ReminderStatus
from labtrack.routers.auth import require_actor, require_manager
from labtrack.schemas.documents import NumberPreview
from labtrack.schemas.notifications import ReminderResponse, CheckResultResponse
from labtrack.schemas.pagination import Page
from labtrack.services import sequence_service
from labtrack.services.channels import get_channel
import labtrack.services.reminder_service as svc

router = APIRouter(prefix="/api", tags=["reminders"])


@router.get("/reminders", response_model=Page[ReminderResponse])
def list_reminders(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=200),
    status: ReminderStatus | None = Query(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_actor),
):
    return svc.get_reminders(db, actor, page=page, size=size, status=status)


@router.post("/reminders/check", response_model=CheckResultResponse)
def check_reminders(
    db: Session = Depends(get_db),
    _=Depends(require_actor),
    clock: Clock = Depends(get_clock),
):
    """Zpracuje splatné remindery, volá ho klientský poller."""
    return svc.check_due_reminders(db, clock.now(), channel=get_channel())


@router.post("/reminders/{reminder_id}/acknowledge", response_model=ReminderResponse)
def acknowledge(
    reminder_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_actor),
    clock: Clock = Depends(get_clock),
):
    return svc.acknowledge_reminder(db, reminder_id, actor, clock.now())


@router.get("/documents/{doc_type}/preview", response_model=NumberPreview)
def preview_number(
    doc_type: DocumentType,
    db: Session = Depends(get_db),
    _=Depends(require_manager),
    clock: Clock = Depends(get_clock),
):
    """Náhled dalšího čísla, nic nerezervuje."""
    return NumberPreview(doc_type=doc_type.value, number=sequence_service.preview_number(db, doc_type, clock.now()))
