from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session
from labtrack.clock import Clock, get_clock
from labtrack.database import get_db
from labtrack.identity import Actor
from labtrack.models.requests import WorkflowKind, RequestStatus
from labtrack.routers.auth import require_actor, require_admin
from labtrack.schemas.documents import CertificateResponse, CertificateUpdate
from labtrack.schemas.pagination import Page
from labtrack.schemas.requests import RequestCreate, TransitionRequest, RequestResponse, StatusLogResponse
from labtrack.services import document_service
import labtrack.services.request_service as svc

router = APIRouter(prefix="/api/requests", tags=["requests"])


@router.get("/{kind}", response_model=Page[RequestResponse])
def list_requests(
    kind: WorkflowKind,
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=200),
    status: RequestStatus | None = Query(None),
    item_serial: str = Query(""),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_actor),
):
    return svc.list_requests(db, kind, actor, page=page, size=size, status=status, item_serial=item_serial)


@router.post("/{kind}", response_model=RequestResponse, status_code=201)
def create_request(
    kind: WorkflowKind,
    data: RequestCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_actor),
    clock: Clock = Depends(get_clock),
):
    return svc.create_request(db, kind, data, actor, clock.now())


@router.get("/{kind}/{request_id}", response_model=RequestResponse)
def get_request(
    kind: WorkflowKind,
    request_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_actor),
):
    return svc.get_visible_request(db, kind, request_id, actor)


@router.post("/{kind}/{request_id}/transition", response_model=RequestResponse)
def transition(
    kind: WorkflowKind,
    request_id: str,
    data: TransitionRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_actor),
    clock: Clock = Depends(get_clock),
):
    return svc.transition(db, kind, request_id, actor, data, clock.now())


@router.get("/{kind}/{request_id}/logs", response_model=list[StatusLogResponse])
def status_logs(
    kind: WorkflowKind,
    request_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_actor),
):
    return svc.get_status_logs(db, kind, request_id, actor)


@router.delete("/{kind}/{request_id}", status_code=204)
def purge_request(
    kind: WorkflowKind,
    request_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_admin),
    clock: Clock = Depends(get_clock),
):
    svc.purge_request(db, kind, request_id, actor, clock.now())
    return Response(status_code=204)


@router.get("/calibration/{request_id}/certificate", response_model=CertificateResponse)
def get_certificate(
    request_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_actor),
):
    svc.get_visible_request(db, WorkflowKind.calibration, request_id, actor)
    return document_service.get_certificate(db, request_id)


@router.put("/calibration/{request_id}/certificate", response_model=CertificateResponse)
def regenerate_certificate(
    request_id: str,
    data: CertificateUpdate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_admin),
    clock: Clock = Depends(get_clock),
):
    return document_service.regenerate_certificate(db, request_id, data, actor, clock.now())
