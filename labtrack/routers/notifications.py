from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session
from labtrack.clock import Clock, get_clock
from labtrack.database import get_db
from labtrack.identity import Actor
from labtrack.routers.auth import require_actor
from labtrack.schemas.notifications import NotificationResponse, UnreadCount, MarkAllReadResponse
from labtrack.schemas.pagination import Page
import labtrack.services.notification_service as svc

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("", response_model=Page[NotificationResponse])
def list_notifications(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=200),
    unread_only: bool = Query(False),
    overdue_only: bool = Query(False),
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_actor),
):
    return svc.get_notifications(
        db, actor.actor_id, page=page, size=size, unread_only=unread_only, overdue_only=overdue_only
    )


@router.get("/unread-count", response_model=UnreadCount)
def unread_count(db: Session = Depends(get_db), actor: Actor = Depends(require_actor)):
    return UnreadCount(unread=svc.unread_count(db, actor.actor_id))


@router.post("/read-all", response_model=MarkAllReadResponse)
def mark_all_read(
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_actor),
    clock: Clock = Depends(get_clock),
):
    return MarkAllReadResponse(updated=svc.mark_all_read(db, actor.actor_id, clock.now()))


@router.post("/{notification_id}/read", response_model=NotificationResponse)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_actor),
    clock: Clock = Depends(get_clock),
):
    return svc.mark_read(db, actor.actor_id, notification_id, clock.now())


@router.delete("/{notification_id}", status_code=204)
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_actor),
):
    svc.delete_notification(db, actor.actor_id, notification_id)
    return Response(status_code=204)
