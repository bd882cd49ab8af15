from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from labtrack.clock import Clock, get_clock
from labtrack.database import get_db
from labtrack.identity import Actor
from labtrack.models.item import ItemStatus
from labtrack.routers.auth import require_actor, require_manager
from labtrack.schemas.item import ItemCreate, ItemUpdate, ItemCondition, ItemResponse, ItemHistoryResponse
from labtrack.schemas.pagination import Page
from labtrack.services import history_service
import labtrack.services.item_service as svc

router = APIRouter(prefix="/api/items", tags=["items"])


@router.get("", response_model=Page[ItemResponse])
def list_items(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=200),
    search: str = Query(""),
    status: ItemStatus | None = Query(None),
    db: Session = Depends(get_db),
    _=Depends(require_actor),
):
    return svc.get_items(db, page=page, size=size, search=search, status=status)


@router.post("", response_model=ItemResponse, status_code=201)
def create_item(
    data: ItemCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_manager),
    clock: Clock = Depends(get_clock),
):
    return svc.create_item(db, data, actor, clock.now())


@router.get("/{serial}", response_model=ItemResponse)
def get_item(serial: str, db: Session = Depends(get_db), _=Depends(require_actor)):
    return svc.get_item(db, serial)


@router.put("/{serial}", response_model=ItemResponse)
def update_item(serial: str, data: ItemUpdate, db: Session = Depends(get_db), _=Depends(require_manager)):
    return svc.update_item(db, serial, data)


@router.post("/{serial}/condition", response_model=ItemResponse)
def set_condition(
    serial: str,
    data: ItemCondition,
    db: Session = Depends(get_db),
    actor: Actor = Depends(require_manager),
    clock: Clock = Depends(get_clock),
):
    return svc.set_condition(db, serial, data, actor, clock.now())


@router.get("/{serial}/history", response_model=list[ItemHistoryResponse])
def item_history(serial: str, db: Session = Depends(get_db), _=Depends(require_actor)):
    return history_service.item_timeline(db, serial)


@router.get("/{serial}/holder", response_model=ItemHistoryResponse | None)
def current_holder(serial: str, db: Session = Depends(get_db), _=Depends(require_actor)):
    svc.get_item(db, serial)
    return history_service.current_holder(db, serial)
