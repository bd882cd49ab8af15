import math
from datetime import datetime

from sqlalchemy.orm import Session
from sqlalchemy import select, func

from labtrack.errors import NotFound, ConflictError
from labtrack.identity import Actor
from labtrack.models.item import Item, ItemStatus
from labtrack.schemas.item import ItemCreate, ItemUpdate, ItemCondition
from labtrack.schemas.pagination import Page
from labtrack.services import history_service
from labtrack.services.transaction import run_in_transaction


def get_items(
    db: Session,
    page: int = 1,
    size: int = 50,
    search: str = "",
    status: ItemStatus | None = None,
) -> Page:
    query = select(Item)
    if search:
        query = query.where(
            Item.name.ilike(f"%{search}%")
            | Item.serial_number.ilike(f"%{search}%")
            | Item.category.ilike(f"%{search}%")
        )
    if status is not None:
        query = query.where(Item.status == status)
    query = query.order_by(Item.serial_number)
    total = db.scalar(select(func.count()).select_from(query.subquery()))
    items = db.scalars(query.offset((page - 1) * size).limit(size)).all()
    return Page(
        items=items,
        total=total,
        page=page,
        pages=math.ceil(total / size) if total else 1,
        size=size,
    )


def get_item(db: Session, serial_number: str) -> Item:
    item = db.get(Item, serial_number)
    if not item:
        raise NotFound("Položka nenalezena")
    return item


def create_item(db: Session, data: ItemCreate, actor: Actor, now: datetime) -> Item:
    if db.get(Item, data.serial_number):
        raise ConflictError("Sériové číslo již existuje")
    item = Item(**data.model_dump(), created_at=now)
    with run_in_transaction(db):
        db.add(item)
        history_service.log_activity(
            db, actor.actor_id, "ITEM_CREATED", f"Položka {item.name} založena", now,
            item_serial=item.serial_number,
        )
    db.refresh(item)
    return item


def update_item(db: Session, serial_number: str, data: ItemUpdate) -> Item:
    item = get_item(db, serial_number)
    with run_in_transaction(db):
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(item, field, value)
    db.refresh(item)
    return item


def set_condition(db: Session, serial_number: str, data: ItemCondition, actor: Actor, now: datetime) -> Item:
    """AVAILABLE ↔ DAMAGED. Položku drženou požadavkem nelze přepnout."""
    item = get_item(db, serial_number)
    if data.damaged:
        if item.status == ItemStatus.DAMAGED:
            return item
        if item.status != ItemStatus.AVAILABLE:
            raise ConflictError(f"Položka je ve stavu {item.status.value}")
        new_status, action = ItemStatus.DAMAGED, "ITEM_DAMAGED"
    else:
        if item.status != ItemStatus.DAMAGED:
            return item
        if history_service.current_holder(db, serial_number) is not None:
            raise ConflictError("Položka je držena otevřeným požadavkem")
        new_status, action = ItemStatus.AVAILABLE, "ITEM_REPAIRED"

    with run_in_transaction(db):
        item.status = new_status
        history_service.log_activity(
            db, actor.actor_id, action, data.note or f"Stav položky: {new_status.value}", now,
            item_serial=serial_number,
        )
    db.refresh(item)
    return item
