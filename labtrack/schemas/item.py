from datetime import datetime
from pydantic import BaseModel, Field
from labtrack.models.item import ItemStatus
from labtrack.models.history import HistoryAction
from labtrack.models.requests import WorkflowKind


class ItemBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: str | None = None
    description: str | None = None


class ItemCreate(ItemBase):
    serial_number: str = Field(..., min_length=1, max_length=128)


class ItemUpdate(BaseModel):
    name: str | None = None
    category: str | None = None
    description: str | None = None


class ItemCondition(BaseModel):
    """Ruční hlášení poškození / opravy mimo workflow."""

    damaged: bool
    note: str | None = None


class ItemResponse(ItemBase):
    serial_number: str
    status: ItemStatus
    last_verified: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ItemHistoryResponse(BaseModel):
    id: int
    item_serial: str
    action: HistoryAction
    related_kind: WorkflowKind
    related_id: str
    details: str | None
    start_date: datetime
    end_date: datetime | None

    model_config = {"from_attributes": True}
