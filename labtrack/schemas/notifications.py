from datetime import date, datetime
from pydantic import BaseModel
from labtrack.models.reminder import ReminderType, ReminderStatus, NotificationType


class ReminderResponse(BaseModel):
    id: str
    type: ReminderType
    related_id: str
    item_serial: str | None
    user_id: int
    due_date: date
    fire_date: date
    title: str
    message: str
    status: ReminderStatus
    email_sent: bool
    last_notified_at: datetime | None
    acknowledged_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationResponse(BaseModel):
    id: int
    user_id: int
    reminder_id: str | None
    type: NotificationType
    title: str
    message: str
    is_read: bool
    read_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class UnreadCount(BaseModel):
    unread: int


class MarkAllReadResponse(BaseModel):
    updated: int


class CheckResultResponse(BaseModel):
    processed: int
    created: int
    emails_sent: int
    skipped: int
    errors: list[str]

    model_config = {"from_attributes": True}


class ActivityResponse(BaseModel):
    id: int
    user_id: int | None
    action: str
    details: str | None
    item_serial: str | None
    related_kind: str | None
    related_id: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
