import enum
from typing import Optional
import uuid
from datetime import date, datetime
from sqlalchemy import String, Boolean, Date, ForeignKey, Index, Enum as SAEnum, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from labtrack.database import Base
from labtrack.models.types import UTCDateTime, utcnow


class ReminderType(str, enum.Enum):
    CALIBRATION = "CALIBRATION"
    RENTAL = "RENTAL"
    MAINTENANCE = "MAINTENANCE"


class ReminderStatus(str, enum.Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    ACKNOWLEDGED = "ACKNOWLEDGED"


class NotificationType(str, enum.Enum):
    STATUS_CHANGE = "STATUS_CHANGE"
    REQUEST_CREATED = "REQUEST_CREATED"
    REMINDER = "REMINDER"


def _new_id() -> str:
    return str(uuid.uuid4())


class Reminder(Base):
    __tablename__ = "reminders"
    __table_args__ = (
        # nejvýše jeden čekající reminder na (typ, požadavek)
        Index(
            "uq_reminder_pending",
            "type",
            "related_id",
            unique=True,
            sqlite_where=text("status = 'PENDING'"),
            postgresql_where=text("status = 'PENDING'"),
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    type: Mapped[ReminderType] = mapped_column(
        SAEnum(ReminderType, name="remindertype"), nullable=False
    )
    related_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    item_serial: Mapped[str | None] = mapped_column(
        ForeignKey("items.serial_number"), nullable=True, index=True
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    fire_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(String(2000), nullable=False)
    status: Mapped[ReminderStatus] = mapped_column(
        SAEnum(ReminderStatus, name="reminderstatus"),
        default=ReminderStatus.PENDING,
        nullable=False,
    )
    email_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    email_sent_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    # poslední rozeslání do schránek, zároveň zámek proti souběžnému odeslání
    last_notified_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    acknowledged_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    notifications: Mapped[list["Notification"]] = relationship(back_populates="reminder")


class Notification(Base):
    """Položka schránky uživatele. Měnit se smí jen is_read a smazání."""

    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    reminder_id: Mapped[str | None] = mapped_column(
        ForeignKey("reminders.id", ondelete="SET NULL"), nullable=True, index=True
    )
    type: Mapped[NotificationType] = mapped_column(
        SAEnum(NotificationType, name="notificationtype"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(String(2000), nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    read_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    reminder: Mapped[Optional["Reminder"]] = relationship(back_populates="notifications")
