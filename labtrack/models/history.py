import enum
from datetime import datetime
from sqlalchemy import String, ForeignKey, Index, Enum as SAEnum, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from labtrack.database import Base
from labtrack.models.requests import WorkflowKind
from labtrack.models.types import UTCDateTime, utcnow


class HistoryAction(str, enum.Enum):
    CALIBRATED = "CALIBRATED"
    RENTED = "RENTED"
    MAINTAINED = "MAINTAINED"


class ItemHistory(Base):
    """Interval, po který požadavek drží položku. end_date je NULL, dokud trvá."""

    __tablename__ = "item_history"
    __table_args__ = (
        Index(
            "uq_item_history_open",
            "item_serial",
            unique=True,
            sqlite_where=text("end_date IS NULL"),
            postgresql_where=text("end_date IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    item_serial: Mapped[str] = mapped_column(
        ForeignKey("items.serial_number"), nullable=False, index=True
    )
    action: Mapped[HistoryAction] = mapped_column(
        SAEnum(HistoryAction, name="historyaction"), nullable=False
    )
    related_kind: Mapped[WorkflowKind] = mapped_column(
        SAEnum(WorkflowKind, name="workflowkind"), nullable=False
    )
    related_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    details: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    start_date: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    end_date: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    item: Mapped["Item"] = relationship(back_populates="history")


class ActivityLog(Base):
    """Auditní stopa akcí uživatelů. Append-only."""

    __tablename__ = "activity_logs"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    action: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    details: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    item_serial: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    related_kind: Mapped[str | None] = mapped_column(String(32), nullable=True)
    related_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
