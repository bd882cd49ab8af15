import enum
from datetime import datetime
from sqlalchemy import String, Integer, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from labtrack.database import Base
from labtrack.models.types import UTCDateTime, utcnow


class ItemStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    IN_CALIBRATION = "IN_CALIBRATION"
    RENTED = "RENTED"
    IN_MAINTENANCE = "IN_MAINTENANCE"
    DAMAGED = "DAMAGED"


class Item(Base):
    """Fyzický přístroj, přirozený klíč = sériové číslo."""

    __tablename__ = "items"

    serial_number: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str | None] = mapped_column(String(128), nullable=True)
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    status: Mapped[ItemStatus] = mapped_column(
        SAEnum(ItemStatus, name="itemstatus"),
        default=ItemStatus.AVAILABLE,
        nullable=False,
    )
    last_verified: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    history: Mapped[list["ItemHistory"]] = relationship(
        back_populates="item", order_by="ItemHistory.start_date"
    )

    __mapper_args__ = {"version_id_col": version}
