import enum
import uuid
from typing import Optional
from datetime import date, datetime
from sqlalchemy import String, Integer, Date, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship, declared_attr
from labtrack.database import Base
from labtrack.models.types import UTCDateTime, utcnow


class WorkflowKind(str, enum.Enum):
    calibration = "calibration"
    rental = "rental"
    maintenance = "maintenance"


class RequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


TERMINAL_STATUSES = frozenset({RequestStatus.COMPLETED, RequestStatus.REJECTED, RequestStatus.CANCELLED})


def _new_id() -> str:
    return str(uuid.uuid4())


class RequestMixin:
    """Sloupce společné pro kalibraci, výpůjčku a údržbu."""

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    item_serial: Mapped[str] = mapped_column(
        ForeignKey("items.serial_number"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    status: Mapped[RequestStatus] = mapped_column(
        SAEnum(RequestStatus, name="requeststatus"),
        default=RequestStatus.PENDING,
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    @declared_attr
    def item(cls) -> Mapped["Item"]:
        return relationship("Item")

    @declared_attr
    def user(cls) -> Mapped["User"]:
        return relationship("User")

    @declared_attr.directive
    def __mapper_args__(cls):
        return {"version_id_col": cls.__table__.c.version}

    @property
    def is_open(self) -> bool:
        return self.status not in TERMINAL_STATUSES


class StatusLogMixin:
    """Append-only, nikdy UPDATE."""

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    status: Mapped[RequestStatus] = mapped_column(
        SAEnum(RequestStatus, name="requeststatus"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)


class Calibration(RequestMixin, Base):
    __tablename__ = "calibrations"
    kind = WorkflowKind.calibration

    calibration_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    valid_until: Mapped[date | None] = mapped_column(Date, nullable=True)
    certificate_number: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)

    status_logs: Mapped[list["CalibrationStatusLog"]] = relationship(
        back_populates="calibration",
        order_by="CalibrationStatusLog.id",
        cascade="all, delete-orphan",
    )
    certificate: Mapped[Optional["CalibrationCertificate"]] = relationship(
        back_populates="calibration", cascade="all, delete-orphan"
    )


class CalibrationStatusLog(StatusLogMixin, Base):
    __tablename__ = "calibration_status_logs"

    calibration_id: Mapped[str] = mapped_column(
        ForeignKey("calibrations.id"), nullable=False, index=True
    )
    calibration: Mapped["Calibration"] = relationship(back_populates="status_logs")


class Rental(RequestMixin, Base):
    __tablename__ = "rentals"
    kind = WorkflowKind.rental

    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    return_date: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    status_logs: Mapped[list["RentalStatusLog"]] = relationship(
        back_populates="rental",
        order_by="RentalStatusLog.id",
        cascade="all, delete-orphan",
    )


class RentalStatusLog(StatusLogMixin, Base):
    __tablename__ = "rental_status_logs"

    rental_id: Mapped[str] = mapped_column(ForeignKey("rentals.id"), nullable=False, index=True)
    rental: Mapped["Rental"] = relationship(back_populates="status_logs")


class Maintenance(RequestMixin, Base):
    __tablename__ = "maintenances"
    kind = WorkflowKind.maintenance

    start_date: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    status_logs: Mapped[list["MaintenanceStatusLog"]] = relationship(
        back_populates="maintenance",
        order_by="MaintenanceStatusLog.id",
        cascade="all, delete-orphan",
    )
    service_report: Mapped[Optional["ServiceReport"]] = relationship(
        back_populates="maintenance", cascade="all, delete-orphan"
    )
    technical_report: Mapped[Optional["TechnicalReport"]] = relationship(
        back_populates="maintenance", cascade="all, delete-orphan"
    )

    @property
    def csr_number(self) -> str | None:
        return self.service_report.report_number if self.service_report else None

    @property
    def tcr_number(self) -> str | None:
        return self.technical_report.report_number if self.technical_report else None


class MaintenanceStatusLog(StatusLogMixin, Base):
    __tablename__ = "maintenance_status_logs"

    maintenance_id: Mapped[str] = mapped_column(
        ForeignKey("maintenances.id"), nullable=False, index=True
    )
    maintenance: Mapped["Maintenance"] = relationship(back_populates="status_logs")


REQUEST_MODELS: dict[WorkflowKind, type] = {
    WorkflowKind.calibration: Calibration,
    WorkflowKind.rental: Rental,
    WorkflowKind.maintenance: Maintenance,
}

STATUS_LOG_MODELS: dict[WorkflowKind, tuple[type, str]] = {
    WorkflowKind.calibration: (CalibrationStatusLog, "calibration_id"),
    WorkflowKind.rental: (RentalStatusLog, "rental_id"),
    WorkflowKind.maintenance: (MaintenanceStatusLog, "maintenance_id"),
}
