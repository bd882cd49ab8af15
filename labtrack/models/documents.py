import enum
from datetime import datetime
from decimal import Decimal
from sqlalchemy import String, Integer, Numeric, ForeignKey, UniqueConstraint, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from labtrack.database import Base
from labtrack.models.types import UTCDateTime, utcnow


class DocumentType(str, enum.Enum):
    CAL = "CAL"   # kalibrační certifikát, číslování v rámci roku
    CSR = "CSR"   # customer service report, v rámci měsíce
    TCR = "TCR"   # technical report, v rámci měsíce


class DocumentSequence(Base):
    """Čítač vydaných čísel pro (typ, rok, měsíc). Roční typy mají month=0."""

    __tablename__ = "document_sequences"
    __table_args__ = (
        UniqueConstraint("doc_type", "year", "month", name="uq_document_sequence_period"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    doc_type: Mapped[DocumentType] = mapped_column(
        SAEnum(DocumentType, name="documenttype"), nullable=False
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class CalibrationCertificate(Base):
    __tablename__ = "calibration_certificates"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    calibration_id: Mapped[str] = mapped_column(
        ForeignKey("calibrations.id"), unique=True, nullable=False
    )
    number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    manufacturer: Mapped[str | None] = mapped_column(String(255), nullable=True)
    instrument_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    model_number: Mapped[str | None] = mapped_column(String(128), nullable=True)
    configuration: Mapped[str | None] = mapped_column(String(255), nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    issued_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    calibration: Mapped["Calibration"] = relationship(back_populates="certificate")
    gas_entries: Mapped[list["GasCalibrationEntry"]] = relationship(
        back_populates="certificate",
        order_by="GasCalibrationEntry.position",
        cascade="all, delete-orphan",
    )
    test_entries: Mapped[list["TestResultEntry"]] = relationship(
        back_populates="certificate",
        order_by="TestResultEntry.position",
        cascade="all, delete-orphan",
    )


class GasCalibrationEntry(Base):
    __tablename__ = "gas_calibration_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    certificate_id: Mapped[int] = mapped_column(
        ForeignKey("calibration_certificates.id"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    gas_type: Mapped[str] = mapped_column(String(128), nullable=False)
    gas_concentration: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    gas_balance: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    gas_batch_number: Mapped[str] = mapped_column(String(64), default="", nullable=False)

    certificate: Mapped["CalibrationCertificate"] = relationship(back_populates="gas_entries")


class TestResultEntry(Base):
    __tablename__ = "test_result_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    certificate_id: Mapped[int] = mapped_column(
        ForeignKey("calibration_certificates.id"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    test_sensor: Mapped[str] = mapped_column(String(128), nullable=False)
    test_span: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    test_result: Mapped[str] = mapped_column(String(32), default="Pass", nullable=False)

    certificate: Mapped["CalibrationCertificate"] = relationship(back_populates="test_entries")


class ServiceReport(Base):
    __tablename__ = "service_reports"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    maintenance_id: Mapped[str] = mapped_column(
        ForeignKey("maintenances.id"), unique=True, nullable=False
    )
    report_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    customer: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    brand: Mapped[str | None] = mapped_column(String(128), nullable=True)
    model: Mapped[str | None] = mapped_column(String(128), nullable=True)
    reason_for_return: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    findings: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    action: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    maintenance: Mapped["Maintenance"] = relationship(back_populates="service_report")
    parts: Mapped[list["ServiceReportPart"]] = relationship(
        back_populates="report",
        order_by="ServiceReportPart.item_number",
        cascade="all, delete-orphan",
    )


class ServiceReportPart(Base):
    __tablename__ = "service_report_parts"

    id: Mapped[int] = mapped_column(primary_key=True)
    report_id: Mapped[int] = mapped_column(
        ForeignKey("service_reports.id"), nullable=False, index=True
    )
    item_number: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    sn_pn_old: Mapped[str | None] = mapped_column(String(128), nullable=True)
    sn_pn_new: Mapped[str | None] = mapped_column(String(128), nullable=True)

    report: Mapped["ServiceReport"] = relationship(back_populates="parts")


class TechnicalReport(Base):
    __tablename__ = "technical_reports"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    maintenance_id: Mapped[str] = mapped_column(
        ForeignKey("maintenances.id"), unique=True, nullable=False
    )
    report_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    delivery_to: Mapped[str | None] = mapped_column(String(255), nullable=True)
    tech_support: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reason_for_return: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    findings: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    estimate_work: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    maintenance: Mapped["Maintenance"] = relationship(back_populates="technical_report")
    parts: Mapped[list["TechnicalReportPart"]] = relationship(
        back_populates="report",
        order_by="TechnicalReportPart.item_number",
        cascade="all, delete-orphan",
    )


class TechnicalReportPart(Base):
    __tablename__ = "technical_report_parts"

    id: Mapped[int] = mapped_column(primary_key=True)
    report_id: Mapped[int] = mapped_column(
        ForeignKey("technical_reports.id"), nullable=False, index=True
    )
    item_number: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    unit_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    total_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    report: Mapped["TechnicalReport"] = relationship(back_populates="parts")
