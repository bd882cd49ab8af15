"""Certifikáty kalibrací a servisní/technické reporty údržby.

Seznamy položek (plyny, testy, díly) mají replace-all sémantiku: existující
řádky se smažou a vloží se celá nová sada v zadaném pořadí.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from labtrack.errors import NotFound, ValidationError, Forbidden
from labtrack.identity import Actor
from labtrack.models.documents import (
    DocumentType, CalibrationCertificate, GasCalibrationEntry, TestResultEntry,
    ServiceReport, ServiceReportPart, TechnicalReport, TechnicalReportPart,
)
from labtrack.models.requests import Calibration, Maintenance, RequestStatus
from labtrack.schemas.documents import (
    CalibrationCompletion, CertificateUpdate, ServiceReportData, TechnicalReportData,
)
from labtrack.services import history_service, sequence_service
from labtrack.services.transaction import run_in_transaction

logger = logging.getLogger(__name__)


def _replace_certificate_entries(cert: CalibrationCertificate, gas_entries, test_entries) -> None:
    cert.gas_entries.clear()
    cert.test_entries.clear()
    for position, entry in enumerate(gas_entries, 1):
        cert.gas_entries.append(GasCalibrationEntry(position=position, **entry.model_dump()))
    for position, entry in enumerate(test_entries, 1):
        cert.test_entries.append(TestResultEntry(position=position, **entry.model_dump()))


def issue_certificate(
    db: Session,
    calibration: Calibration,
    data: CalibrationCompletion,
    now: datetime,
) -> CalibrationCertificate:
    """Uloží certifikát dokončené kalibrace, číslo se vydá jen jednou."""
    cert = calibration.certificate
    if cert is None:
        cert = CalibrationCertificate(
            number=sequence_service.next_number(db, DocumentType.CAL, now),
            issued_at=now,
            manufacturer=calibration.item.category if calibration.item else None,
        )
        calibration.certificate = cert
    cert.instrument_name = data.instrument_name or (calibration.item.name if calibration.item else None)
    cert.model_number = data.model_number
    cert.configuration = data.configuration
    cert.approved_by = data.approved_by
    _replace_certificate_entries(cert, data.gas_entries, data.test_entries)

    calibration.calibration_date = data.calibration_date
    calibration.valid_until = data.valid_until
    calibration.certificate_number = cert.number
    return cert


def get_certificate(db: Session, calibration_id: str) -> CalibrationCertificate:
    calibration = db.get(Calibration, calibration_id)
    if not calibration or calibration.certificate is None:
        raise NotFound("Certifikát nenalezen")
    return calibration.certificate


def regenerate_certificate(
    db: Session,
    calibration_id: str,
    data: CertificateUpdate,
    actor: Actor,
    now: datetime,
) -> CalibrationCertificate:
    """Nahradí obsah certifikátu. Číslo zůstává, pokud není recreate=True."""
    if not actor.is_admin:
        raise Forbidden("Certifikát může přegenerovat jen administrátor")
    calibration = db.get(Calibration, calibration_id)
    if not calibration:
        raise NotFound("Kalibrace nenalezena")
    if calibration.status != RequestStatus.COMPLETED or calibration.certificate is None:
        raise ValidationError("Certifikát lze přegenerovat jen u dokončené kalibrace")

    with run_in_transaction(db):
        cert = calibration.certificate
        old_number = cert.number
        if data.recreate:
            cert.number = sequence_service.next_number(db, DocumentType.CAL, now)
            cert.issued_at = now
            calibration.certificate_number = cert.number
        cert.instrument_name = data.instrument_name or cert.instrument_name
        cert.model_number = data.model_number
        cert.configuration = data.configuration
        cert.approved_by = data.approved_by
        _replace_certificate_entries(cert, data.gas_entries, data.test_entries)
        history_service.log_activity(
            db, actor.actor_id, "CERTIFICATE_REGENERATED",
            f"Certifikát {old_number} přegenerován" + (f" jako {cert.number}" if data.recreate else ""),
            now, item_serial=calibration.item_serial, related_id=calibration.id,
        )
    if data.recreate:
        logger.info("AUDIT: certifikát %s znovu vydán pod číslem %s", old_number, cert.number)
    db.refresh(cert)
    return cert


# ── Maintenance reports ──────────────────────────────────────────────────────

def _save_service_report(
    db: Session, maintenance: Maintenance, data: ServiceReportData, now: datetime
) -> ServiceReport:
    report = maintenance.service_report
    if report is None:
        report = ServiceReport(
            report_number=sequence_service.next_number(db, DocumentType.CSR, now),
            created_at=now,
        )
        maintenance.service_report = report
    for field, value in data.model_dump(exclude={"parts"}).items():
        setattr(report, field, value)
    report.parts.clear()
    for part in sorted(data.parts, key=lambda p: p.item_number):
        report.parts.append(ServiceReportPart(**part.model_dump()))
    return report


def _save_technical_report(
    db: Session, maintenance: Maintenance, data: TechnicalReportData, now: datetime
) -> TechnicalReport:
    report = maintenance.technical_report
    if report is None:
        report = TechnicalReport(
            report_number=sequence_service.next_number(db, DocumentType.TCR, now),
            created_at=now,
        )
        maintenance.technical_report = report
    for field, value in data.model_dump(exclude={"parts"}).items():
        setattr(report, field, value)
    report.parts.clear()
    for part in sorted(data.parts, key=lambda p: p.item_number):
        values = part.model_dump()
        if values["total_price"] is None and values["unit_price"] is not None:
            values["total_price"] = values["unit_price"] * values["quantity"]
        report.parts.append(TechnicalReportPart(**values))
    return report


def issue_maintenance_reports(
    db: Session,
    maintenance: Maintenance,
    service_report: ServiceReportData | None,
    technical_report: TechnicalReportData | None,
    now: datetime,
) -> list[str]:
    """Uloží reporty údržby a vrátí jejich čísla."""
    if service_report is None and technical_report is None:
        raise ValidationError("Dokončení údržby vyžaduje servisní nebo technický report")
    numbers = []
    if service_report is not None:
        numbers.append(_save_service_report(db, maintenance, service_report, now).report_number)
    if technical_report is not None:
        numbers.append(_save_technical_report(db, maintenance, technical_report, now).report_number)
    return numbers

