"""Sekvenční čísla dokumentů ve tvaru {n}/{TYP}-PBI/{ROMAN_MĚSÍC}/{rok}.

Čísla se vydávají z řádku document_sequences pro (typ, rok, měsíc), který se
inkrementuje atomickým UPDATE v transakci dokončení. Počítání existujících
dokumentů (preview_number) slouží jen k náhledu a pod souběhem duplikuje.
"""
from datetime import datetime, timezone

from sqlalchemy import select, update, func
from sqlalchemy.orm import Session

from labtrack.config import settings
from labtrack.models.documents import (
    DocumentType, DocumentSequence, CalibrationCertificate, ServiceReport, TechnicalReport,
)

ROMAN_MONTHS = ("I", "II", "III", "IV", "V", "VI", "VII", "VIII", "IX", "X", "XI", "XII")

MONTH_SCOPED = frozenset({DocumentType.CSR, DocumentType.TCR})

# (model, sloupec data vydání) pro počítání už vydaných dokumentů
_ISSUED = {
    DocumentType.CAL: (CalibrationCertificate, CalibrationCertificate.issued_at),
    DocumentType.CSR: (ServiceReport, ServiceReport.created_at),
    DocumentType.TCR: (TechnicalReport, TechnicalReport.created_at),
}


def month_to_roman(month: int) -> str:
    if not 1 <= month <= 12:
        raise ValueError(f"Neplatný měsíc: {month}")
    return ROMAN_MONTHS[month - 1]


def format_number(sequence: int, doc_type: DocumentType, reference: datetime) -> str:
    return f"{sequence}/{doc_type.value}-{settings.DOCUMENT_CODE_SUFFIX}/{month_to_roman(reference.month)}/{reference.year}"


def period_bounds(doc_type: DocumentType, reference: datetime) -> tuple[datetime, datetime]:
    """[začátek, konec) období, ve kterém se čísluje."""
    if doc_type in MONTH_SCOPED:
        start = datetime(reference.year, reference.month, 1, tzinfo=timezone.utc)
        if reference.month == 12:
            end = datetime(reference.year + 1, 1, 1, tzinfo=timezone.utc)
        else:
            end = datetime(reference.year, reference.month + 1, 1, tzinfo=timezone.utc)
    else:
        start = datetime(reference.year, 1, 1, tzinfo=timezone.utc)
        end = datetime(reference.year + 1, 1, 1, tzinfo=timezone.utc)
    return start, end


def count_issued(db: Session, doc_type: DocumentType, reference: datetime) -> int:
    model, column = _ISSUED[doc_type]
    start, end = period_bounds(doc_type, reference)
    return db.scalar(
        select(func.count()).select_from(model).where(column >= start, column < end)
    )


def preview_number(db: Session, doc_type: DocumentType, reference: datetime) -> str:
    """Náhled dalšího čísla (count + 1). Nerezervuje nic."""
    return format_number(count_issued(db, doc_type, reference) + 1, doc_type, reference)


def _sequence_row_id(db: Session, doc_type: DocumentType, reference: datetime) -> int:
    month = reference.month if doc_type in MONTH_SCOPED else 0
    row_id = db.scalar(
        select(DocumentSequence.id)
        .where(
            DocumentSequence.doc_type == doc_type,
            DocumentSequence.year == reference.year,
            DocumentSequence.month == month,
        )
        .with_for_update()
    )
    if row_id is not None:
        return row_id
    # První číslo v období: navázat na dokumenty vydané před zavedením čítače
    row = DocumentSequence(
        doc_type=doc_type,
        year=reference.year,
        month=month,
        last_value=count_issued(db, doc_type, reference),
    )
    db.add(row)
    db.flush()
    return row.id


def next_number(db: Session, doc_type: DocumentType, reference: datetime) -> str:
    """Vydá další číslo. Musí běžet uvnitř transakce, která dokument ukládá."""
    row_id = _sequence_row_id(db, doc_type, reference)
    db.execute(
        update(DocumentSequence)
        .where(DocumentSequence.id == row_id)
        .values(last_value=DocumentSequence.last_value + 1)
        .execution_options(synchronize_session=False)
    )
    value = db.scalar(select(DocumentSequence.last_value).where(DocumentSequence.id == row_id))
    return format_number(value, doc_type, reference)
