import logging
from contextlib import contextmanager

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from labtrack.errors import ConflictError, StorageError

logger = logging.getLogger(__name__)


@contextmanager
def run_in_transaction(db: Session):
    """Commit on success, rollback on any failure.

    Domain errors pass through unchanged, a lost version check becomes
    ConflictError and any other database failure becomes StorageError.
    """
    try:
        yield db
        db.commit()
    except HTTPException:
        db.rollback()
        raise
    except StaleDataError as exc:
        db.rollback()
        logger.warning("Souběžná změna záznamu: %s", exc)
        raise ConflictError("Záznam byl mezitím změněn jiným uživatelem") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Transakce selhala, změny vráceny")
        raise StorageError() from exc
    except Exception:
        db.rollback()
        raise
