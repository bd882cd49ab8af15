"""Chybová taxonomie služeb.

Všechny chyby jsou HTTPException, takže služby je vyhazují stejně jako
dřív HTTPException a routery je nemusí překládat.
"""
from fastapi import HTTPException


class WorkflowError(HTTPException):
    status_code = 400
    default_detail = "Chyba požadavku"

    def __init__(self, detail: str | None = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class Unauthorized(WorkflowError):
    status_code = 401
    default_detail = "Přihlášení vyžadováno"


class Forbidden(WorkflowError):
    status_code = 403
    default_detail = "Nedostatečná oprávnění"


class NotFound(WorkflowError):
    status_code = 404
    default_detail = "Záznam nenalezen"


class InvalidTransition(WorkflowError):
    status_code = 409
    default_detail = "Nepovolený přechod stavu"


class ConflictError(WorkflowError):
    status_code = 409
    default_detail = "Položka je již vázána jiným požadavkem"


class ValidationError(WorkflowError):
    status_code = 422
    default_detail = "Chybí povinné údaje"


class StorageError(WorkflowError):
    status_code = 503
    default_detail = "Chyba úložiště, operace nebyla provedena"
