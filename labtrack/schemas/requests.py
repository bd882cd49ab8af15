from datetime import date, datetime
from pydantic import BaseModel, Field
from labtrack.models.requests import RequestStatus, WorkflowKind
from labtrack.schemas.documents import CalibrationCompletion, MaintenanceCompletion


class RequestCreate(BaseModel):
    item_serial: str = Field(..., min_length=1, max_length=128)
    notes: str | None = None
    # výpůjčka
    start_date: date | None = None
    end_date: date | None = None
    # údržba může začít rovnou jako IN_PROGRESS
    status: RequestStatus = RequestStatus.PENDING


class TransitionRequest(BaseModel):
    status: RequestStatus
    notes: str | None = None
    calibration: CalibrationCompletion | None = None
    maintenance: MaintenanceCompletion | None = None


class RequestResponse(BaseModel):
    id: str
    kind: WorkflowKind
    item_serial: str
    user_id: int
    status: RequestStatus
    notes: str | None
    created_at: datetime
    updated_at: datetime
    # kalibrace
    calibration_date: date | None = None
    valid_until: date | None = None
    certificate_number: str | None = None
    # výpůjčka / údržba
    start_date: datetime | date | None = None
    end_date: datetime | date | None = None
    return_date: datetime | None = None
    csr_number: str | None = None
    tcr_number: str | None = None

    model_config = {"from_attributes": True}


class StatusLogResponse(BaseModel):
    id: int
    status: RequestStatus
    user_id: int
    notes: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
