from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel, Field, model_validator


class GasEntry(BaseModel):
    gas_type: str = Field(..., min_length=1, max_length=128)
    gas_concentration: str = ""
    gas_balance: str = ""
    gas_batch_number: str = ""


class TestEntry(BaseModel):
    test_sensor: str = Field(..., min_length=1, max_length=128)
    test_span: str = ""
    test_result: str = "Pass"


class CalibrationCompletion(BaseModel):
    calibration_date: date
    valid_until: date
    instrument_name: str | None = None
    model_number: str | None = None
    configuration: str | None = None
    approved_by: str | None = None
    gas_entries: list[GasEntry] = []
    test_entries: list[TestEntry] = []

    @model_validator(mode="after")
    def _valid_after_calibration(self):
        if self.valid_until <= self.calibration_date:
            raise ValueError("valid_until musí být po calibration_date")
        return self


class CertificateUpdate(BaseModel):
    """Přegenerování certifikátu, obsah se nahradí celý."""

    instrument_name: str | None = None
    model_number: str | None = None
    configuration: str | None = None
    approved_by: str | None = None
    gas_entries: list[GasEntry] = []
    test_entries: list[TestEntry] = []
    recreate: bool = False


class ServicePart(BaseModel):
    item_number: int = Field(..., ge=1)
    description: str = Field(..., min_length=1, max_length=500)
    sn_pn_old: str | None = None
    sn_pn_new: str | None = None


class TechnicalPart(BaseModel):
    item_number: int = Field(..., ge=1)
    unit_name: str | None = None
    description: str | None = None
    quantity: int = Field(1, ge=1)
    unit_price: Decimal | None = None
    total_price: Decimal | None = None


def _check_unique_positions(parts) -> None:
    numbers = [p.item_number for p in parts]
    if len(numbers) != len(set(numbers)):
        raise ValueError("Čísla položek dílů se nesmí opakovat")


class ServiceReportData(BaseModel):
    customer: str | None = None
    location: str | None = None
    brand: str | None = None
    model: str | None = None
    reason_for_return: str | None = None
    findings: str | None = None
    action: str | None = None
    parts: list[ServicePart] = []

    @model_validator(mode="after")
    def _unique_parts(self):
        _check_unique_positions(self.parts)
        return self


class TechnicalReportData(BaseModel):
    delivery_to: str | None = None
    tech_support: str | None = None
    reason_for_return: str | None = None
    findings: str | None = None
    estimate_work: str | None = None
    parts: list[TechnicalPart] = []

    @model_validator(mode="after")
    def _unique_parts(self):
        _check_unique_positions(self.parts)
        return self


class MaintenanceCompletion(BaseModel):
    service_report: ServiceReportData | None = None
    technical_report: TechnicalReportData | None = None


class GasEntryResponse(GasEntry):
    position: int

    model_config = {"from_attributes": True}


class TestEntryResponse(TestEntry):
    position: int

    model_config = {"from_attributes": True}


class CertificateResponse(BaseModel):
    id: int
    calibration_id: str
    number: str
    manufacturer: str | None
    instrument_name: str | None
    model_number: str | None
    configuration: str | None
    approved_by: str | None
    issued_at: datetime
    gas_entries: list[GasEntryResponse]
    test_entries: list[TestEntryResponse]

    model_config = {"from_attributes": True}


class NumberPreview(BaseModel):
    doc_type: str
    number: str
