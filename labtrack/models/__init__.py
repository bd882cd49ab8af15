from labtrack.models.user import User, Role
from labtrack.models.item import Item, ItemStatus
from labtrack.models.requests import (
    WorkflowKind, RequestStatus,
    Calibration, CalibrationStatusLog,
    Rental, RentalStatusLog,
    Maintenance, MaintenanceStatusLog,
)
from labtrack.models.documents import (
    DocumentType, DocumentSequence,
    CalibrationCertificate, GasCalibrationEntry, TestResultEntry,
    ServiceReport, ServiceReportPart, TechnicalReport, TechnicalReportPart,
)
from labtrack.models.history import ItemHistory, HistoryAction, ActivityLog
from labtrack.models.reminder import (
    Reminder, ReminderType, ReminderStatus, Notification, NotificationType,
)

__all__ = [
    "User", "Role", "Item", "ItemStatus",
    "WorkflowKind", "RequestStatus",
    "Calibration", "CalibrationStatusLog", "Rental", "RentalStatusLog",
    "Maintenance", "MaintenanceStatusLog",
    "DocumentType", "DocumentSequence",
    "CalibrationCertificate", "GasCalibrationEntry", "TestResultEntry",
    "ServiceReport", "ServiceReportPart", "TechnicalReport", "TechnicalReportPart",
    "ItemHistory", "HistoryAction", "ActivityLog",
    "Reminder", "ReminderType", "ReminderStatus", "Notification", "NotificationType",
]
