"""Seed script: naplní DB ukázkovými daty."""
import os
import sys
from datetime import date, datetime, timedelta, timezone

# Ensure we're in the project root
sys.path.insert(0, os.path.dirname(__file__))

from labtrack.database import Base, engine, SessionLocal
from labtrack.identity import Actor
import labtrack.models  # noqa: F401, registers all models
from labtrack.models.item import Item
from labtrack.models.requests import WorkflowKind, RequestStatus
from labtrack.models.user import User, Role
from labtrack.schemas.documents import CalibrationCompletion, GasEntry, TestEntry
from labtrack.schemas.requests import RequestCreate, TransitionRequest
from labtrack.services import request_service
from labtrack.services.user_service import hash_password


def seed():
    os.makedirs("data", exist_ok=True)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    users = [
        ("admin", "admin@labtrack.local", "admin123", Role.admin),
        ("technik", "technik@labtrack.local", "technik123", Role.manager),
        ("zakaznik", "zakaznik@labtrack.local", "zakaznik123", Role.user),
    ]
    for username, email, password, role in users:
        if not db.query(User).filter_by(username=username).first():
            db.add(User(username=username, email=email, hashed_password=hash_password(password), role=role.value))

    items = [
        ("SN-100", "Detektor plynů Dräger X-am 5000", "Detekce plynů"),
        ("SN-200", "Multimetr Fluke 87V", "Měřicí technika"),
        ("SN-300", "Kalibrátor tlaku Beamex MC6", "Kalibrátory"),
        ("SN-400", "Detektor H2S BW Clip", "Detekce plynů"),
    ]
    existing = {i.serial_number for i in db.query(Item).all()}
    for serial, name, category in items:
        if serial not in existing:
            db.add(Item(serial_number=serial, name=name, category=category))
    db.commit()

    admin = db.query(User).filter_by(username="admin").first()
    customer = db.query(User).filter_by(username="zakaznik").first()
    admin_actor = Actor(actor_id=admin.id, role=admin.role)
    customer_actor = Actor(actor_id=customer.id, role=customer.role)

    # Ukázková dokončená kalibrace
    if not db.query(labtrack.models.Calibration).first():
        now = datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)
        calibration = request_service.create_request(
            db, WorkflowKind.calibration, RequestCreate(item_serial="SN-100", notes="Roční kalibrace"),
            customer_actor, now,
        )
        request_service.transition(
            db, WorkflowKind.calibration, calibration.id, admin_actor,
            TransitionRequest(status=RequestStatus.APPROVED), now,
        )
        request_service.transition(
            db, WorkflowKind.calibration, calibration.id, admin_actor,
            TransitionRequest(
                status=RequestStatus.COMPLETED,
                calibration=CalibrationCompletion(
                    calibration_date=date(2025, 1, 10),
                    valid_until=date(2025, 7, 10),
                    approved_by="admin",
                    gas_entries=[
                        GasEntry(gas_type="CH4", gas_concentration="2.5 %", gas_balance="Air", gas_batch_number="B-1"),
                        GasEntry(gas_type="H2S", gas_concentration="25 ppm", gas_balance="N2", gas_batch_number="B-2"),
                    ],
                    test_entries=[TestEntry(test_sensor="CH4", test_span="2.5 %")],
                ),
            ),
            now,
        )

    # Otevřená výpůjčka
    if not db.query(labtrack.models.Rental).first():
        now = datetime.now(timezone.utc)
        rental = request_service.create_request(
            db, WorkflowKind.rental,
            RequestCreate(item_serial="SN-200", end_date=now.date() + timedelta(days=14)),
            customer_actor, now,
        )
        request_service.transition(
            db, WorkflowKind.rental, rental.id, admin_actor, TransitionRequest(status=RequestStatus.APPROVED), now,
        )

    db.close()
    print("✅ Seed dokončen!")


if __name__ == "__main__":
    seed()
