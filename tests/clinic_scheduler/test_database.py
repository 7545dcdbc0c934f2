from datetime import date, time

import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import sessionmaker

from clinic_scheduler.core.errors import ConcurrencyConflictError
from clinic_scheduler.database import ensure_appointment_schema
from clinic_scheduler.models.appointment import Appointment, AppointmentStatus
from clinic_scheduler.stores.appointment_store import insert_appointment

BARE_APPOINTMENTS_TABLE = '''
CREATE TABLE appointments (
    id INTEGER PRIMARY KEY,
    appointment_id VARCHAR NOT NULL UNIQUE,
    practitioner_id VARCHAR NOT NULL,
    patient_ref VARCHAR NOT NULL,
    department VARCHAR,
    appointment_date DATETIME NOT NULL,
    start_time TIME NOT NULL,
    end_time TIME NOT NULL,
    status VARCHAR NOT NULL,
    notes VARCHAR,
    created_at DATETIME NOT NULL,
    updated_at DATETIME
)
'''


@pytest.fixture
def bare_engine():
    engine = create_engine('sqlite:///:memory:')
    with engine.begin() as connection:
        connection.execute(text(BARE_APPOINTMENTS_TABLE))
    try:
        yield engine
    finally:
        engine.dispose()


def _appointment(code: str, status: AppointmentStatus = AppointmentStatus.SCHEDULED) -> Appointment:
    return Appointment(
        appointment_id=code,
        practitioner_id='DR-26-10-0001',
        patient_ref='PAT-0001',
        appointment_date=date(2026, 10, 19),
        start_time=time(9, 0),
        end_time=time(9, 30),
        status=status.value,
    )


def test_ensure_appointment_schema_backfills_indexes(bare_engine) -> None:
    assert inspect(bare_engine).get_indexes('appointments') == []

    ensure_appointment_schema(bare_engine)

    index_names = {index['name'] for index in inspect(bare_engine).get_indexes('appointments')}
    assert {
        'idx_appointments_practitioner_day',
        'idx_appointments_created_at',
        'uq_appointments_active_slot',
    } <= index_names


def test_backfilled_index_rejects_second_active_booking_for_same_start(bare_engine) -> None:
    ensure_appointment_schema(bare_engine)
    db = sessionmaker(autocommit=False, autoflush=False, bind=bare_engine)()
    try:
        insert_appointment(db, _appointment('APT-261019-001'))
        # Cancelled rows are outside the partial index.
        insert_appointment(db, _appointment('APT-261019-002', AppointmentStatus.CANCELLED))

        with pytest.raises(ConcurrencyConflictError):
            insert_appointment(db, _appointment('APT-261019-003'))
    finally:
        db.close()


def test_ensure_appointment_schema_ignores_missing_table() -> None:
    engine = create_engine('sqlite:///:memory:')

    ensure_appointment_schema(engine)

    assert inspect(engine).get_table_names() == []
