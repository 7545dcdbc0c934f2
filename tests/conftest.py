import os
from datetime import date, datetime, time
from itertools import count

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')

from clinic_scheduler.database import Base, init_db  # noqa: E402
from clinic_scheduler.models.appointment import Appointment, AppointmentStatus  # noqa: E402
from clinic_scheduler.stores.appointment_store import insert_appointment  # noqa: E402
from clinic_scheduler.stores.practitioner_directory import create_practitioner  # noqa: E402

MONDAY = date(2026, 10, 19)
SUNDAY = date(2026, 10, 18)


@pytest.fixture
def scheduling_db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    init_db(engine)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def doctor(scheduling_db):
    return create_practitioner(
        scheduling_db,
        first_name='Ada',
        last_name='Okafor',
        working_days=['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday'],
        work_start='09:00',
        work_end='17:00',
        department='Cardiology',
        now=datetime(2026, 10, 1, 8, 0),
    )


@pytest.fixture
def make_booking(scheduling_db):
    sequence = count(1)

    def _make_booking(
        practitioner_id: str,
        start: time,
        end: time,
        day: date = MONDAY,
        status: AppointmentStatus = AppointmentStatus.SCHEDULED,
    ) -> Appointment:
        appointment = Appointment(
            appointment_id=f'TEST-{next(sequence):03d}',
            practitioner_id=practitioner_id,
            patient_ref='PAT-0001',
            appointment_date=day,
            start_time=start,
            end_time=end,
            status=status.value,
        )
        return insert_appointment(scheduling_db, appointment)

    return _make_booking
