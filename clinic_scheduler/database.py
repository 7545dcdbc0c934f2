import logging
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from clinic_scheduler.core import config


logger = logging.getLogger(__name__)

connect_args = {'check_same_thread': False} if config.DATABASE_URL.startswith('sqlite') else {}
engine = create_engine(config.DATABASE_URL, echo=config.SQL_ECHO, connect_args=connect_args)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_appointment_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_appointment_schema(bind=None) -> None:
    """Add the appointment indexes to a table that was created without them.

    Most importantly this backfills the partial unique index that stops two
    active bookings from claiming the same practitioner, day and start time.
    """
    global _appointment_schema_checked

    bind = bind or engine

    if _appointment_schema_checked and bind is engine:
        return

    with _schema_lock:
        if _appointment_schema_checked and bind is engine:
            return

        inspector = inspect(bind)

        if 'appointments' not in inspector.get_table_names():
            if bind is engine:
                _appointment_schema_checked = True
            return

        logger.info('Ensuring appointment indexes')
        with bind.begin() as connection:
            connection.execute(
                text(
                    'CREATE INDEX IF NOT EXISTS idx_appointments_practitioner_day '
                    'ON appointments(practitioner_id, appointment_date)'
                )
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_created_at ON appointments(created_at)')
            )
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_active_slot '
                    'ON appointments(practitioner_id, appointment_date, start_time) '
                    "WHERE status != 'Cancelled'"
                )
            )

        if bind is engine:
            _appointment_schema_checked = True


def init_db(bind=None) -> None:
    from clinic_scheduler.models import appointment, practitioner  # noqa: F401

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    ensure_appointment_schema(bind)
