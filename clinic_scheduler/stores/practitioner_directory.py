"""Practitioner Directory backed by the ``practitioners`` table."""

import logging
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_scheduler.core import config
from clinic_scheduler.core.errors import (
    DATABASE_UNAVAILABLE_DETAIL,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from clinic_scheduler.models.practitioner import Practitioner
from clinic_scheduler.schemas import WEEKDAYS, PractitionerCalendar, normalize_working_days
from clinic_scheduler.scheduling import identifiers
from clinic_scheduler.scheduling.intervals import TimeInterval
from clinic_scheduler.stores.appointment_store import commit_or_raise

logger = logging.getLogger(__name__)


def to_calendar(practitioner: Practitioner) -> PractitionerCalendar:
    return PractitionerCalendar(
        practitioner_id=practitioner.practitioner_id,
        name=f'Dr. {practitioner.first_name} {practitioner.last_name}',
        department=practitioner.department,
        working_days=practitioner.working_days or '',
        work_start=practitioner.work_start,
        work_end=practitioner.work_end,
    )


def _find(db: Session, practitioner_id: str) -> Practitioner:
    try:
        practitioner = db.query(Practitioner).filter(Practitioner.practitioner_id == practitioner_id).first()
    except SQLAlchemyError as exc:
        logger.exception('Failed to load practitioner %s', practitioner_id)
        raise StoreUnavailableError(DATABASE_UNAVAILABLE_DETAIL) from exc

    if practitioner is None:
        raise NotFoundError('Doctor not found.')

    return practitioner


def get_practitioner(db: Session, practitioner_id: str) -> PractitionerCalendar:
    return to_calendar(_find(db, practitioner_id))


def _serialize_days(working_days: Iterable[str]) -> str:
    try:
        days = normalize_working_days(list(working_days))
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    return ','.join(day for day in WEEKDAYS if day in days)


def create_practitioner(
    db: Session,
    first_name: str,
    last_name: str,
    working_days: Iterable[str],
    work_start: str = '09:00',
    work_end: str = '17:00',
    department: str | None = None,
    now: datetime | None = None,
) -> PractitionerCalendar:
    """Register a practitioner under a monthly ``DR-YY-MM-NNNN`` code."""
    window = TimeInterval.between(work_start, work_end)
    days = _serialize_days(working_days)
    created_at = now or datetime.now()

    def insert(code: str) -> Practitioner:
        practitioner = Practitioner(
            practitioner_id=code,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            department=department,
            working_days=days,
            work_start=window.start.to_time(),
            work_end=window.end.to_time(),
            created_at=created_at,
        )
        db.add(practitioner)
        return commit_or_raise(db, practitioner, 'insert practitioner')

    practitioner = identifiers.insert_with_identifier(
        db,
        model=Practitioner,
        code_column=Practitioner.practitioner_id,
        prefix=config.PRACTITIONER_ID_PREFIX,
        scope=identifiers.MONTHLY,
        insert=insert,
        now=created_at,
    )
    logger.info('Registered practitioner %s', practitioner.practitioner_id)
    return to_calendar(practitioner)


def set_working_calendar(
    db: Session,
    practitioner_id: str,
    working_days: Iterable[str],
    work_start: str,
    work_end: str,
) -> PractitionerCalendar:
    window = TimeInterval.between(work_start, work_end)
    practitioner = _find(db, practitioner_id)
    practitioner.working_days = _serialize_days(working_days)
    practitioner.work_start = window.start.to_time()
    practitioner.work_end = window.end.to_time()
    return to_calendar(commit_or_raise(db, practitioner, f'update practitioner {practitioner_id}'))
