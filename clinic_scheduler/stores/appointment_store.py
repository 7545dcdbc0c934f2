"""SQLAlchemy-backed Appointment Store.

Bookings are bucketed by calendar day: ``appointment_date`` always holds
midnight of the booked day and queries are bounded by ``[day_start,
next_day_start)``.
"""

import logging
from datetime import date, datetime, timedelta

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_scheduler.core.errors import (
    DATABASE_UNAVAILABLE_DETAIL,
    ConcurrencyConflictError,
    NotFoundError,
    StoreUnavailableError,
)
from clinic_scheduler.models.appointment import Appointment, AppointmentStatus
from clinic_scheduler.scheduling.intervals import TimeInterval

logger = logging.getLogger(__name__)


def normalize_day(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        value = value.date()
    return datetime.combine(value, datetime.min.time())


def day_bounds(value: date | datetime) -> tuple[datetime, datetime]:
    day_start = normalize_day(value)
    return day_start, day_start + timedelta(days=1)


def _active_on_day(query, practitioner_id: str, day: date | datetime):
    day_start, day_end = day_bounds(day)
    return query.filter(
        Appointment.practitioner_id == practitioner_id,
        Appointment.appointment_date >= day_start,
        Appointment.appointment_date < day_end,
        Appointment.status != AppointmentStatus.CANCELLED.value,
    )


def get_appointment(db: Session, booking_id: int) -> Appointment:
    try:
        appointment = db.query(Appointment).filter(Appointment.id == booking_id).first()
    except SQLAlchemyError as exc:
        logger.exception('Failed to load appointment %s', booking_id)
        raise StoreUnavailableError(DATABASE_UNAVAILABLE_DETAIL) from exc

    if appointment is None:
        raise NotFoundError('Appointment not found.')

    return appointment


def query_active_by_practitioner_and_day(db: Session, practitioner_id: str, day: date | datetime) -> list[Appointment]:
    try:
        return _active_on_day(db.query(Appointment), practitioner_id, day).order_by(
            Appointment.start_time.asc()
        ).all()
    except SQLAlchemyError as exc:
        logger.exception('Failed to query appointments for %s on %s', practitioner_id, day)
        raise StoreUnavailableError(DATABASE_UNAVAILABLE_DETAIL) from exc


def count_active_overlap(
    db: Session,
    practitioner_id: str,
    day: date | datetime,
    interval: TimeInterval,
    exclude_id: int | None = None,
) -> int:
    # Same strict rule as intervals.overlaps: start < other.end AND other.start < end.
    query = _active_on_day(db.query(func.count(Appointment.id)), practitioner_id, day).filter(
        Appointment.start_time < interval.end.to_time(),
        Appointment.end_time > interval.start.to_time(),
    )
    if exclude_id is not None:
        query = query.filter(Appointment.id != exclude_id)

    try:
        return query.scalar() or 0
    except SQLAlchemyError as exc:
        logger.exception('Failed to count overlapping appointments for %s on %s', practitioner_id, day)
        raise StoreUnavailableError(DATABASE_UNAVAILABLE_DETAIL) from exc


def count_created_in_window(db: Session, window_start: datetime, window_end: datetime, model=Appointment) -> int:
    try:
        return db.query(func.count(model.id)).filter(
            model.created_at >= window_start,
            model.created_at < window_end,
        ).scalar() or 0
    except SQLAlchemyError as exc:
        logger.exception('Failed to count %s rows created in window', model.__tablename__)
        raise StoreUnavailableError(DATABASE_UNAVAILABLE_DETAIL) from exc


def commit_or_raise(db: Session, instance, action: str):
    """Commit the pending unit of work and refresh ``instance``.

    A uniqueness violation becomes ``ConcurrencyConflictError``; any other
    database failure becomes ``StoreUnavailableError``. The session is rolled
    back in both cases.
    """
    try:
        db.commit()
        db.refresh(instance)
        return instance
    except IntegrityError as exc:
        db.rollback()
        logger.info('Uniqueness violation while trying to %s: %s', action, exc.orig)
        raise ConcurrencyConflictError(
            'Another request changed this schedule at the same time. Please retry the booking.'
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Database failure while trying to %s', action)
        raise StoreUnavailableError(DATABASE_UNAVAILABLE_DETAIL) from exc


def insert_appointment(db: Session, appointment: Appointment) -> Appointment:
    appointment.appointment_date = normalize_day(appointment.appointment_date)
    db.add(appointment)
    return commit_or_raise(db, appointment, 'insert appointment')


def update_appointment(db: Session, booking_id: int, changes: dict) -> Appointment:
    appointment = get_appointment(db, booking_id)

    for field, value in changes.items():
        if field == 'appointment_date':
            value = normalize_day(value)
        setattr(appointment, field, value)

    return commit_or_raise(db, appointment, f'update appointment {booking_id}')
