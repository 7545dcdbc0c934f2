"""Booking validation against working hours and existing active bookings."""

import logging
from datetime import date, datetime, time

from sqlalchemy.orm import Session

from clinic_scheduler.core.errors import (
    ConflictError,
    InvalidIntervalError,
    NotFoundError,
    PractitionerUnavailableError,
)
from clinic_scheduler.models.appointment import Appointment
from clinic_scheduler.schemas import PractitionerCalendar, weekday_name
from clinic_scheduler.scheduling.intervals import TimeInterval, TimeOfDay, as_time_of_day
from clinic_scheduler.stores.appointment_store import count_active_overlap, normalize_day
from clinic_scheduler.stores.practitioner_directory import get_practitioner

logger = logging.getLogger(__name__)

TimeLike = TimeOfDay | time | str


def ensure_no_overlap(
    db: Session,
    practitioner_id: str,
    day: date | datetime,
    interval: TimeInterval,
    exclude_id: int | None = None,
) -> None:
    if count_active_overlap(db, practitioner_id, day, interval, exclude_id=exclude_id) > 0:
        raise ConflictError('Requested time overlaps an existing appointment.')


def ensure_bookable(
    db: Session,
    practitioner_id: str,
    day: date | datetime,
    start: TimeLike,
    end: TimeLike,
    exclude_id: int | None = None,
) -> PractitionerCalendar:
    """Raise the reason ``[start, end)`` cannot be booked, if there is one.

    Checks run in order: interval shape, practitioner exists, works that
    weekday, interval inside working hours, no overlapping active booking
    other than ``exclude_id``.
    """
    interval = TimeInterval.between(start, end)
    practitioner = get_practitioner(db, practitioner_id)

    if not practitioner.works_on(day):
        raise PractitionerUnavailableError(
            f'{practitioner.name} does not work on {weekday_name(day)}s.'
        )

    working_window = practitioner.working_window
    if not working_window.contains(interval):
        raise InvalidIntervalError(
            f'Requested time {interval} is outside working hours ({working_window}).'
        )

    ensure_no_overlap(db, practitioner_id, day, interval, exclude_id=exclude_id)
    return practitioner


def validate_booking(
    db: Session,
    practitioner_id: str,
    day: date | datetime,
    start: TimeLike,
    end: TimeLike,
    exclude_id: int | None = None,
) -> bool:
    """Return True when ``[start, end)`` can be booked without a conflict.

    The answer is only meaningful as the immediate precondition of a write;
    it holds no lock and writes nothing.
    """
    try:
        ensure_bookable(db, practitioner_id, day, start, end, exclude_id=exclude_id)
    except (NotFoundError, InvalidIntervalError, ConflictError) as exc:
        logger.info('Rejected %s %s-%s for %s: %s', day, start, end, practitioner_id, exc.detail)
        return False
    return True


def needs_revalidation(
    appointment: Appointment,
    practitioner_id: str,
    day: date | datetime,
    start: TimeLike,
    end: TimeLike,
) -> bool:
    """True when the proposed placement differs from where ``appointment`` sits now."""
    return (
        practitioner_id != appointment.practitioner_id
        or normalize_day(day) != normalize_day(appointment.appointment_date)
        or as_time_of_day(start) != TimeOfDay.from_time(appointment.start_time)
        or as_time_of_day(end) != TimeOfDay.from_time(appointment.end_time)
    )
