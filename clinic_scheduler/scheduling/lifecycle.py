"""Appointment status changes.

Status writes are unguarded by default: any status may follow any other,
which lets staff correct a mistaken entry. ``STRICT_STATUS_TRANSITIONS``
switches on :data:`STRICT_TRANSITIONS` instead. Only ``Cancelled`` frees a
booking's interval, so moving a booking out of ``Cancelled`` checks for
overlaps again.
"""

import logging

from sqlalchemy.orm import Session

from clinic_scheduler.core import config
from clinic_scheduler.core.errors import ValidationError
from clinic_scheduler.models.appointment import Appointment, AppointmentStatus
from clinic_scheduler.scheduling.conflicts import ensure_no_overlap
from clinic_scheduler.scheduling.intervals import TimeInterval, TimeOfDay
from clinic_scheduler.scheduling.locks import practitioner_lock
from clinic_scheduler.stores.appointment_store import get_appointment, update_appointment

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = frozenset({
    AppointmentStatus.SCHEDULED,
    AppointmentStatus.COMPLETED,
    AppointmentStatus.NO_SHOW,
})

STRICT_TRANSITIONS = {
    AppointmentStatus.SCHEDULED: frozenset({
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    }),
    AppointmentStatus.CANCELLED: frozenset({AppointmentStatus.SCHEDULED}),
    AppointmentStatus.NO_SHOW: frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.COMPLETED: frozenset(),
}


def parse_status(value: AppointmentStatus | str) -> AppointmentStatus:
    try:
        return AppointmentStatus(value)
    except ValueError as exc:
        allowed = ', '.join(status.value for status in AppointmentStatus)
        raise ValidationError(f'Unknown appointment status {value!r}. Expected one of: {allowed}.') from exc


def is_active(status: AppointmentStatus | str) -> bool:
    return parse_status(status) in ACTIVE_STATUSES


def check_transition(
    current: AppointmentStatus,
    new_status: AppointmentStatus,
    strict: bool | None = None,
) -> None:
    if strict is None:
        strict = config.STRICT_STATUS_TRANSITIONS
    if not strict or current == new_status:
        return
    if new_status not in STRICT_TRANSITIONS[current]:
        raise ValidationError(f'Cannot change status from {current.value} to {new_status.value}.')


def booking_interval(appointment: Appointment) -> TimeInterval:
    return TimeInterval(TimeOfDay.from_time(appointment.start_time), TimeOfDay.from_time(appointment.end_time))


def transition(
    db: Session,
    booking_id: int,
    new_status: AppointmentStatus | str,
    strict: bool | None = None,
) -> Appointment:
    status = parse_status(new_status)
    appointment = get_appointment(db, booking_id)
    current = parse_status(appointment.status)

    check_transition(current, status, strict=strict)
    if status == current:
        return appointment

    with practitioner_lock(appointment.practitioner_id):
        if status in ACTIVE_STATUSES and current not in ACTIVE_STATUSES:
            ensure_no_overlap(
                db,
                appointment.practitioner_id,
                appointment.appointment_date,
                booking_interval(appointment),
                exclude_id=appointment.id,
            )
        appointment = update_appointment(db, booking_id, {'status': status.value})

    logger.info('Appointment %s: %s -> %s', appointment.appointment_id, current.value, status.value)
    return appointment
