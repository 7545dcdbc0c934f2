"""Create and update bookings.

Each write runs lookup -> validate -> write while holding the practitioner's
lock, and the store's partial unique index rejects an active booking that
still slips through with the same start time.
"""

import logging
from datetime import datetime

import pydantic
from sqlalchemy.orm import Session

from clinic_scheduler.core import config
from clinic_scheduler.core.errors import ValidationError
from clinic_scheduler.models.appointment import Appointment, AppointmentStatus
from clinic_scheduler.schemas import BookingRequest, BookingUpdate
from clinic_scheduler.scheduling import identifiers
from clinic_scheduler.scheduling.conflicts import ensure_bookable, needs_revalidation
from clinic_scheduler.scheduling.intervals import TimeInterval, TimeOfDay
from clinic_scheduler.scheduling.lifecycle import ACTIVE_STATUSES, check_transition, parse_status
from clinic_scheduler.scheduling.locks import practitioner_lock
from clinic_scheduler.stores.appointment_store import get_appointment, insert_appointment, update_appointment
from clinic_scheduler.stores.practitioner_directory import get_practitioner

logger = logging.getLogger(__name__)


def _coerce(schema, data):
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except pydantic.ValidationError as exc:
        messages = '; '.join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise ValidationError(messages) from exc


def create_booking(db: Session, request: BookingRequest | dict, now: datetime | None = None) -> Appointment:
    request = _coerce(BookingRequest, request)
    interval = request.interval
    created_at = now or datetime.now()

    # Unknown practitioners are rejected before a lock is registered for them.
    get_practitioner(db, request.practitioner_id)

    with practitioner_lock(request.practitioner_id):
        practitioner = ensure_bookable(
            db,
            request.practitioner_id,
            request.appointment_date,
            interval.start,
            interval.end,
        )

        def insert(code: str) -> Appointment:
            appointment = Appointment(
                appointment_id=code,
                practitioner_id=request.practitioner_id,
                patient_ref=request.patient_ref,
                department=request.department or practitioner.department,
                appointment_date=request.appointment_date,
                start_time=interval.start.to_time(),
                end_time=interval.end.to_time(),
                status=AppointmentStatus.SCHEDULED.value,
                notes=request.notes,
                created_at=created_at,
            )
            return insert_appointment(db, appointment)

        appointment = identifiers.insert_with_identifier(
            db,
            model=Appointment,
            code_column=Appointment.appointment_id,
            prefix=config.APPOINTMENT_ID_PREFIX,
            scope=identifiers.DAILY,
            insert=insert,
            now=created_at,
        )

    logger.info(
        'Booked %s: %s on %s %s',
        appointment.appointment_id,
        appointment.practitioner_id,
        request.appointment_date,
        interval,
    )
    return appointment


def update_booking(db: Session, booking_id: int, changes: BookingUpdate | dict) -> Appointment:
    """Apply ``changes`` to a booking.

    Conflict validation only runs when the booking moves (practitioner, day,
    start or end differ from the stored values) or leaves ``Cancelled``;
    otherwise it would collide with itself.
    """
    changes = _coerce(BookingUpdate, changes)
    appointment = get_appointment(db, booking_id)

    practitioner_id = changes.practitioner_id or appointment.practitioner_id
    day = changes.appointment_date or appointment.appointment_date.date()
    start = TimeOfDay.parse(changes.start_time) if changes.start_time else TimeOfDay.from_time(appointment.start_time)
    end = TimeOfDay.parse(changes.end_time) if changes.end_time else TimeOfDay.from_time(appointment.end_time)
    interval = TimeInterval(start, end)

    current_status = parse_status(appointment.status)
    new_status = changes.status or current_status
    check_transition(current_status, new_status)

    values = changes.model_dump(exclude_unset=True, exclude_none=True)
    values.update(
        practitioner_id=practitioner_id,
        appointment_date=day,
        start_time=start.to_time(),
        end_time=end.to_time(),
        status=new_status.value,
    )

    moved = needs_revalidation(appointment, practitioner_id, day, start, end)
    reactivated = current_status not in ACTIVE_STATUSES and new_status in ACTIVE_STATUSES

    if practitioner_id != appointment.practitioner_id:
        get_practitioner(db, practitioner_id)

    with practitioner_lock(practitioner_id):
        if new_status in ACTIVE_STATUSES and (moved or reactivated):
            ensure_bookable(db, practitioner_id, day, start, end, exclude_id=appointment.id)
        appointment = update_appointment(db, booking_id, values)

    logger.info('Updated %s (moved=%s, status=%s)', appointment.appointment_id, moved, new_status.value)
    return appointment
