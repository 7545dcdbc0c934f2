"""Free/busy view of one practitioner's working day.

A candidate slot counts as booked when an active booking starts exactly at
the slot's start. Bookings that are not aligned to the slot grid still block
conflicting requests in :mod:`clinic_scheduler.scheduling.conflicts` but do
not hide a slot here unless ``hide_overlapping`` is requested.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy.orm import Session

from clinic_scheduler.schemas import AvailabilityResponse, PractitionerCalendar, weekday_name
from clinic_scheduler.scheduling.intervals import TimeInterval, TimeOfDay
from clinic_scheduler.scheduling.slots import generate_slots
from clinic_scheduler.stores.appointment_store import query_active_by_practitioner_and_day
from clinic_scheduler.stores.practitioner_directory import get_practitioner

logger = logging.getLogger(__name__)

FULLY_BOOKED_REASON = 'all slots are booked'
NO_SLOTS_REASON = 'working hours are shorter than one slot'


@dataclass(frozen=True)
class DayCalendarView:
    practitioner: PractitionerCalendar
    date: date
    working_window: TimeInterval
    booked_starts: frozenset[TimeOfDay]
    free_slots: tuple[TimeInterval, ...]
    candidate_count: int


def build_day_view(
    db: Session,
    practitioner: PractitionerCalendar,
    day: date,
    slot_minutes: int | None = None,
    hide_overlapping: bool = False,
) -> DayCalendarView:
    working_window = practitioner.working_window
    candidates = generate_slots(working_window, slot_minutes)

    bookings = query_active_by_practitioner_and_day(db, practitioner.practitioner_id, day)
    booked_intervals = [
        TimeInterval(TimeOfDay.from_time(booking.start_time), TimeOfDay.from_time(booking.end_time))
        for booking in bookings
    ]
    booked_starts = frozenset(interval.start for interval in booked_intervals)

    if hide_overlapping:
        free_slots = tuple(
            slot for slot in candidates
            if not any(slot.overlaps(booked) for booked in booked_intervals)
        )
    else:
        free_slots = tuple(slot for slot in candidates if slot.start not in booked_starts)

    return DayCalendarView(
        practitioner=practitioner,
        date=day,
        working_window=working_window,
        booked_starts=booked_starts,
        free_slots=free_slots,
        candidate_count=len(candidates),
    )


def resolve_availability(
    db: Session,
    practitioner_id: str,
    day: date | datetime,
    slot_minutes: int | None = None,
    hide_overlapping: bool = False,
) -> AvailabilityResponse:
    if isinstance(day, datetime):
        day = day.date()

    practitioner = get_practitioner(db, practitioner_id)

    if not practitioner.works_on(day):
        return AvailabilityResponse(
            available=False,
            practitioner_id=practitioner.practitioner_id,
            practitioner_name=practitioner.name,
            department=practitioner.department,
            date=day,
            free_slots=[],
            reason=f'{practitioner.name} does not work on {weekday_name(day)}s.',
        )

    view = build_day_view(db, practitioner, day, slot_minutes=slot_minutes, hide_overlapping=hide_overlapping)
    free_slots = [str(slot.start) for slot in view.free_slots]
    if free_slots:
        reason = None
    elif view.candidate_count == 0:
        reason = NO_SLOTS_REASON
    else:
        reason = FULLY_BOOKED_REASON
    logger.debug('%s on %s: %d free slots', practitioner_id, day, len(free_slots))

    return AvailabilityResponse(
        available=bool(free_slots),
        practitioner_id=practitioner.practitioner_id,
        practitioner_name=practitioner.name,
        department=practitioner.department,
        date=day,
        working_hours=str(view.working_window),
        free_slots=free_slots,
        reason=reason,
    )
