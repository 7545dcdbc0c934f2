from datetime import date, datetime, time

from pydantic import BaseModel, field_validator

from clinic_scheduler.core.errors import ValidationError as SchedulingValidationError
from clinic_scheduler.models.appointment import AppointmentStatus
from clinic_scheduler.scheduling.intervals import TimeInterval, TimeOfDay

WEEKDAYS = ('Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday')
MAX_APPOINTMENT_NOTES_LENGTH = 600


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def _normalize_hhmm(value: str) -> str:
    try:
        return str(TimeOfDay.parse(value))
    except SchedulingValidationError as exc:
        raise ValueError(exc.detail) from exc


def normalize_working_days(value) -> frozenset[str]:
    if isinstance(value, str):
        value = [part for part in value.split(',') if part.strip()]

    normalized = set()
    for day in value:
        day_name = day.strip().capitalize()
        if day_name not in WEEKDAYS:
            raise ValueError(f'Unknown weekday: {day!r}.')
        normalized.add(day_name)

    return frozenset(normalized)


def normalize_reference(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError('Reference is required.')
    return normalized


def normalize_notes(value: str | None) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
        raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

    return normalized


def _normalize_day(value):
    if isinstance(value, datetime):
        return value.date()
    return value


class PractitionerCalendar(BaseModel):
    practitioner_id: str
    name: str
    department: str | None = None
    working_days: frozenset[str]
    work_start: time
    work_end: time

    @field_validator('working_days', mode='before')
    @classmethod
    def validate_working_days(cls, value) -> frozenset[str]:
        return normalize_working_days(value)

    @property
    def working_window(self) -> TimeInterval:
        return TimeInterval.between(self.work_start, self.work_end)

    def works_on(self, day: date) -> bool:
        return weekday_name(day) in self.working_days


class BookingRequest(BaseModel):
    practitioner_id: str
    patient_ref: str
    appointment_date: date
    start_time: str
    end_time: str
    department: str | None = None
    notes: str | None = None

    @field_validator('practitioner_id', 'patient_ref')
    @classmethod
    def validate_reference(cls, value: str) -> str:
        return normalize_reference(value)

    @field_validator('appointment_date', mode='before')
    @classmethod
    def validate_appointment_date(cls, value):
        return _normalize_day(value)

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _normalize_hhmm(value)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return normalize_notes(value)

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval.between(self.start_time, self.end_time)


class BookingUpdate(BaseModel):
    practitioner_id: str | None = None
    appointment_date: date | None = None
    start_time: str | None = None
    end_time: str | None = None
    status: AppointmentStatus | None = None
    notes: str | None = None

    @field_validator('appointment_date', mode='before')
    @classmethod
    def validate_appointment_date(cls, value):
        return _normalize_day(value)

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_time(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _normalize_hhmm(value)

    @field_validator('practitioner_id')
    @classmethod
    def validate_reference(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return normalize_reference(value)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return normalize_notes(value)


class AvailabilityResponse(BaseModel):
    available: bool
    practitioner_id: str
    practitioner_name: str | None = None
    department: str | None = None
    date: date
    working_hours: str | None = None
    free_slots: list[str] = []
    reason: str | None = None
