"""Time-of-day values and the half-open interval overlap rule.

Every comparison in the scheduler goes through these types so that
``"9:00"`` versus ``"10:00"`` style string comparisons never happen.
"""

import re
from dataclasses import dataclass
from datetime import time

from clinic_scheduler.core.errors import InvalidIntervalError, ValidationError

MINUTES_PER_DAY = 24 * 60

_HHMM_PATTERN = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """Minutes since midnight, 0 through 1439."""

    minutes: int

    def __post_init__(self) -> None:
        if not 0 <= self.minutes < MINUTES_PER_DAY:
            raise ValidationError(f'{self.minutes} is not a valid minute of the day.')

    @classmethod
    def parse(cls, value: str) -> 'TimeOfDay':
        match = _HHMM_PATTERN.match(value.strip()) if isinstance(value, str) else None
        if match is None:
            raise ValidationError(f'Time must be a zero-padded 24-hour "HH:MM" string, got {value!r}.')
        return cls(int(match.group(1)) * 60 + int(match.group(2)))

    @classmethod
    def from_time(cls, value: time) -> 'TimeOfDay':
        return cls(value.hour * 60 + value.minute)

    def to_time(self) -> time:
        return time(self.minutes // 60, self.minutes % 60)

    def __str__(self) -> str:
        return f'{self.minutes // 60:02d}:{self.minutes % 60:02d}'


def as_time_of_day(value: 'TimeOfDay | time | str') -> TimeOfDay:
    if isinstance(value, TimeOfDay):
        return value
    if isinstance(value, time):
        return TimeOfDay.from_time(value)
    return TimeOfDay.parse(value)


@dataclass(frozen=True)
class TimeInterval:
    """A ``[start, end)`` span within one day."""

    start: TimeOfDay
    end: TimeOfDay

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise InvalidIntervalError(f'Start time {self.start} must be before end time {self.end}.')

    @classmethod
    def between(cls, start: 'TimeOfDay | time | str', end: 'TimeOfDay | time | str') -> 'TimeInterval':
        return cls(as_time_of_day(start), as_time_of_day(end))

    @property
    def duration_minutes(self) -> int:
        return self.end.minutes - self.start.minutes

    def overlaps(self, other: 'TimeInterval') -> bool:
        return overlaps(self, other)

    def contains(self, other: 'TimeInterval') -> bool:
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f'{self.start} - {self.end}'


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    # Touching endpoints do not overlap: 09:30-10:00 and 10:00-10:30 are compatible.
    return a.start < b.end and b.start < a.end
