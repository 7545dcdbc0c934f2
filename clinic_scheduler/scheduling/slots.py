"""Fixed-length slot generation over a working window."""

from collections.abc import Iterator
from dataclasses import dataclass

from clinic_scheduler.core import config
from clinic_scheduler.core.errors import ValidationError
from clinic_scheduler.scheduling.intervals import TimeInterval, TimeOfDay


@dataclass(frozen=True)
class SlotSequence:
    """Every whole slot of ``slot_minutes`` that fits inside ``window``.

    Iterating the sequence again starts over from the beginning of the window.
    """

    window: TimeInterval
    slot_minutes: int = config.DEFAULT_SLOT_MINUTES

    def __post_init__(self) -> None:
        if self.slot_minutes <= 0:
            raise ValidationError('Slot length must be a positive number of minutes.')

    def __iter__(self) -> Iterator[TimeInterval]:
        slot_start = self.window.start.minutes
        # A trailing partial slot is never emitted.
        while slot_start + self.slot_minutes <= self.window.end.minutes:
            yield TimeInterval(TimeOfDay(slot_start), TimeOfDay(slot_start + self.slot_minutes))
            slot_start += self.slot_minutes

    def __len__(self) -> int:
        return self.window.duration_minutes // self.slot_minutes

    def starts(self) -> list[TimeOfDay]:
        return [slot.start for slot in self]


def generate_slots(window: TimeInterval, slot_minutes: int | None = None) -> SlotSequence:
    return SlotSequence(window, config.DEFAULT_SLOT_MINUTES if slot_minutes is None else slot_minutes)
