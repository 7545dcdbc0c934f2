"""Human-readable, date-scoped record identifiers.

``APT-YYMMDD-NNN`` numbers appointments created on one day and
``DR-YY-MM-NNNN`` numbers practitioners registered in one month. The
sequence number is one more than the records already created in the
window, so it is best-effort: two concurrent writers can compute the same
number. The unique constraint on the code column catches that and
:func:`insert_with_identifier` retries with a fresh count.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from clinic_scheduler.core import config
from clinic_scheduler.core.errors import ConcurrencyConflictError
from clinic_scheduler.stores.appointment_store import count_created_in_window

logger = logging.getLogger(__name__)

DAILY = 'daily'
MONTHLY = 'monthly'


def day_window(moment: datetime) -> tuple[datetime, datetime]:
    start = datetime(moment.year, moment.month, moment.day)
    return start, start + timedelta(days=1)


def month_window(moment: datetime) -> tuple[datetime, datetime]:
    start = datetime(moment.year, moment.month, 1)
    if moment.month == 12:
        return start, datetime(moment.year + 1, 1, 1)
    return start, datetime(moment.year, moment.month + 1, 1)


def format_daily_identifier(prefix: str, moment: datetime, sequence: int) -> str:
    return f'{prefix}-{moment:%y%m%d}-{sequence:03d}'


def format_monthly_identifier(prefix: str, moment: datetime, sequence: int) -> str:
    return f'{prefix}-{moment:%y}-{moment:%m}-{sequence:04d}'


SCOPES = {
    DAILY: (day_window, format_daily_identifier),
    MONTHLY: (month_window, format_monthly_identifier),
}


def next_identifier(db: Session, model, prefix: str, scope: str, now: datetime | None = None, skip: int = 0) -> str:
    now = now or datetime.now()
    window, formatter = SCOPES[scope]
    window_start, window_end = window(now)
    count = count_created_in_window(db, window_start, window_end, model=model)
    return formatter(prefix, now, count + 1 + skip)


def identifier_taken(db: Session, code_column, code: str) -> bool:
    return db.query(code_column).filter(code_column == code).first() is not None


def insert_with_identifier(
    db: Session,
    model,
    code_column,
    prefix: str,
    scope: str,
    insert: Callable[[str], object],
    now: datetime | None = None,
):
    """Call ``insert(code)`` with successive candidate codes until one sticks.

    A ``ConcurrencyConflictError`` that is not caused by the code itself
    (for example the active-slot index) is re-raised immediately.
    """
    for attempt in range(config.ID_ASSIGNMENT_MAX_ATTEMPTS):
        code = next_identifier(db, model, prefix, scope, now=now, skip=attempt)
        try:
            return insert(code)
        except ConcurrencyConflictError:
            if not identifier_taken(db, code_column, code):
                raise
            logger.warning('Identifier %s already taken, retrying (attempt %d)', code, attempt + 1)

    raise ConcurrencyConflictError(
        f'Could not assign a unique {prefix} identifier after {config.ID_ASSIGNMENT_MAX_ATTEMPTS} attempts.'
    )
