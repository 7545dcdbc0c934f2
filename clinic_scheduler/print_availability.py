"""Print a practitioner's free slots for one day as JSON.

Usage:
    python -m clinic_scheduler.print_availability DR-26-10-0001 2026-10-19
"""
import sys
from datetime import date

from clinic_scheduler.core import config
from clinic_scheduler.core.errors import SchedulingError
from clinic_scheduler.database import SessionLocal, init_db
from clinic_scheduler.scheduling.availability import resolve_availability


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 2:
        print(__doc__.strip(), file=sys.stderr)
        return 2

    practitioner_id, raw_date = args
    try:
        day = date.fromisoformat(raw_date)
    except ValueError:
        print(f"Invalid date {raw_date!r}; expected YYYY-MM-DD.", file=sys.stderr)
        return 1

    config.configure_logging()
    config.validate_runtime_config()
    init_db()

    db = SessionLocal()
    try:
        availability = resolve_availability(db, practitioner_id, day)
    except SchedulingError as exc:
        print(exc.detail, file=sys.stderr)
        return 1
    finally:
        db.close()

    print(availability.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
