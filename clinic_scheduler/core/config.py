import logging
import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}

APP_ENV = os.getenv("APP_ENV", "development")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinic_scheduler.db")
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

DEFAULT_SLOT_MINUTES = int(os.getenv("DEFAULT_SLOT_MINUTES", "30"))

APPOINTMENT_ID_PREFIX = os.getenv("APPOINTMENT_ID_PREFIX", "APT")
PRACTITIONER_ID_PREFIX = os.getenv("PRACTITIONER_ID_PREFIX", "DR")
ID_ASSIGNMENT_MAX_ATTEMPTS = int(os.getenv("ID_ASSIGNMENT_MAX_ATTEMPTS", "5"))

STRICT_STATUS_TRANSITIONS = _get_bool(os.getenv("STRICT_STATUS_TRANSITIONS"), default=False)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def configure_logging() -> None:
    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def validate_runtime_config() -> None:
    if DEFAULT_SLOT_MINUTES <= 0:
        raise RuntimeError("DEFAULT_SLOT_MINUTES must be a positive number of minutes.")
    if ID_ASSIGNMENT_MAX_ATTEMPTS <= 0:
        raise RuntimeError("ID_ASSIGNMENT_MAX_ATTEMPTS must be at least 1.")
    if APP_ENV.lower() == "production" and DATABASE_URL.startswith("sqlite"):
        raise RuntimeError("DATABASE_URL must point at a server database in production.")
