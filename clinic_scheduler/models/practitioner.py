"""Practitioner model definitions."""

from datetime import datetime, time

from sqlalchemy import Column, DateTime, Integer, String, Time
from clinic_scheduler.database import Base


class Practitioner(Base):
    """A practitioner and the weekly calendar they accept bookings on."""
    __tablename__ = "practitioners"

    id = Column(Integer, primary_key=True)
    practitioner_id = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    department = Column(String)
    working_days = Column(String, nullable=False, default='')  # "Monday,Tuesday"
    work_start = Column(Time, nullable=False, default=time(9, 0))
    work_end = Column(Time, nullable=False, default=time(17, 0))
    created_at = Column(DateTime, nullable=False, default=datetime.now, index=True)
