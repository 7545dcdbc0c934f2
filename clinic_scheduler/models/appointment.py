"""Appointment model definitions."""

import enum
from datetime import datetime

from sqlalchemy import Column, DateTime, Index, Integer, String, Time, text
from clinic_scheduler.database import Base


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = 'Scheduled'
    COMPLETED = 'Completed'
    CANCELLED = 'Cancelled'
    NO_SHOW = 'No-Show'


ACTIVE_STATUS_FILTER = text("status != 'Cancelled'")


class Appointment(Base):
    """Represents a booking of a practitioner's time on one calendar day."""
    __tablename__ = "appointments"
    __table_args__ = (
        Index('idx_appointments_practitioner_day', 'practitioner_id', 'appointment_date'),
        Index('idx_appointments_created_at', 'created_at'),
        # Only one active booking may start at a given minute for a practitioner and day.
        Index(
            'uq_appointments_active_slot',
            'practitioner_id',
            'appointment_date',
            'start_time',
            unique=True,
            sqlite_where=ACTIVE_STATUS_FILTER,
            postgresql_where=ACTIVE_STATUS_FILTER,
        ),
    )

    id = Column(Integer, primary_key=True)
    appointment_id = Column(String, unique=True, nullable=False)
    practitioner_id = Column(String, nullable=False)
    patient_ref = Column(String, nullable=False)
    department = Column(String)
    appointment_date = Column(DateTime, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    status = Column(String, nullable=False, default=AppointmentStatus.SCHEDULED.value)
    notes = Column(String)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
