"""Appointment model definitions."""

import enum
import uuid

from sqlalchemy import Column, ForeignKey, Index, String, text
from sqlalchemy.orm import relationship

from coachbook.database import Base
from coachbook.models.types import UTCDateTime, utc_now
from coachbook.models.user import User

MAX_APPOINTMENT_NOTES_LENGTH = 600


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class AppointmentType(str, enum.Enum):
    TRAINING = "training"
    EVALUATION = "evaluation"
    CONSULTATION = "consultation"
    FOLLOW_UP = "follow_up"
    OTHER = "other"


class Appointment(Base):
    """Represents a booked slot between an instructor and a student."""
    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    instructor_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    student_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    start_time = Column(UTCDateTime, nullable=False)
    end_time = Column(UTCDateTime, nullable=False)
    status = Column(String(20), nullable=False, default=AppointmentStatus.SCHEDULED.value)
    appointment_type = Column(String(20), nullable=False, default=AppointmentType.OTHER.value)
    notes = Column(String(MAX_APPOINTMENT_NOTES_LENGTH))
    created_at = Column(UTCDateTime, default=utc_now)
    updated_at = Column(UTCDateTime, default=utc_now, onupdate=utc_now)

    student = relationship(User, foreign_keys=[student_id], lazy="joined")
    instructor = relationship(User, foreign_keys=[instructor_id], lazy="joined")


# Backs the one-scheduled-appointment-per-instructor-instant rule under concurrent writes.
Index(
    "uq_appointments_instructor_start_scheduled",
    Appointment.instructor_id,
    Appointment.start_time,
    unique=True,
    sqlite_where=text("status = 'scheduled'"),
    postgresql_where=text("status = 'scheduled'"),
)

Index("idx_appointments_instructor_start", Appointment.instructor_id, Appointment.start_time)
Index("idx_appointments_status_start", Appointment.status, Appointment.start_time)
