"""
Data access for appointments.

The repository owns the session-level details (query building, commit,
rollback); services only see plain filters and model instances. Write methods
commit on success and roll back on any SQLAlchemy error before re-raising it.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from coachbook.models.appointment import Appointment

logger = logging.getLogger(__name__)

START_TIME_DESC = "-start_time"
START_TIME_ASC = "start_time"


@dataclass
class AppointmentFilter:
    instructor_id: str | None = None
    student_id: str | None = None
    status: str | None = None
    appointment_type: str | None = None
    start_time: datetime | None = None
    start_from: datetime | None = None
    start_to: datetime | None = None
    exclude_id: str | None = None


class AppointmentRepository:
    def __init__(self, db: Session):
        self.db = db

    def _conditions(self, appointment_filter: AppointmentFilter) -> list[Any]:
        conditions = []
        if appointment_filter.instructor_id is not None:
            conditions.append(Appointment.instructor_id == appointment_filter.instructor_id)
        if appointment_filter.student_id is not None:
            conditions.append(Appointment.student_id == appointment_filter.student_id)
        if appointment_filter.status is not None:
            conditions.append(Appointment.status == appointment_filter.status)
        if appointment_filter.appointment_type is not None:
            conditions.append(Appointment.appointment_type == appointment_filter.appointment_type)
        if appointment_filter.start_time is not None:
            conditions.append(Appointment.start_time == appointment_filter.start_time)
        if appointment_filter.start_from is not None:
            conditions.append(Appointment.start_time >= appointment_filter.start_from)
        if appointment_filter.start_to is not None:
            conditions.append(Appointment.start_time <= appointment_filter.start_to)
        if appointment_filter.exclude_id is not None:
            conditions.append(Appointment.id != appointment_filter.exclude_id)
        return conditions

    def find_many(
        self,
        appointment_filter: AppointmentFilter,
        skip: int = 0,
        take: int | None = None,
        order_by: str = START_TIME_DESC,
    ) -> tuple[list[Appointment], int]:
        conditions = self._conditions(appointment_filter)

        ordering = Appointment.start_time.desc() if order_by == START_TIME_DESC else Appointment.start_time.asc()
        query = self.db.query(Appointment).filter(*conditions).order_by(ordering, Appointment.id.asc())
        if skip:
            query = query.offset(skip)
        if take is not None:
            query = query.limit(take)

        items = query.all()
        total = self.db.query(func.count(Appointment.id)).filter(*conditions).scalar() or 0
        return items, total

    def find_one(self, appointment_id: str) -> Appointment | None:
        return self.db.get(Appointment, appointment_id)

    def find_first(self, appointment_filter: AppointmentFilter) -> Appointment | None:
        return (
            self.db.query(Appointment)
            .filter(*self._conditions(appointment_filter))
            .order_by(Appointment.start_time.asc(), Appointment.id.asc())
            .first()
        )

    def count_by_status(self, appointment_filter: AppointmentFilter) -> dict[str, int]:
        rows = (
            self.db.query(Appointment.status, func.count(Appointment.id))
            .filter(*self._conditions(appointment_filter))
            .group_by(Appointment.status)
            .all()
        )
        return {status: count for status, count in rows}

    def insert(self, data: dict[str, Any]) -> Appointment:
        appointment = Appointment(**data)
        try:
            self.db.add(appointment)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("Appointment write rolled back: %s", exc.__class__.__name__)
            raise
        self.db.refresh(appointment)
        return appointment

    def update(self, appointment_id: str, partial: dict[str, Any]) -> Appointment | None:
        appointment = self.find_one(appointment_id)
        if appointment is None:
            return None

        try:
            for field_name, value in partial.items():
                setattr(appointment, field_name, value)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("Appointment write rolled back: %s", exc.__class__.__name__)
            raise
        self.db.refresh(appointment)
        return appointment

    def delete(self, appointment_id: str) -> bool:
        appointment = self.find_one(appointment_id)
        if appointment is None:
            return False

        try:
            self.db.delete(appointment)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.warning("Appointment write rolled back: %s", exc.__class__.__name__)
            raise
        return True
