"""
Appointment orchestration.

Every operation resolves the acting identity, gates it through the
authorization policy, runs the slot conflict check for writes and only then
touches storage. A rejected write never reaches the repository.

The conflict lookup is a fast path: the partial unique index on
(instructor_id, start_time) for scheduled rows is what keeps two concurrent
writers from booking the same instant. A unique violation raised by the store
is reported the same way as a lookup hit.
"""

import enum
import logging
from datetime import date, datetime, tzinfo
from typing import Any, Callable, Mapping

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from coachbook.core.exceptions import ConflictException, ForbiddenException, NotFoundException, ValidationException
from coachbook.core.timeutils import day_bounds, ensure_aware
from coachbook.models.appointment import Appointment, AppointmentStatus
from coachbook.repositories.appointment_repository import (
    START_TIME_ASC,
    START_TIME_DESC,
    AppointmentFilter,
    AppointmentRepository,
)
from coachbook.schemas.appointments import AppointmentCreate, AppointmentUpdate, PageRequest
from coachbook.services.authorization import Action, Actor, policy_for
from coachbook.services.availability import OccupiedInterval, occupied_intervals
from coachbook.services.conflicts import SlotConflictChecker
from coachbook.services.stats import AppointmentStats, StatsWindow, stats_from_counts

logger = logging.getLogger(__name__)

FORBIDDEN_MESSAGES = {
    Action.READ: 'Insufficient permissions to view this appointment',
    Action.CREATE: 'Insufficient permissions to create appointment for another instructor',
    Action.UPDATE: 'Insufficient permissions to edit this appointment',
    Action.DELETE: 'Insufficient permissions to delete this appointment',
}
SLOT_TAKEN_MESSAGE = 'Time slot already booked'
SLOT_TAKEN_DETAILS = {'message': 'The instructor already has an appointment at this time'}
TIME_FIELDS = {'start_time': 'startTime', 'end_time': 'endTime'}


def _validation_details(exc: ValidationError) -> dict[str, str]:
    details: dict[str, str] = {}
    for error in exc.errors():
        location = '.'.join(str(part) for part in error['loc']) or '__root__'
        details.setdefault(location, error['msg'])
    return details


class AppointmentService:
    def __init__(self, repository: AppointmentRepository, reference_tz: tzinfo):
        self.repository = repository
        self.reference_tz = reference_tz
        self.conflict_checker = SlotConflictChecker(repository)

    def _authorize(self, actor: Actor, owner_id: str | None, action: Action) -> None:
        if not policy_for(actor.role).can_access(actor.actor_id, owner_id, action):
            logger.warning('Denied %s on appointment owned by %s for actor %s', action.value, owner_id, actor.actor_id)
            raise ForbiddenException(FORBIDDEN_MESSAGES[action])

    def _get_existing(self, appointment_id: str) -> Appointment:
        appointment = self.repository.find_one(appointment_id)
        if appointment is None:
            raise NotFoundException('Appointment not found')
        return appointment

    def _require_ordered(self, start_time: datetime, end_time: datetime) -> None:
        if start_time >= end_time:
            raise ValidationException(
                'Invalid appointment time range',
                details={'endTime': 'End time must be after start time.'},
            )

    def _ensure_slot_free(
        self,
        instructor_id: str,
        start_time: datetime,
        candidate_status: str,
        exclude_id: str | None = None,
    ) -> None:
        conflict = self.conflict_checker.find_conflict(instructor_id, start_time, candidate_status, exclude_id)
        if conflict is not None:
            logger.warning('Slot %s already booked for instructor %s', start_time.isoformat(), instructor_id)
            raise ConflictException(SLOT_TAKEN_MESSAGE, details=SLOT_TAKEN_DETAILS)

    def _write(
        self,
        operation: Callable[[], Appointment | None],
        instructor_id: str,
        start_time: datetime,
        status: str,
        exclude_id: str | None = None,
    ) -> Appointment | None:
        try:
            return operation()
        except IntegrityError:
            # Lost a race against a concurrent writer for the same slot.
            if self.conflict_checker.find_conflict(instructor_id, start_time, status, exclude_id) is not None:
                logger.warning('Concurrent booking of %s rejected for instructor %s', start_time.isoformat(), instructor_id)
                raise ConflictException(SLOT_TAKEN_MESSAGE, details=SLOT_TAKEN_DETAILS) from None
            raise

    def list_appointments(
        self,
        actor: Actor,
        appointment_filter: AppointmentFilter | None = None,
        page_request: PageRequest | None = None,
    ) -> tuple[list[Appointment], int]:
        appointment_filter = appointment_filter or AppointmentFilter()
        page_request = page_request or PageRequest()

        scope_id = policy_for(actor.role).scope_owner_id(actor.actor_id)
        if scope_id is not None:
            if appointment_filter.instructor_id not in (None, scope_id):
                return [], 0
            appointment_filter.instructor_id = scope_id

        return self.repository.find_many(
            appointment_filter,
            skip=page_request.skip,
            take=page_request.limit,
            order_by=START_TIME_DESC,
        )

    def get_by_id(self, actor: Actor, appointment_id: str) -> Appointment:
        appointment = self._get_existing(appointment_id)
        self._authorize(actor, appointment.instructor_id, Action.READ)
        return appointment

    def create(self, actor: Actor, payload: Mapping[str, Any]) -> Appointment:
        try:
            data = AppointmentCreate.model_validate(payload)
        except ValidationError as exc:
            # Ownership is decided on the raw instructor id whenever one was sent.
            raw_instructor_id = payload.get('instructorId', payload.get('instructor_id')) if isinstance(payload, Mapping) else None
            if isinstance(raw_instructor_id, str):
                self._authorize(actor, raw_instructor_id.strip(), Action.CREATE)
            raise ValidationException('Invalid appointment data', details=_validation_details(exc)) from exc

        self._authorize(actor, data.instructor_id, Action.CREATE)

        start_time = ensure_aware(data.start_time, self.reference_tz, 'startTime')
        end_time = ensure_aware(data.end_time, self.reference_tz, 'endTime')
        self._require_ordered(start_time, end_time)

        status = AppointmentStatus.SCHEDULED.value
        self._ensure_slot_free(data.instructor_id, start_time, status)

        record = {
            'instructor_id': data.instructor_id,
            'student_id': data.student_id,
            'start_time': start_time,
            'end_time': end_time,
            'appointment_type': data.appointment_type.value,
            'notes': data.notes,
            'status': status,
        }
        appointment = self._write(lambda: self.repository.insert(record), data.instructor_id, start_time, status)
        logger.info('Appointment %s created for instructor %s at %s', appointment.id, appointment.instructor_id, start_time.isoformat())
        return appointment

    def update(self, actor: Actor, appointment_id: str, payload: Mapping[str, Any]) -> Appointment:
        existing = self._get_existing(appointment_id)
        self._authorize(actor, existing.instructor_id, Action.UPDATE)

        try:
            data = AppointmentUpdate.model_validate(payload)
        except ValidationError as exc:
            raise ValidationException('Invalid appointment data', details=_validation_details(exc)) from exc

        changes = {
            field_name: value.value if isinstance(value, enum.Enum) else value
            for field_name, value in data.model_dump(exclude_unset=True).items()
        }
        for field_name, wire_name in TIME_FIELDS.items():
            if field_name in changes:
                changes[field_name] = ensure_aware(changes[field_name], self.reference_tz, wire_name)

        instructor_id = changes.get('instructor_id', existing.instructor_id)
        if instructor_id != existing.instructor_id:
            self._authorize(actor, instructor_id, Action.CREATE)

        start_time = changes.get('start_time', existing.start_time)
        end_time = changes.get('end_time', existing.end_time)
        status = changes.get('status', existing.status)
        self._require_ordered(start_time, end_time)

        slot_changed = (
            instructor_id != existing.instructor_id
            or status != existing.status
            or any(field_name in changes for field_name in TIME_FIELDS)
        )
        if slot_changed:
            self._ensure_slot_free(instructor_id, start_time, status, exclude_id=existing.id)

        if not changes:
            return existing

        record_id = existing.id
        appointment = self._write(
            lambda: self.repository.update(record_id, changes),
            instructor_id,
            start_time,
            status,
            exclude_id=record_id,
        )
        if appointment is None:
            raise NotFoundException('Appointment not found')
        logger.info('Appointment %s updated (%s)', record_id, ', '.join(sorted(changes)))
        return appointment

    def delete(self, actor: Actor, appointment_id: str) -> None:
        existing = self._get_existing(appointment_id)
        self._authorize(actor, existing.instructor_id, Action.DELETE)

        self.repository.delete(existing.id)
        logger.info('Appointment %s deleted by %s', existing.id, actor.actor_id)

    def availability(self, instructor_id: str, day: date) -> list[OccupiedInterval]:
        day_start, day_end = day_bounds(day, self.reference_tz)
        appointments, _ = self.repository.find_many(
            AppointmentFilter(
                instructor_id=instructor_id,
                status=AppointmentStatus.SCHEDULED.value,
                start_from=day_start,
                start_to=day_end,
            ),
            order_by=START_TIME_ASC,
        )
        return occupied_intervals(instructor_id, day, appointments, self.reference_tz)

    def stats(self, actor: Actor, window: StatsWindow | None = None) -> AppointmentStats:
        window = window or StatsWindow()
        appointment_filter = AppointmentFilter(
            instructor_id=policy_for(actor.role).scope_owner_id(actor.actor_id),
            start_from=window.start,
            start_to=window.end,
        )
        return stats_from_counts(self.repository.count_by_status(appointment_filter))
