"""
Slot conflict detection.

Two appointments conflict when they belong to the same instructor, are both
scheduled and start at exactly the same instant. Overlapping intervals with
different start instants are allowed.
"""

from datetime import datetime
from typing import Iterable, Protocol

from coachbook.models.appointment import AppointmentStatus
from coachbook.repositories.appointment_repository import AppointmentFilter, AppointmentRepository


class SlotLike(Protocol):
    id: str
    instructor_id: str
    start_time: datetime
    status: str


def has_conflict(
    instructor_id: str,
    proposed_start: datetime,
    candidate_status: str,
    existing: Iterable[SlotLike],
) -> bool:
    if candidate_status != AppointmentStatus.SCHEDULED.value:
        return False

    return any(
        slot.instructor_id == instructor_id
        and slot.status == AppointmentStatus.SCHEDULED.value
        and slot.start_time == proposed_start
        for slot in existing
    )


class SlotConflictChecker:
    def __init__(self, repository: AppointmentRepository):
        self.repository = repository

    def find_conflict(
        self,
        instructor_id: str,
        proposed_start: datetime,
        candidate_status: str = AppointmentStatus.SCHEDULED.value,
        exclude_id: str | None = None,
    ) -> SlotLike | None:
        """Look up a scheduled slot of the instructor at ``proposed_start``."""
        if candidate_status != AppointmentStatus.SCHEDULED.value:
            return None

        existing = self.repository.find_first(
            AppointmentFilter(
                instructor_id=instructor_id,
                status=AppointmentStatus.SCHEDULED.value,
                start_time=proposed_start,
                exclude_id=exclude_id,
            )
        )
        if existing is not None and has_conflict(instructor_id, proposed_start, candidate_status, [existing]):
            return existing
        return None
