from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from typing import Iterable, Protocol

from coachbook.core.timeutils import day_bounds
from coachbook.models.appointment import AppointmentStatus
from coachbook.services.conflicts import SlotLike


@dataclass(frozen=True)
class OccupiedInterval:
    start_time: datetime
    end_time: datetime


class OccupiedSlot(SlotLike, Protocol):
    end_time: datetime


def occupied_intervals(
    instructor_id: str,
    day: date,
    appointments: Iterable[OccupiedSlot],
    reference_tz: tzinfo,
) -> list[OccupiedInterval]:
    """Scheduled intervals of the instructor starting within ``day``, both day edges inclusive."""
    day_start, day_end = day_bounds(day, reference_tz)

    intervals = [
        OccupiedInterval(start_time=appointment.start_time, end_time=appointment.end_time)
        for appointment in appointments
        if appointment.instructor_id == instructor_id
        and appointment.status == AppointmentStatus.SCHEDULED.value
        and day_start <= appointment.start_time <= day_end
    ]
    intervals.sort(key=lambda interval: (interval.start_time, interval.end_time))
    return intervals
