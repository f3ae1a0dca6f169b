"""
Appointment statistics.

A window is an inclusive range on start time. `compute_stats` is the in-memory
form of the contract; `AppointmentService.stats` pushes the same window down to
the repository as `start_from`/`start_to` and hands the per-status counts to
`stats_from_counts`, so both paths share the rate and total rules.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Mapping

from coachbook.models.appointment import AppointmentStatus
from coachbook.services.conflicts import SlotLike


@dataclass(frozen=True)
class StatsWindow:
    """Inclusive range on appointment start time; a missing bound is unbounded."""

    start: datetime | None = None
    end: datetime | None = None

    def contains(self, instant: datetime) -> bool:
        if self.start is not None and instant < self.start:
            return False
        if self.end is not None and instant > self.end:
            return False
        return True


@dataclass(frozen=True)
class AppointmentStats:
    total: int
    scheduled: int
    completed: int
    cancelled: int
    no_show: int
    attendance_rate: float


def stats_from_counts(counts: Mapping[str, int]) -> AppointmentStats:
    """Build stats from per-status counts; statuses outside the known four still count towards the total."""
    total = sum(counts.values())
    completed = counts.get(AppointmentStatus.COMPLETED.value, 0)

    return AppointmentStats(
        total=total,
        scheduled=counts.get(AppointmentStatus.SCHEDULED.value, 0),
        completed=completed,
        cancelled=counts.get(AppointmentStatus.CANCELLED.value, 0),
        no_show=counts.get(AppointmentStatus.NO_SHOW.value, 0),
        attendance_rate=(completed / total) * 100 if total > 0 else 0.0,
    )


def compute_stats(window: StatsWindow, appointments: Iterable[SlotLike]) -> AppointmentStats:
    counts: dict[str, int] = {}
    for appointment in appointments:
        if window.contains(appointment.start_time):
            counts[appointment.status] = counts.get(appointment.status, 0) + 1
    return stats_from_counts(counts)
