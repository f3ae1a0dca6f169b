from datetime import date, datetime, timezone
from types import SimpleNamespace
from zoneinfo import ZoneInfo

from coachbook.services.availability import OccupiedInterval, occupied_intervals

JUNE_FIRST = date(2024, 6, 1)


def _appointment(start_time: datetime, end_time: datetime, instructor_id: str = 'instructor-a', status: str = 'scheduled'):
    return SimpleNamespace(
        id=f'{instructor_id}-{start_time.isoformat()}',
        instructor_id=instructor_id,
        start_time=start_time,
        end_time=end_time,
        status=status,
    )


def test_occupied_intervals_keeps_both_day_edges_and_excludes_next_midnight() -> None:
    first_instant = datetime(2024, 6, 1, 0, 0, tzinfo=timezone.utc)
    last_instant = datetime(2024, 6, 1, 23, 59, 59, 999000, tzinfo=timezone.utc)
    next_midnight = datetime(2024, 6, 2, 0, 0, tzinfo=timezone.utc)
    appointments = [
        _appointment(next_midnight, datetime(2024, 6, 2, 1, 0, tzinfo=timezone.utc)),
        _appointment(last_instant, datetime(2024, 6, 2, 0, 30, tzinfo=timezone.utc)),
        _appointment(first_instant, datetime(2024, 6, 1, 1, 0, tzinfo=timezone.utc)),
    ]

    intervals = occupied_intervals('instructor-a', JUNE_FIRST, appointments, timezone.utc)

    assert [interval.start_time for interval in intervals] == [first_instant, last_instant]


def test_occupied_intervals_filters_status_and_instructor() -> None:
    ten = datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)
    eleven = datetime(2024, 6, 1, 11, 0, tzinfo=timezone.utc)
    appointments = [
        _appointment(ten, eleven, status='cancelled'),
        _appointment(ten, eleven, instructor_id='instructor-b'),
        _appointment(ten, eleven),
    ]

    assert occupied_intervals('instructor-a', JUNE_FIRST, appointments, timezone.utc) == [
        OccupiedInterval(start_time=ten, end_time=eleven)
    ]


def test_occupied_intervals_returns_empty_list_for_free_day() -> None:
    assert occupied_intervals('instructor-a', JUNE_FIRST, [], timezone.utc) == []


def test_occupied_intervals_uses_reference_timezone_for_day_boundaries() -> None:
    sao_paulo = ZoneInfo('America/Sao_Paulo')
    # 01:00 UTC on June 2nd is still June 1st, 22:00 in Sao Paulo.
    late_evening = datetime(2024, 6, 2, 1, 0, tzinfo=timezone.utc)
    early_morning_utc = datetime(2024, 6, 1, 2, 0, tzinfo=timezone.utc)
    appointments = [
        _appointment(late_evening, datetime(2024, 6, 2, 2, 0, tzinfo=timezone.utc)),
        _appointment(early_morning_utc, datetime(2024, 6, 1, 3, 0, tzinfo=timezone.utc)),
    ]

    intervals = occupied_intervals('instructor-a', JUNE_FIRST, appointments, sao_paulo)

    assert [interval.start_time for interval in intervals] == [late_evening]
