from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from coachbook.core.exceptions import ValidationException
from coachbook.models.appointment import AppointmentStatus, AppointmentType
from coachbook.schemas.appointments import (
    MAX_SQL_INTEGER,
    AppointmentCreate,
    AppointmentUpdate,
    PageRequest,
    parse_list_filter,
    parse_positive_int,
)


def test_appointment_create_accepts_camel_case_and_normalizes_fields() -> None:
    request = AppointmentCreate.model_validate(
        {
            'instructorId': ' instructor-a ',
            'studentId': 'student-1',
            'startTime': '2024-06-01T10:00:00Z',
            'endTime': '2024-06-01T11:00:00Z',
            'type': ' Follow_Up ',
            'notes': '   ',
        }
    )

    assert request.instructor_id == 'instructor-a'
    assert request.appointment_type is AppointmentType.FOLLOW_UP
    assert request.notes is None


def test_appointment_create_rejects_overlong_notes() -> None:
    with pytest.raises(ValidationError):
        AppointmentCreate.model_validate(
            {
                'instructorId': 'instructor-a',
                'studentId': 'student-1',
                'startTime': '2024-06-01T10:00:00Z',
                'endTime': '2024-06-01T11:00:00Z',
                'type': 'training',
                'notes': 'x' * 601,
            }
        )


def test_appointment_update_tracks_only_supplied_fields() -> None:
    request = AppointmentUpdate.model_validate({'status': 'NO_SHOW', 'notes': None})

    assert request.model_fields_set == {'status', 'notes'}
    assert request.status is AppointmentStatus.NO_SHOW


def test_appointment_update_rejects_blank_participant() -> None:
    with pytest.raises(ValidationError):
        AppointmentUpdate.model_validate({'studentId': '  '})


@pytest.mark.parametrize(
    ('value', 'expected'),
    [
        (None, 10),
        ('3', 3),
        (4, 4),
        ('0', 10),
        ('-2', 10),
        ('abc', 10),
        ('2.5', 10),
        (True, 10),
        ('99999999999999999999', 10),
        (str(MAX_SQL_INTEGER + 1), 10),
        (str(MAX_SQL_INTEGER), MAX_SQL_INTEGER),
    ],
)
def test_parse_positive_int_falls_back_to_default(value, expected: int) -> None:
    assert parse_positive_int(value, 10) == expected


def test_page_request_skip_and_pagination() -> None:
    page_request = PageRequest.from_query('3', '20')

    assert page_request.skip == 40
    assert page_request.pagination(41).pages == 3


def test_page_request_falls_back_to_first_page_when_offset_cannot_be_bound() -> None:
    huge_page = PageRequest.from_query('99999999999999999999')
    overflowing_offset = PageRequest.from_query(str(2**62), '10')

    assert (huge_page.page, huge_page.skip) == (1, 0)
    assert (overflowing_offset.page, overflowing_offset.limit, overflowing_offset.skip) == (1, 10, 0)


def test_parse_list_filter_builds_typed_filter() -> None:
    appointment_filter = parse_list_filter(
        timezone.utc,
        status='Scheduled',
        appointment_type='training',
        student_id=' student-1 ',
        instructor_id='',
        start_date='2024-06-01',
        end_date='2024-06-30T23:59:59Z',
    )

    assert appointment_filter.status == 'scheduled'
    assert appointment_filter.appointment_type == 'training'
    assert appointment_filter.student_id == 'student-1'
    assert appointment_filter.instructor_id is None
    assert appointment_filter.start_from == datetime(2024, 6, 1, tzinfo=timezone.utc)
    assert appointment_filter.start_to == datetime(2024, 6, 30, 23, 59, 59, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    ('kwargs', 'field_name'),
    [
        ({'status': 'archived'}, 'status'),
        ({'appointment_type': 'yoga'}, 'type'),
        ({'start_date': 'last week'}, 'startDate'),
    ],
)
def test_parse_list_filter_rejects_bad_values(kwargs: dict, field_name: str) -> None:
    with pytest.raises(ValidationException) as exception_info:
        parse_list_filter(timezone.utc, **kwargs)

    assert field_name in exception_info.value.details
