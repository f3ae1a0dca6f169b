from dataclasses import dataclass
from datetime import datetime, tzinfo
from math import ceil
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from coachbook.core.exceptions import ValidationException
from coachbook.core.timeutils import parse_instant
from coachbook.models.appointment import MAX_APPOINTMENT_NOTES_LENGTH, AppointmentStatus, AppointmentType
from coachbook.repositories.appointment_repository import AppointmentFilter

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
# Largest OFFSET/LIMIT the supported databases bind (signed 64-bit).
MAX_SQL_INTEGER = 2**63 - 1


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _normalize_choice(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


def _normalize_notes(value: str | None) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > MAX_APPOINTMENT_NOTES_LENGTH:
        raise ValueError(f'Notes must be {MAX_APPOINTMENT_NOTES_LENGTH} characters or fewer.')

    return normalized


class AppointmentCreate(CamelModel):
    instructor_id: str
    student_id: str
    start_time: datetime
    end_time: datetime
    appointment_type: AppointmentType = Field(alias='type')
    notes: str | None = None

    @field_validator('instructor_id', 'student_id')
    @classmethod
    def validate_participant_id(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Participant id is required.')
        return normalized

    @field_validator('appointment_type', mode='before')
    @classmethod
    def normalize_appointment_type(cls, value: Any) -> Any:
        return _normalize_choice(value)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _normalize_notes(value)


class AppointmentUpdate(CamelModel):
    instructor_id: str | None = None
    student_id: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    appointment_type: AppointmentType | None = Field(default=None, alias='type')
    status: AppointmentStatus | None = None
    notes: str | None = None

    @field_validator('instructor_id', 'student_id')
    @classmethod
    def validate_participant_id(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if not normalized:
            raise ValueError('Participant id cannot be blank.')
        return normalized

    @field_validator('appointment_type', 'status', mode='before')
    @classmethod
    def normalize_choices(cls, value: Any) -> Any:
        return _normalize_choice(value)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _normalize_notes(value)

    @model_validator(mode='after')
    def reject_null_required_fields(self) -> 'AppointmentUpdate':
        for field_name in self.model_fields_set:
            if field_name != 'notes' and getattr(self, field_name) is None:
                raise ValueError(f'{to_camel(field_name)} cannot be null.')
        return self


class UserSummary(CamelModel):
    id: str
    name: str | None = None
    email: str | None = None
    phone: str | None = None


class AppointmentResponse(CamelModel):
    id: str
    instructor_id: str
    student_id: str
    start_time: datetime
    end_time: datetime
    status: str
    appointment_type: str = Field(alias='type')
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    student: UserSummary | None = None
    instructor: UserSummary | None = None


class PaginationResponse(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


class AppointmentListResponse(CamelModel):
    appointments: list[AppointmentResponse]
    pagination: PaginationResponse


class AppointmentEnvelope(CamelModel):
    message: str
    appointment: AppointmentResponse


class MessageResponse(CamelModel):
    message: str


class TimeIntervalResponse(CamelModel):
    start_time: datetime
    end_time: datetime


class AvailabilityResponse(CamelModel):
    appointments: list[TimeIntervalResponse]


class StatsResponse(CamelModel):
    total: int
    scheduled: int
    completed: int
    cancelled: int
    no_show: int
    attendance_rate: float


def parse_positive_int(value: Any, default: int, maximum: int = MAX_SQL_INTEGER) -> int:
    if isinstance(value, bool):
        return default
    try:
        parsed = int(str(value).strip()) if value is not None else default
    except ValueError:
        return default
    return parsed if 0 < parsed <= maximum else default


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_PAGE_SIZE

    @classmethod
    def from_query(cls, page: Any = None, limit: Any = None) -> 'PageRequest':
        page_number = parse_positive_int(page, DEFAULT_PAGE)
        page_size = parse_positive_int(limit, DEFAULT_PAGE_SIZE)
        if (page_number - 1) * page_size > MAX_SQL_INTEGER:
            page_number = DEFAULT_PAGE
        return cls(page=page_number, limit=page_size)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def pagination(self, total: int) -> PaginationResponse:
        return PaginationResponse(page=self.page, limit=self.limit, total=total, pages=ceil(total / self.limit))


def _parse_choice(value: str | None, choices: type[AppointmentStatus] | type[AppointmentType], field_name: str) -> str | None:
    if value is None or not value.strip():
        return None

    normalized = value.strip().lower()
    allowed = [choice.value for choice in choices]
    if normalized not in allowed:
        raise ValidationException(
            f'Invalid {field_name} filter',
            details={field_name: f'Expected one of: {", ".join(allowed)}.'},
        )
    return normalized


def _blank_to_none(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value.strip()


def parse_list_filter(
    reference_tz: tzinfo,
    status: str | None = None,
    appointment_type: str | None = None,
    student_id: str | None = None,
    instructor_id: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> AppointmentFilter:
    """Turn loosely typed query parameters into a validated filter."""
    return AppointmentFilter(
        status=_parse_choice(status, AppointmentStatus, 'status'),
        appointment_type=_parse_choice(appointment_type, AppointmentType, 'type'),
        student_id=_blank_to_none(student_id),
        instructor_id=_blank_to_none(instructor_id),
        start_from=parse_instant(start_date, reference_tz, 'startDate'),
        start_to=parse_instant(end_date, reference_tz, 'endDate'),
    )
