from typing import Any

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from coachbook.auth.dependencies import get_current_actor, get_db, get_settings
from coachbook.core.config import Settings
from coachbook.core.timeutils import parse_calendar_date, parse_instant
from coachbook.repositories.appointment_repository import AppointmentRepository
from coachbook.schemas.appointments import (
    AppointmentEnvelope,
    AppointmentListResponse,
    AppointmentResponse,
    AvailabilityResponse,
    MessageResponse,
    PageRequest,
    StatsResponse,
    TimeIntervalResponse,
    parse_list_filter,
)
from coachbook.services.appointment_service import AppointmentService
from coachbook.services.authorization import Actor
from coachbook.services.stats import StatsWindow

router = APIRouter(tags=['appointments'])


def get_appointment_service(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AppointmentService:
    return AppointmentService(AppointmentRepository(db), settings.timezone)


@router.get('', response_model=AppointmentListResponse)
def list_appointments(
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    appointment_status: str | None = Query(default=None, alias='status'),
    appointment_type: str | None = Query(default=None, alias='type'),
    student_id: str | None = Query(default=None, alias='studentId'),
    instructor_id: str | None = Query(default=None, alias='instructorId'),
    start_date: str | None = Query(default=None, alias='startDate'),
    end_date: str | None = Query(default=None, alias='endDate'),
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    page_request = PageRequest.from_query(page, limit)
    appointment_filter = parse_list_filter(
        service.reference_tz,
        status=appointment_status,
        appointment_type=appointment_type,
        student_id=student_id,
        instructor_id=instructor_id,
        start_date=start_date,
        end_date=end_date,
    )

    appointments, total = service.list_appointments(actor, appointment_filter, page_request)

    return AppointmentListResponse(
        appointments=[AppointmentResponse.model_validate(appointment) for appointment in appointments],
        pagination=page_request.pagination(total),
    )


@router.get('/stats', response_model=StatsResponse)
def get_stats(
    start_date: str | None = Query(default=None, alias='startDate'),
    end_date: str | None = Query(default=None, alias='endDate'),
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    window = StatsWindow(
        start=parse_instant(start_date, service.reference_tz, 'startDate'),
        end=parse_instant(end_date, service.reference_tz, 'endDate'),
    )
    stats = service.stats(actor, window)

    return StatsResponse(
        total=stats.total,
        scheduled=stats.scheduled,
        completed=stats.completed,
        cancelled=stats.cancelled,
        no_show=stats.no_show,
        attendance_rate=stats.attendance_rate,
    )


@router.get('/availability/{instructor_id}', response_model=AvailabilityResponse)
def get_availability(
    instructor_id: str,
    day: str | None = Query(default=None, alias='date'),
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    intervals = service.availability(instructor_id, parse_calendar_date(day))

    return AvailabilityResponse(
        appointments=[
            TimeIntervalResponse(start_time=interval.start_time, end_time=interval.end_time)
            for interval in intervals
        ]
    )


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(
    appointment_id: str,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentResponse.model_validate(service.get_by_id(actor, appointment_id))


@router.post('', response_model=AppointmentEnvelope, status_code=status.HTTP_201_CREATED)
def create_appointment(
    payload: Any = Body(default=None),
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.create(actor, payload if isinstance(payload, dict) else {})

    return AppointmentEnvelope(
        message='Appointment created successfully',
        appointment=AppointmentResponse.model_validate(appointment),
    )


@router.put('/{appointment_id}', response_model=AppointmentEnvelope)
@router.patch('/{appointment_id}', response_model=AppointmentEnvelope)
def update_appointment(
    appointment_id: str,
    payload: Any = Body(default=None),
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.update(actor, appointment_id, payload if isinstance(payload, dict) else {})

    return AppointmentEnvelope(
        message='Appointment updated successfully',
        appointment=AppointmentResponse.model_validate(appointment),
    )


@router.delete('/{appointment_id}', response_model=MessageResponse)
def delete_appointment(
    appointment_id: str,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    service.delete(actor, appointment_id)

    return MessageResponse(message='Appointment deleted successfully')
