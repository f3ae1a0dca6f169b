from datetime import datetime, timedelta, timezone

import pytest

from coachbook.database import Base, create_db_engine, create_session_factory
from coachbook.models.appointment import Appointment
from coachbook.models.user import User, UserRole
from coachbook.repositories.appointment_repository import AppointmentRepository
from coachbook.services.appointment_service import AppointmentService
from coachbook.services.authorization import Actor

ADMIN_ID = 'admin-1'
INSTRUCTOR_A_ID = 'instructor-a'
INSTRUCTOR_B_ID = 'instructor-b'
STUDENT_ID = 'student-1'


@pytest.fixture
def engine():
    engine = create_db_engine('sqlite://')
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db_session(engine):
    db = create_session_factory(engine)()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def users(db_session):
    seeded = [
        User(id=ADMIN_ID, name='Ada Admin', email='admin@example.com', role=UserRole.ADMIN.value),
        User(id=INSTRUCTOR_A_ID, name='Ana Coach', email='ana@example.com', role=UserRole.INSTRUCTOR.value),
        User(id=INSTRUCTOR_B_ID, name='Ben Coach', email='ben@example.com', role=UserRole.INSTRUCTOR.value),
        User(id=STUDENT_ID, name='Sam Student', email='sam@example.com', phone='555-0100', role=UserRole.STUDENT.value),
    ]
    db_session.add_all(seeded)
    db_session.commit()
    return {user.id: user for user in seeded}


@pytest.fixture
def admin() -> Actor:
    return Actor(actor_id=ADMIN_ID, role='admin')


@pytest.fixture
def instructor_a() -> Actor:
    return Actor(actor_id=INSTRUCTOR_A_ID, role='instructor')


@pytest.fixture
def instructor_b() -> Actor:
    return Actor(actor_id=INSTRUCTOR_B_ID, role='instructor')


@pytest.fixture
def repository(db_session) -> AppointmentRepository:
    return AppointmentRepository(db_session)


@pytest.fixture
def service(repository, users) -> AppointmentService:
    return AppointmentService(repository, timezone.utc)


@pytest.fixture
def make_payload():
    def _make_payload(**overrides) -> dict:
        payload = {
            'instructorId': INSTRUCTOR_A_ID,
            'studentId': STUDENT_ID,
            'startTime': '2024-06-01T10:00:00+00:00',
            'endTime': '2024-06-01T11:00:00+00:00',
            'type': 'training',
        }
        payload.update(overrides)
        return payload

    return _make_payload


@pytest.fixture
def seed_appointment(db_session, users):
    def _seed_appointment(
        start_time: datetime,
        instructor_id: str = INSTRUCTOR_A_ID,
        status: str = 'scheduled',
        duration_minutes: int = 60,
    ) -> Appointment:
        appointment = Appointment(
            instructor_id=instructor_id,
            student_id=STUDENT_ID,
            start_time=start_time,
            end_time=start_time + timedelta(minutes=duration_minutes),
            status=status,
            appointment_type='training',
        )
        db_session.add(appointment)
        db_session.commit()
        db_session.refresh(appointment)
        return appointment

    return _seed_appointment
