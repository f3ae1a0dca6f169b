from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


Base = declarative_base()

_schema_lock = Lock()
_appointment_schema_checked: set[str] = set()


def create_db_engine(database_url: str) -> Engine:
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)

    connect_args = {"check_same_thread": False}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
    return create_engine(database_url, connect_args=connect_args)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def ensure_appointment_schema(engine: Engine) -> None:
    """Bring an existing appointments table up to the current column and index set."""
    engine_key = str(engine.url)

    if engine_key in _appointment_schema_checked:
        return

    with _schema_lock:
        if engine_key in _appointment_schema_checked:
            return

        inspector = inspect(engine)

        if 'appointments' not in inspector.get_table_names():
            _appointment_schema_checked.add(engine_key)
            return

        existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
        migration_steps = [
            ('appointment_type', "ALTER TABLE appointments ADD COLUMN appointment_type VARCHAR(20) DEFAULT 'other'"),
            ('notes', 'ALTER TABLE appointments ADD COLUMN notes VARCHAR(600)'),
            ('created_at', 'ALTER TABLE appointments ADD COLUMN created_at TIMESTAMP'),
            ('updated_at', 'ALTER TABLE appointments ADD COLUMN updated_at TIMESTAMP'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_instructor_start_scheduled '
                    "ON appointments(instructor_id, start_time) WHERE status = 'scheduled'"
                )
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_instructor_start ON appointments(instructor_id, start_time)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_status_start ON appointments(status, start_time)')
            )

        _appointment_schema_checked.add(engine_key)
