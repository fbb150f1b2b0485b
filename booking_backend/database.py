from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from booking_backend.core import config
from booking_backend.core.errors import InternalError


def build_engine(database_url: str):
    connect_args = {}
    if database_url.startswith('sqlite'):
        # Request handlers run on a thread pool.
        connect_args['check_same_thread'] = False
    return create_engine(database_url, connect_args=connect_args)


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_booking_schema_checked = False

BOOKING_INDEXES = {
    'reservations': [
        'CREATE INDEX IF NOT EXISTS idx_reservations_practitioner_window '
        'ON reservations(practitioner_id, start_datetime, end_datetime)',
        'CREATE INDEX IF NOT EXISTS idx_reservations_practitioner_status '
        'ON reservations(practitioner_id, status)',
        'CREATE INDEX IF NOT EXISTS idx_reservations_patient ON reservations(patient_id)',
    ],
    'schedules': [
        'CREATE INDEX IF NOT EXISTS idx_schedules_practitioner_weekday '
        'ON schedules(practitioner_id, day_of_week)',
    ],
}


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_booking_schema(bind=None) -> None:
    global _booking_schema_checked

    if _booking_schema_checked:
        return

    with _schema_lock:
        if _booking_schema_checked:
            return

        bind = bind or engine
        existing_tables = set(inspect(bind).get_table_names())

        with bind.begin() as connection:
            for table_name, statements in BOOKING_INDEXES.items():
                if table_name not in existing_tables:
                    continue
                for statement in statements:
                    connection.execute(text(statement))

        _booking_schema_checked = True


def ensure_database_ready() -> None:
    try:
        ensure_booking_schema()
    except SQLAlchemyError as exc:
        raise InternalError('Database unavailable. Verify DATABASE_URL and credentials.') from exc
