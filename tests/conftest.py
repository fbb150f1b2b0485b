import itertools
import os
from datetime import datetime, time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite://')

from booking_backend.auth.roles import Actor, Role  # noqa: E402
from booking_backend.database import Base  # noqa: E402
from booking_backend.models.clinic import Clinic  # noqa: E402
from booking_backend.models.practitioner import PractitionerProfile  # noqa: E402
from booking_backend.models.reservation import Reservation  # noqa: E402
from booking_backend.models.schedule import Schedule  # noqa: E402
from booking_backend.models.user import User  # noqa: E402

_user_numbers = itertools.count(1)


class Seeder:
    def __init__(self, db):
        self.db = db

    def user(self, role: str = 'patient', email: str | None = None) -> User:
        user = User(email=email or f'user{next(_user_numbers)}@example.com', role=role)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def actor(self, user: User) -> Actor:
        return Actor(user_id=user.id, role=Role(user.role))

    def practitioner(self, clinic_id: int | None = None) -> PractitionerProfile:
        user = self.user(role='practitioner')
        profile = PractitionerProfile(user_id=user.id, specialty='General', clinic_id=clinic_id)
        self.db.add(profile)
        self.db.commit()
        self.db.refresh(profile)
        return profile

    def clinic(self, name: str = 'Downtown') -> Clinic:
        clinic = Clinic(name=name, city='Springfield')
        self.db.add(clinic)
        self.db.commit()
        self.db.refresh(clinic)
        return clinic

    def schedule(
        self,
        practitioner_id: int,
        day_of_week: int,
        start_time: time,
        end_time: time,
        slot_duration_minutes: int = 15,
    ) -> Schedule:
        schedule = Schedule(
            practitioner_id=practitioner_id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            slot_duration_minutes=slot_duration_minutes,
        )
        self.db.add(schedule)
        self.db.commit()
        self.db.refresh(schedule)
        return schedule

    def reservation(
        self,
        practitioner_id: int,
        patient_id: int,
        start: datetime,
        end: datetime,
        status: str = 'booked',
    ) -> Reservation:
        reservation = Reservation(
            practitioner_id=practitioner_id,
            patient_id=patient_id,
            start_datetime=start,
            end_datetime=end,
            status=status,
        )
        self.db.add(reservation)
        self.db.commit()
        self.db.refresh(reservation)
        return reservation


@pytest.fixture
def session_factory(tmp_path):
    # File-backed so worker threads share one database.
    engine = create_engine(
        f'sqlite:///{tmp_path / "booking.db"}',
        connect_args={'check_same_thread': False},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seed(db) -> Seeder:
    return Seeder(db)
