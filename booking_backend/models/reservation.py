"""Reservation model definitions."""

import enum

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from booking_backend.database import Base


class ReservationStatus(str, enum.Enum):
    BOOKED = "booked"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Only these statuses hold time on a practitioner's calendar.
OCCUPYING_STATUSES = (ReservationStatus.BOOKED.value, ReservationStatus.CONFIRMED.value)


class Reservation(Base):
    """A booked interval [start_datetime, end_datetime) in naive UTC."""
    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("start_datetime < end_datetime", name="ck_reservations_window"),
    )

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    practitioner_id = Column(Integer, ForeignKey("practitioner_profiles.id"), nullable=False)
    clinic_id = Column(Integer, ForeignKey("clinics.id"))
    start_datetime = Column(DateTime, nullable=False)
    end_datetime = Column(DateTime, nullable=False)
    status = Column(String, nullable=False, default=ReservationStatus.BOOKED.value)
    patient_notes = Column(String)
    created_at = Column(DateTime)
    updated_at = Column(DateTime)
