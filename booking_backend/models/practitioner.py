"""Practitioner profile model definitions."""

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from booking_backend.database import Base
from booking_backend.models import clinic, schedule, user  # noqa: F401


class PractitionerProfile(Base):
    """Links a practitioner user to their clinic and weekly schedules."""
    __tablename__ = "practitioner_profiles"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id"))
    specialty = Column(String)
    bio = Column(String)

    user = relationship("User")
    clinic = relationship("Clinic")
    schedules = relationship("Schedule", order_by="Schedule.id")
