"""Clinic model definitions."""

from sqlalchemy import Column, Integer, String
from booking_backend.database import Base


class Clinic(Base):
    """Represents a physical location a reservation may reference."""
    __tablename__ = "clinics"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    address = Column(String)
    city = Column(String)
