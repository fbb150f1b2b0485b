"""User model definitions."""

from sqlalchemy import Column, Integer, String
from booking_backend.database import Base


class User(Base):
    """Represents an authenticated account."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True)
    first_name = Column(String)
    last_name = Column(String)
    phone = Column(String)
    role = Column(String, nullable=False, default="patient")  # patient/practitioner/admin
