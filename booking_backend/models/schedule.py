"""Schedule model definitions."""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Time
from booking_backend.database import Base


class Schedule(Base):
    """A recurring weekly window; day_of_week is 0=Sunday..6=Saturday."""
    __tablename__ = "schedules"
    __table_args__ = (
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_schedules_day_of_week"),
        CheckConstraint("start_time < end_time", name="ck_schedules_window"),
        CheckConstraint("slot_duration_minutes > 0", name="ck_schedules_slot_duration"),
    )

    id = Column(Integer, primary_key=True)
    practitioner_id = Column(Integer, ForeignKey("practitioner_profiles.id"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    slot_duration_minutes = Column(Integer, nullable=False, default=15)
