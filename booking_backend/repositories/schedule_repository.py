from typing import List, Optional

from sqlalchemy.orm import Session

from booking_backend.models.schedule import Schedule


class ScheduleRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, schedule_id: int) -> Optional[Schedule]:
        return self.db.query(Schedule).filter(Schedule.id == schedule_id).first()

    def find_by_practitioner_and_weekday(self, practitioner_id: int, day_of_week: int) -> List[Schedule]:
        # Insertion order is the emission order for availability.
        return (
            self.db.query(Schedule)
            .filter(
                Schedule.practitioner_id == practitioner_id,
                Schedule.day_of_week == day_of_week,
            )
            .order_by(Schedule.id.asc())
            .all()
        )

    def insert(self, practitioner_id: int, day_of_week: int, start_time, end_time, slot_duration_minutes: int) -> Schedule:
        schedule = Schedule(
            practitioner_id=practitioner_id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            slot_duration_minutes=slot_duration_minutes,
        )
        self.db.add(schedule)
        self.db.flush()
        return schedule

    def update_fields(self, schedule: Schedule, fields: dict) -> Schedule:
        for name, value in fields.items():
            setattr(schedule, name, value)
        self.db.flush()
        return schedule
