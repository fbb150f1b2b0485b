from datetime import date, datetime, time

from pydantic import BaseModel, field_validator

from booking_backend.core.clock import as_utc


class SlotResponse(BaseModel):
    start: datetime
    end: datetime

    class Config:
        from_attributes = True


class AvailabilityResponse(BaseModel):
    date: date
    slots: list[SlotResponse]
    total: int
    offset: int
    limit: int | None = None

    class Config:
        from_attributes = True


class ScheduleResponse(BaseModel):
    id: int
    practitioner_id: int
    day_of_week: int
    start_time: time
    end_time: time
    slot_duration_minutes: int

    class Config:
        from_attributes = True


class ClinicResponse(BaseModel):
    id: int
    name: str
    address: str | None = None
    city: str | None = None

    class Config:
        from_attributes = True


class PractitionerUserResponse(BaseModel):
    id: int
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None

    class Config:
        from_attributes = True


class PractitionerResponse(BaseModel):
    id: int
    user_id: int
    specialty: str | None = None
    bio: str | None = None
    clinic: ClinicResponse | None = None
    user: PractitionerUserResponse | None = None
    schedules: list[ScheduleResponse] = []

    class Config:
        from_attributes = True


class ReservationResponse(BaseModel):
    id: int
    patient_id: int
    practitioner_id: int
    clinic_id: int | None = None
    start_datetime: datetime
    end_datetime: datetime
    status: str
    patient_notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True

    @field_validator('start_datetime', 'end_datetime', 'created_at', 'updated_at')
    @classmethod
    def mark_utc(cls, value: datetime | None) -> datetime | None:
        # Stored naive; every stored timestamp is UTC.
        return as_utc(value) if value is not None else None
