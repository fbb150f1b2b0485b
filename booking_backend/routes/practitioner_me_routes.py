from datetime import datetime, time

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from booking_backend.auth.dependencies import require_role
from booking_backend.auth.roles import Actor, Role
from booking_backend.core import config
from booking_backend.database import ensure_database_ready, get_db
from booking_backend.routes.schemas import ReservationResponse, ScheduleResponse
from booking_backend.services import practitioners, schedules

router = APIRouter(tags=['practitioner-self'])

require_practitioner = require_role(Role.PRACTITIONER)


class CreateScheduleRequest(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time
    slot_duration_minutes: int | None = Field(
        default=None,
        ge=config.MIN_SLOT_DURATION_MINUTES,
        le=config.MAX_SLOT_DURATION_MINUTES,
    )


class UpdateScheduleRequest(BaseModel):
    day_of_week: int | None = Field(default=None, ge=0, le=6)
    start_time: time | None = None
    end_time: time | None = None
    slot_duration_minutes: int | None = Field(
        default=None,
        ge=config.MIN_SLOT_DURATION_MINUTES,
        le=config.MAX_SLOT_DURATION_MINUTES,
    )


class ReservationStatsResponse(BaseModel):
    total: int
    cancelled: int
    completed: int


@router.get('/reservations', response_model=list[ReservationResponse])
def list_my_reservations(
    start_from: datetime | None = Query(default=None, alias='from'),
    end_to: datetime | None = Query(default=None, alias='to'),
    actor: Actor = Depends(require_practitioner),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    return practitioners.list_own_reservations(db, actor, start_from=start_from, end_to=end_to)


@router.post('/schedules', response_model=ScheduleResponse, status_code=status.HTTP_201_CREATED)
def create_schedule(
    data: CreateScheduleRequest,
    actor: Actor = Depends(require_practitioner),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    return schedules.create_schedule(
        db,
        actor,
        day_of_week=data.day_of_week,
        start_time=data.start_time,
        end_time=data.end_time,
        slot_duration_minutes=data.slot_duration_minutes,
    )


@router.put('/schedules/{schedule_id}', response_model=ScheduleResponse)
def update_schedule(
    schedule_id: int,
    data: UpdateScheduleRequest,
    actor: Actor = Depends(require_practitioner),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    return schedules.update_schedule(db, actor, schedule_id, data.model_dump(exclude_unset=True))


@router.get('/stats', response_model=ReservationStatsResponse)
def get_my_stats(
    actor: Actor = Depends(require_practitioner),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    return practitioners.reservation_stats(db, actor)
