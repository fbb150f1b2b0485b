from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from booking_backend.auth.dependencies import get_current_actor
from booking_backend.auth.roles import Actor
from booking_backend.core import config
from booking_backend.database import ensure_database_ready, get_db
from booking_backend.routes.schemas import ReservationResponse
from booking_backend.services.reservations import ReservationService

router = APIRouter(tags=['reservations'])


class CreateReservationRequest(BaseModel):
    practitioner_id: int = Field(gt=0)
    clinic_id: int | None = Field(default=None, gt=0)
    start_datetime: datetime
    end_datetime: datetime
    patient_notes: str | None = Field(default=None, max_length=config.MAX_PATIENT_NOTES_LENGTH)


class RescheduleReservationRequest(BaseModel):
    start_datetime: datetime
    end_datetime: datetime


def get_reservation_service(db: Session = Depends(get_db)) -> ReservationService:
    return ReservationService(db=db)


@router.post('', response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
def create_reservation(
    data: CreateReservationRequest,
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    ensure_database_ready()
    return service.create_reservation(
        patient_id=actor.user_id,
        practitioner_id=data.practitioner_id,
        start=data.start_datetime,
        end=data.end_datetime,
        clinic_id=data.clinic_id,
        notes=data.patient_notes,
    )


@router.get('/{reservation_id}', response_model=ReservationResponse)
def get_reservation(
    reservation_id: int,
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    ensure_database_ready()
    return service.get_reservation(actor, reservation_id)


@router.put('/{reservation_id}', response_model=ReservationResponse)
def reschedule_reservation(
    reservation_id: int,
    data: RescheduleReservationRequest,
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    ensure_database_ready()
    return service.reschedule_reservation(actor, reservation_id, data.start_datetime, data.end_datetime)


@router.put('/{reservation_id}/cancel', response_model=ReservationResponse)
def cancel_reservation(
    reservation_id: int,
    actor: Actor = Depends(get_current_actor),
    service: ReservationService = Depends(get_reservation_service),
):
    ensure_database_ready()
    return service.cancel_reservation(actor, reservation_id)
