from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from booking_backend.core import config
from booking_backend.database import ensure_database_ready, get_db
from booking_backend.routes.schemas import AvailabilityResponse, PractitionerResponse
from booking_backend.services import practitioners
from booking_backend.services.availability import compute_availability

router = APIRouter(tags=['practitioners'])
dev_router = APIRouter(tags=['dev'])


@router.get('/{practitioner_id}', response_model=PractitionerResponse)
def get_practitioner(practitioner_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()
    return practitioners.get_practitioner(db, practitioner_id)


@router.get('/{practitioner_id}/availability', response_model=AvailabilityResponse)
def get_availability(
    practitioner_id: int,
    date: date = Query(...),
    slot_minutes: int | None = Query(default=None),
    offset: int = Query(default=0),
    limit: int | None = Query(default=None),
    utc_offset: int = Query(default=0, description='Display shift in minutes; not timezone-aware.'),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    return compute_availability(
        db,
        practitioner_id,
        date,
        slot_minutes=slot_minutes,
        offset=offset,
        limit=limit,
        utc_offset_minutes=utc_offset,
    )


if config.ENABLE_DEV_SEED:
    @dev_router.post('/seed-practitioner', status_code=status.HTTP_201_CREATED)
    def seed_practitioner(db: Session = Depends(get_db)):
        ensure_database_ready()
        profile = practitioners.seed_dev_practitioner(db)
        return {'user_id': profile.user_id, 'profile_id': profile.id}
