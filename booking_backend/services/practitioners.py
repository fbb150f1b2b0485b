import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking_backend.auth.roles import Actor, Role
from booking_backend.core.clock import Clock, to_utc_naive, utcnow
from booking_backend.core.errors import InternalError, NotFoundError, ValidationError
from booking_backend.models.practitioner import PractitionerProfile
from booking_backend.models.reservation import Reservation, ReservationStatus
from booking_backend.models.user import User
from booking_backend.repositories.practitioner_repository import PractitionerRepository
from booking_backend.repositories.reservation_repository import ReservationRepository
from booking_backend.services.schedules import require_practitioner_profile

logger = logging.getLogger(__name__)


def get_practitioner(db: Session, practitioner_id: int) -> PractitionerProfile:
    try:
        profile = PractitionerRepository(db).get(practitioner_id)
    except SQLAlchemyError as exc:
        logger.exception('Failed to load practitioner %s', practitioner_id)
        raise InternalError() from exc
    if profile is None:
        raise NotFoundError('Practitioner not found.')
    return profile


def list_own_reservations(
    db: Session,
    actor: Actor,
    start_from: Optional[datetime] = None,
    end_to: Optional[datetime] = None,
    clock: Clock = utcnow,
) -> List[Reservation]:
    """Reservations on the caller's calendar.

    Without an explicit ``start_from`` only upcoming reservations (ending
    after now) are returned.
    """
    start_from = to_utc_naive(start_from) if start_from is not None else None
    end_to = to_utc_naive(end_to) if end_to is not None else None
    if start_from is not None and end_to is not None and end_to < start_from:
        raise ValidationError('to must not be before from.')

    try:
        profile = require_practitioner_profile(db, actor)
        return ReservationRepository(db).list_for_practitioner(
            profile.id,
            start_from=start_from,
            end_to=end_to,
            ends_after=clock() if start_from is None else None,
        )
    except SQLAlchemyError as exc:
        logger.exception('Failed to list reservations for user %s', actor.user_id)
        raise InternalError() from exc


def reservation_stats(db: Session, actor: Actor) -> Dict[str, int]:
    try:
        profile = require_practitioner_profile(db, actor)
        counts = ReservationRepository(db).count_by_status(profile.id)
    except SQLAlchemyError as exc:
        logger.exception('Failed to compute stats for user %s', actor.user_id)
        raise InternalError() from exc

    return {
        'total': sum(counts.values()),
        'cancelled': counts.get(ReservationStatus.CANCELLED.value, 0),
        'completed': counts.get(ReservationStatus.COMPLETED.value, 0),
    }


def seed_dev_practitioner(db: Session, clock: Clock = utcnow, specialty: str = 'General') -> PractitionerProfile:
    try:
        user = User(
            email=f'dev_pr_{clock().strftime("%Y%m%d%H%M%S%f")}@example.com',
            role=Role.PRACTITIONER.value,
        )
        db.add(user)
        db.flush()
        profile = PractitionerRepository(db).insert(user_id=user.id, specialty=specialty)
        db.commit()
        db.refresh(profile)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to seed development practitioner')
        raise InternalError() from exc

    logger.info('Seeded development practitioner %s (user %s)', profile.id, profile.user_id)
    return profile
