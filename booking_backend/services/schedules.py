import logging
from datetime import time, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking_backend.auth.roles import Actor, owns_schedule
from booking_backend.core import config
from booking_backend.core.errors import BookingError, ForbiddenError, InternalError, NotFoundError, ValidationError
from booking_backend.models.practitioner import PractitionerProfile
from booking_backend.models.schedule import Schedule
from booking_backend.repositories.practitioner_repository import PractitionerRepository
from booking_backend.repositories.schedule_repository import ScheduleRepository

logger = logging.getLogger(__name__)

SCHEDULE_FIELDS = ('day_of_week', 'start_time', 'end_time', 'slot_duration_minutes')


def normalize_time_of_day(value: time) -> time:
    if value.tzinfo is not None:
        offset = value.utcoffset()
        if offset is not None and offset != timedelta(0):
            raise ValidationError('Schedule times must be given in UTC.')
    return value.replace(tzinfo=None)


def validate_day_of_week(day_of_week: int) -> None:
    if not 0 <= day_of_week <= 6:
        raise ValidationError('day_of_week must be between 0 (Sunday) and 6 (Saturday).')


def validate_slot_duration(slot_duration_minutes: int) -> None:
    if not config.MIN_SLOT_DURATION_MINUTES <= slot_duration_minutes <= config.MAX_SLOT_DURATION_MINUTES:
        raise ValidationError(
            f'slot_duration_minutes must be between {config.MIN_SLOT_DURATION_MINUTES} '
            f'and {config.MAX_SLOT_DURATION_MINUTES}.'
        )


def validate_window(start_time: time, end_time: time) -> None:
    if not start_time < end_time:
        raise ValidationError('start_time must be before end_time.')


def require_practitioner_profile(db: Session, actor: Actor) -> PractitionerProfile:
    profile = PractitionerRepository(db).get_by_user_id(actor.user_id)
    if profile is None:
        raise ForbiddenError('Not practitioner.')
    return profile


def create_schedule(
    db: Session,
    actor: Actor,
    day_of_week: int,
    start_time: time,
    end_time: time,
    slot_duration_minutes: Optional[int] = None,
) -> Schedule:
    if slot_duration_minutes is None:
        slot_duration_minutes = config.DEFAULT_SLOT_DURATION_MINUTES

    start_time = normalize_time_of_day(start_time)
    end_time = normalize_time_of_day(end_time)
    validate_day_of_week(day_of_week)
    validate_window(start_time, end_time)
    validate_slot_duration(slot_duration_minutes)

    try:
        profile = require_practitioner_profile(db, actor)
        schedule = ScheduleRepository(db).insert(
            practitioner_id=profile.id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            slot_duration_minutes=slot_duration_minutes,
        )
        db.commit()
        db.refresh(schedule)
    except BookingError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to create schedule for user %s', actor.user_id)
        raise InternalError() from exc

    logger.info('Created schedule %s for practitioner %s', schedule.id, schedule.practitioner_id)
    return schedule


def update_schedule(db: Session, actor: Actor, schedule_id: int, changes: dict) -> Schedule:
    """Apply a partial update; only keys present in ``changes`` are touched."""
    unknown = set(changes) - set(SCHEDULE_FIELDS)
    if unknown:
        raise ValidationError(f'Unknown schedule fields: {", ".join(sorted(unknown))}.')

    for name, value in changes.items():
        if value is None:
            raise ValidationError(f'{name} cannot be null.')

    changes = dict(changes)
    for name in ('start_time', 'end_time'):
        if name in changes:
            changes[name] = normalize_time_of_day(changes[name])
    if 'day_of_week' in changes:
        validate_day_of_week(changes['day_of_week'])
    if 'slot_duration_minutes' in changes:
        validate_slot_duration(changes['slot_duration_minutes'])

    try:
        profile = require_practitioner_profile(db, actor)
        repo = ScheduleRepository(db)
        schedule = repo.get(schedule_id)
        if schedule is None:
            raise NotFoundError('Schedule not found.')
        if not owns_schedule(profile, schedule):
            raise ForbiddenError('Schedule belongs to another practitioner.')

        validate_window(
            changes.get('start_time', schedule.start_time),
            changes.get('end_time', schedule.end_time),
        )

        repo.update_fields(schedule, changes)
        db.commit()
        db.refresh(schedule)
    except BookingError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to update schedule %s', schedule_id)
        raise InternalError() from exc

    return schedule
