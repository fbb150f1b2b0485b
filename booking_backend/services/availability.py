"""Free-slot computation for a practitioner on a single UTC calendar date.

Each schedule matching the date's weekday is tiled independently into
fixed-length slots; a slot is free when no occupying reservation
intersects it under half-open semantics. Overlapping schedules may emit
overlapping slots and are not merged.

The ``utc_offset_minutes`` argument shifts every slot boundary by
``-offset`` before it is returned. It is a display convenience for
clients that think in a fixed local offset, not timezone logic: there is
no DST or named-zone handling.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking_backend.core import config
from booking_backend.core.errors import InternalError, NotFoundError, ValidationError
from booking_backend.repositories.practitioner_repository import PractitionerRepository
from booking_backend.repositories.reservation_repository import ReservationRepository
from booking_backend.repositories.schedule_repository import ScheduleRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Slot:
    start: datetime
    end: datetime


@dataclass
class AvailabilityResult:
    date: date
    slots: List[Slot] = field(default_factory=list)
    total: int = 0
    offset: int = 0
    limit: Optional[int] = None


def weekday_index(target_date: date) -> int:
    """0=Sunday..6=Saturday."""
    return target_date.isoweekday() % 7


def day_bounds(target_date: date) -> tuple[datetime, datetime]:
    start_of_day = datetime.combine(target_date, time.min)
    return start_of_day, start_of_day + timedelta(days=1)


def anchor_window(target_date: date, start_time: time, end_time: time) -> tuple[datetime, datetime]:
    # Times are stored as UTC time-of-day; drop any tzinfo before combining.
    return (
        datetime.combine(target_date, start_time.replace(tzinfo=None)),
        datetime.combine(target_date, end_time.replace(tzinfo=None)),
    )


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    return a_start < b_end and a_end > b_start


def tile_window(window_start: datetime, window_end: datetime, slot_minutes: int) -> List[Slot]:
    step = timedelta(minutes=slot_minutes)
    slots: List[Slot] = []
    current = window_start

    while current + step <= window_end:
        slots.append(Slot(start=current, end=current + step))
        current += step

    return slots


def free_slots(candidates: Iterable[Slot], reservations) -> List[Slot]:
    return [
        slot
        for slot in candidates
        if not any(
            intervals_overlap(reservation.start_datetime, reservation.end_datetime, slot.start, slot.end)
            for reservation in reservations
        )
    ]


def shift_for_display(slot: Slot, utc_offset_minutes: int) -> Slot:
    shift = timedelta(minutes=utc_offset_minutes)
    return Slot(
        start=(slot.start - shift).replace(tzinfo=timezone.utc),
        end=(slot.end - shift).replace(tzinfo=timezone.utc),
    )


def validate_availability_params(
    slot_minutes: Optional[int],
    offset: Optional[int],
    limit: Optional[int],
    utc_offset_minutes: Optional[int],
) -> tuple[Optional[int], int, Optional[int], int]:
    if slot_minutes is not None and slot_minutes <= 0:
        raise ValidationError('slot_minutes must be a positive integer.')

    offset = offset or 0
    if offset < 0:
        raise ValidationError('offset must not be negative.')

    if limit is not None:
        if limit < 1:
            raise ValidationError('limit must be at least 1.')
        limit = min(limit, config.MAX_AVAILABILITY_LIMIT)

    utc_offset_minutes = utc_offset_minutes or 0
    if abs(utc_offset_minutes) > config.MAX_UTC_OFFSET_MINUTES:
        raise ValidationError(
            f'utc_offset must be between -{config.MAX_UTC_OFFSET_MINUTES} and {config.MAX_UTC_OFFSET_MINUTES} minutes.'
        )

    return slot_minutes, offset, limit, utc_offset_minutes


def compute_availability(
    db: Session,
    practitioner_id: int,
    target_date: date,
    slot_minutes: Optional[int] = None,
    offset: Optional[int] = 0,
    limit: Optional[int] = None,
    utc_offset_minutes: Optional[int] = 0,
) -> AvailabilityResult:
    slot_minutes, offset, limit, utc_offset_minutes = validate_availability_params(
        slot_minutes, offset, limit, utc_offset_minutes,
    )

    try:
        if PractitionerRepository(db).get(practitioner_id) is None:
            raise NotFoundError('Practitioner not found.')

        schedules = ScheduleRepository(db).find_by_practitioner_and_weekday(
            practitioner_id, weekday_index(target_date),
        )
        if not schedules:
            return AvailabilityResult(date=target_date, offset=offset, limit=limit)

        start_of_day, end_of_day = day_bounds(target_date)
        reservations = ReservationRepository(db).find_occupying_in_window(
            practitioner_id, start_of_day, end_of_day,
        )
    except OverflowError as exc:
        raise ValidationError('date is outside the supported range.') from exc
    except SQLAlchemyError as exc:
        logger.exception('Availability lookup failed for practitioner %s', practitioner_id)
        raise InternalError() from exc

    try:
        slots: List[Slot] = []
        for schedule in schedules:
            window_start, window_end = anchor_window(target_date, schedule.start_time, schedule.end_time)
            minutes = slot_minutes or schedule.slot_duration_minutes or config.DEFAULT_SLOT_DURATION_MINUTES
            slots.extend(free_slots(tile_window(window_start, window_end, minutes), reservations))

        page = slots[offset:offset + limit] if limit is not None else slots[offset:]
        shifted = [shift_for_display(slot, utc_offset_minutes) for slot in page]
    except OverflowError as exc:
        # Slot arithmetic at either end of the datetime range.
        raise ValidationError('date is outside the supported range.') from exc

    return AvailabilityResult(
        date=target_date,
        slots=shifted,
        total=len(slots),
        offset=offset,
        limit=limit,
    )
