"""Reservation writes with per-practitioner conflict arbitration.

Create and reschedule run their overlap check and their write as one
unit while holding the practitioner's lock, so two requests for
intersecting ranges can never both observe a clear calendar. A conflict
is terminal for the request; nothing is retried here.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking_backend.auth.roles import (
    Actor,
    can_cancel_reservation,
    can_reschedule_reservation,
    can_view_reservation,
)
from booking_backend.core import config
from booking_backend.core.clock import Clock, to_utc_naive, utcnow
from booking_backend.core.errors import (
    BookingError,
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from booking_backend.models.reservation import Reservation, ReservationStatus
from booking_backend.repositories.practitioner_repository import PractitionerRepository
from booking_backend.repositories.reservation_repository import ReservationRepository
from booking_backend.services.locks import PractitionerLocks, practitioner_locks

logger = logging.getLogger(__name__)


def validate_interval(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    start = to_utc_naive(start)
    end = to_utc_naive(end)
    if not start < end:
        raise ValidationError('Invalid time range.')
    return start, end


def normalize_notes(notes: Optional[str]) -> Optional[str]:
    if notes is None:
        return None
    notes = notes.strip()
    if not notes:
        return None
    if len(notes) > config.MAX_PATIENT_NOTES_LENGTH:
        raise ValidationError(f'Notes must be {config.MAX_PATIENT_NOTES_LENGTH} characters or fewer.')
    return notes


@dataclass
class ReservationService:
    db: Session
    clock: Clock = utcnow
    locks: PractitionerLocks = practitioner_locks

    def __post_init__(self) -> None:
        self.reservations = ReservationRepository(self.db)
        self.practitioners = PractitionerRepository(self.db)

    @contextmanager
    def _write_unit(self, practitioner_id: int):
        """Hold the practitioner lock across check, write and commit."""
        with self.locks.hold(practitioner_id):
            try:
                yield
                self.db.commit()
            except BookingError:
                self.db.rollback()
                raise
            except SQLAlchemyError as exc:
                self.db.rollback()
                logger.exception('Reservation write failed for practitioner %s', practitioner_id)
                raise InternalError() from exc

    def _load(self, reservation_id: int) -> Reservation:
        try:
            reservation = self.reservations.get(reservation_id)
        except SQLAlchemyError as exc:
            logger.exception('Failed to load reservation %s', reservation_id)
            raise InternalError() from exc
        if reservation is None:
            raise NotFoundError('Reservation not found.')
        return reservation

    def _practitioner_user_id(self, practitioner_id: int) -> Optional[int]:
        try:
            profile = self.practitioners.get(practitioner_id)
        except SQLAlchemyError as exc:
            logger.exception('Failed to load practitioner %s', practitioner_id)
            raise InternalError() from exc
        return profile.user_id if profile is not None else None

    def get_reservation(self, actor: Actor, reservation_id: int) -> Reservation:
        reservation = self._load(reservation_id)
        if not can_view_reservation(actor, reservation, self._practitioner_user_id(reservation.practitioner_id)):
            raise ForbiddenError()
        return reservation

    def create_reservation(
        self,
        patient_id: int,
        practitioner_id: int,
        start: datetime,
        end: datetime,
        clinic_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> Reservation:
        start, end = validate_interval(start, end)
        notes = normalize_notes(notes)

        if self._practitioner_user_id(practitioner_id) is None:
            raise NotFoundError('Practitioner not found.')

        with self._write_unit(practitioner_id):
            if self.practitioners.get_for_update(practitioner_id) is None:
                raise NotFoundError('Practitioner not found.')
            if clinic_id is not None and self.practitioners.get_clinic(clinic_id) is None:
                raise NotFoundError('Clinic not found.')

            overlap = self.reservations.find_occupying_overlapping(practitioner_id, start, end)
            if overlap is not None:
                logger.info(
                    'Rejected booking for practitioner %s at %s-%s: overlaps reservation %s',
                    practitioner_id, start, end, overlap.id,
                )
                raise ConflictError()

            reservation = self.reservations.insert(
                patient_id=patient_id,
                practitioner_id=practitioner_id,
                start=start,
                end=end,
                status=ReservationStatus.BOOKED.value,
                created_at=self.clock(),
                clinic_id=clinic_id,
                patient_notes=notes,
            )

        self.db.refresh(reservation)
        logger.info('Created reservation %s for practitioner %s', reservation.id, practitioner_id)
        return reservation

    def reschedule_reservation(
        self,
        actor: Actor,
        reservation_id: int,
        new_start: datetime,
        new_end: datetime,
    ) -> Reservation:
        new_start, new_end = validate_interval(new_start, new_end)

        reservation = self._load(reservation_id)
        practitioner_id = reservation.practitioner_id
        if not can_reschedule_reservation(actor, reservation, self._practitioner_user_id(practitioner_id)):
            raise ForbiddenError()

        with self._write_unit(practitioner_id):
            self.practitioners.get_for_update(practitioner_id)
            self.db.refresh(reservation)

            overlap = self.reservations.find_occupying_overlapping(
                practitioner_id, new_start, new_end, exclude_id=reservation.id,
            )
            if overlap is not None:
                logger.info(
                    'Rejected reschedule of reservation %s to %s-%s: overlaps reservation %s',
                    reservation.id, new_start, new_end, overlap.id,
                )
                raise ConflictError()

            # Status is left as-is; rescheduling never confirms or cancels.
            self.reservations.update_interval(reservation, new_start, new_end, updated_at=self.clock())

        self.db.refresh(reservation)
        logger.info('Rescheduled reservation %s to %s-%s', reservation.id, new_start, new_end)
        return reservation

    def cancel_reservation(self, actor: Actor, reservation_id: int) -> Reservation:
        reservation = self._load(reservation_id)
        if not can_cancel_reservation(actor, reservation):
            raise ForbiddenError()

        # Unconditional: cancelling twice is accepted and changes nothing.
        with self._write_unit(reservation.practitioner_id):
            self.reservations.update_status(
                reservation, ReservationStatus.CANCELLED.value, updated_at=self.clock(),
            )

        self.db.refresh(reservation)
        logger.info('Cancelled reservation %s', reservation.id)
        return reservation
