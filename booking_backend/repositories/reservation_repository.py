from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from booking_backend.models.reservation import OCCUPYING_STATUSES, Reservation


class ReservationRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, reservation_id: int) -> Optional[Reservation]:
        return self.db.query(Reservation).filter(Reservation.id == reservation_id).first()

    def _occupying(self, practitioner_id: int):
        return self.db.query(Reservation).filter(
            Reservation.practitioner_id == practitioner_id,
            Reservation.status.in_(OCCUPYING_STATUSES),
        )

    def find_occupying_in_window(self, practitioner_id: int, window_start: datetime, window_end: datetime) -> List[Reservation]:
        # Coarse day filter; the exact half-open check happens per slot.
        return (
            self._occupying(practitioner_id)
            .filter(
                Reservation.start_datetime < window_end,
                Reservation.end_datetime > window_start,
            )
            .order_by(Reservation.start_datetime.asc())
            .all()
        )

    def find_occupying_overlapping(
        self,
        practitioner_id: int,
        start: datetime,
        end: datetime,
        exclude_id: int | None = None,
    ) -> Optional[Reservation]:
        query = self._occupying(practitioner_id).filter(
            Reservation.start_datetime < end,
            Reservation.end_datetime > start,
        )
        if exclude_id is not None:
            query = query.filter(Reservation.id != exclude_id)
        return query.order_by(Reservation.start_datetime.asc()).first()

    def insert(
        self,
        patient_id: int,
        practitioner_id: int,
        start: datetime,
        end: datetime,
        status: str,
        created_at: datetime,
        clinic_id: int | None = None,
        patient_notes: str | None = None,
    ) -> Reservation:
        reservation = Reservation(
            patient_id=patient_id,
            practitioner_id=practitioner_id,
            clinic_id=clinic_id,
            start_datetime=start,
            end_datetime=end,
            status=status,
            patient_notes=patient_notes,
            created_at=created_at,
            updated_at=created_at,
        )
        self.db.add(reservation)
        self.db.flush()
        return reservation

    def update_interval(self, reservation: Reservation, start: datetime, end: datetime, updated_at: datetime) -> Reservation:
        reservation.start_datetime = start
        reservation.end_datetime = end
        reservation.updated_at = updated_at
        self.db.flush()
        return reservation

    def update_status(self, reservation: Reservation, status: str, updated_at: datetime) -> Reservation:
        reservation.status = status
        reservation.updated_at = updated_at
        self.db.flush()
        return reservation

    def list_for_practitioner(
        self,
        practitioner_id: int,
        start_from: datetime | None = None,
        end_to: datetime | None = None,
        ends_after: datetime | None = None,
    ) -> List[Reservation]:
        query = self.db.query(Reservation).filter(Reservation.practitioner_id == practitioner_id)
        if start_from is not None:
            query = query.filter(Reservation.start_datetime >= start_from)
        if end_to is not None:
            query = query.filter(Reservation.end_datetime <= end_to)
        if ends_after is not None:
            query = query.filter(Reservation.end_datetime > ends_after)
        return query.order_by(Reservation.start_datetime.asc(), Reservation.id.asc()).all()

    def count_by_status(self, practitioner_id: int) -> Dict[str, int]:
        rows = (
            self.db.query(Reservation.status, func.count(Reservation.id))
            .filter(Reservation.practitioner_id == practitioner_id)
            .group_by(Reservation.status)
            .all()
        )
        return {status: count for status, count in rows}
