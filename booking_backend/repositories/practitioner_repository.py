from typing import Optional

from sqlalchemy.orm import Session

from booking_backend.models.clinic import Clinic
from booking_backend.models.practitioner import PractitionerProfile


class PractitionerRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, practitioner_id: int) -> Optional[PractitionerProfile]:
        return self.db.query(PractitionerProfile).filter(PractitionerProfile.id == practitioner_id).first()

    def get_for_update(self, practitioner_id: int) -> Optional[PractitionerProfile]:
        """Load the profile row with a row lock held until the transaction ends.

        The lock is what serializes booking writes for one practitioner across
        processes; SQLite ignores FOR UPDATE.
        """
        return (
            self.db.query(PractitionerProfile)
            .filter(PractitionerProfile.id == practitioner_id)
            .with_for_update()
            .first()
        )

    def get_by_user_id(self, user_id: int) -> Optional[PractitionerProfile]:
        return self.db.query(PractitionerProfile).filter(PractitionerProfile.user_id == user_id).first()

    def get_clinic(self, clinic_id: int) -> Optional[Clinic]:
        return self.db.query(Clinic).filter(Clinic.id == clinic_id).first()

    def insert(self, user_id: int, specialty: str | None = None, clinic_id: int | None = None) -> PractitionerProfile:
        profile = PractitionerProfile(user_id=user_id, specialty=specialty, clinic_id=clinic_id)
        self.db.add(profile)
        self.db.flush()
        return profile
