"""Caller identity and the authorization rules for booking operations."""

import enum
from dataclasses import dataclass


class Role(str, enum.Enum):
    PATIENT = "patient"
    PRACTITIONER = "practitioner"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


def parse_role(value: str | None) -> Role:
    try:
        return Role((value or "").strip().lower())
    except ValueError as exc:
        raise ValueError(f"Unknown role: {value!r}") from exc


def is_owning_patient(actor: Actor, reservation) -> bool:
    return reservation.patient_id == actor.user_id


def is_owning_practitioner(actor: Actor, practitioner_user_id: int | None) -> bool:
    # The reservation references a practitioner profile; ownership is via its user.
    return practitioner_user_id is not None and practitioner_user_id == actor.user_id


def can_view_reservation(actor: Actor, reservation, practitioner_user_id: int | None) -> bool:
    return (
        actor.is_admin
        or is_owning_patient(actor, reservation)
        or is_owning_practitioner(actor, practitioner_user_id)
    )


def can_reschedule_reservation(actor: Actor, reservation, practitioner_user_id: int | None) -> bool:
    return (
        actor.is_admin
        or is_owning_patient(actor, reservation)
        or is_owning_practitioner(actor, practitioner_user_id)
    )


def can_cancel_reservation(actor: Actor, reservation) -> bool:
    # Practitioners are deliberately not allowed here, unlike reschedule.
    return actor.is_admin or is_owning_patient(actor, reservation)


def owns_schedule(profile, schedule) -> bool:
    return profile is not None and schedule.practitioner_id == profile.id
