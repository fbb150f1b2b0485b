from datetime import date, datetime, time, timedelta, timezone

import pytest

from booking_backend.auth.roles import Actor, Role
from booking_backend.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from booking_backend.models.reservation import Reservation
from booking_backend.services.availability import compute_availability
from booking_backend.services.locks import PractitionerLocks
from booking_backend.services.reservations import ReservationService

WEDNESDAY = date(2026, 1, 7)
NOW = datetime(2026, 1, 1, 12, 0)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime.combine(WEDNESDAY, time(hour, minute))


@pytest.fixture
def service(db) -> ReservationService:
    return ReservationService(db=db, clock=lambda: NOW, locks=PractitionerLocks())


def test_create_reservation_books_interval(service, seed) -> None:
    practitioner = seed.practitioner()
    patient = seed.user()

    reservation = service.create_reservation(patient.id, practitioner.id, at(9), at(9, 30), notes='  knee pain  ')

    assert reservation.id is not None
    assert reservation.status == 'booked'
    assert reservation.patient_id == patient.id
    assert reservation.start_datetime == at(9)
    assert reservation.end_datetime == at(9, 30)
    assert reservation.patient_notes == 'knee pain'
    assert reservation.created_at == NOW


def test_create_reservation_normalizes_aware_datetimes_to_utc(service, seed) -> None:
    practitioner = seed.practitioner()
    patient = seed.user()
    plus_two = timezone(timedelta(hours=2))

    reservation = service.create_reservation(
        patient.id,
        practitioner.id,
        datetime(2026, 1, 7, 11, 0, tzinfo=plus_two),
        datetime(2026, 1, 7, 11, 30, tzinfo=plus_two),
    )

    assert reservation.start_datetime == at(9)
    assert reservation.end_datetime == at(9, 30)


def test_repeating_identical_create_conflicts(service, seed, db) -> None:
    practitioner = seed.practitioner()
    patient = seed.user()
    service.create_reservation(patient.id, practitioner.id, at(9), at(9, 30))

    with pytest.raises(ConflictError):
        service.create_reservation(patient.id, practitioner.id, at(9), at(9, 30))

    assert db.query(Reservation).count() == 1


def test_adjacent_reservations_do_not_conflict(service, seed) -> None:
    practitioner = seed.practitioner()
    patient = seed.user()
    service.create_reservation(patient.id, practitioner.id, at(9), at(9, 30))

    later = service.create_reservation(patient.id, practitioner.id, at(9, 30), at(10))
    earlier = service.create_reservation(patient.id, practitioner.id, at(8, 30), at(9))

    assert later.status == 'booked'
    assert earlier.status == 'booked'


def test_cancelled_reservation_does_not_conflict(service, seed) -> None:
    practitioner = seed.practitioner()
    patient = seed.user()
    seed.reservation(practitioner.id, patient.id, at(9), at(10), status='cancelled')

    reservation = service.create_reservation(patient.id, practitioner.id, at(9), at(10))

    assert reservation.status == 'booked'


def test_same_time_with_different_practitioners_is_allowed(service, seed) -> None:
    first = seed.practitioner()
    second = seed.practitioner()
    patient = seed.user()

    service.create_reservation(patient.id, first.id, at(9), at(9, 30))
    service.create_reservation(patient.id, second.id, at(9), at(9, 30))


@pytest.mark.parametrize(('start', 'end'), [(at(10), at(9)), (at(9), at(9))])
def test_create_rejects_empty_or_inverted_range(service, seed, db, start: datetime, end: datetime) -> None:
    practitioner = seed.practitioner()
    patient = seed.user()

    with pytest.raises(ValidationError):
        service.create_reservation(patient.id, practitioner.id, start, end)

    assert db.query(Reservation).count() == 0


def test_create_rejects_overlong_notes(service, seed, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('booking_backend.core.config.MAX_PATIENT_NOTES_LENGTH', 10)
    practitioner = seed.practitioner()
    patient = seed.user()

    with pytest.raises(ValidationError):
        service.create_reservation(patient.id, practitioner.id, at(9), at(9, 30), notes='x' * 11)


def test_create_for_unknown_practitioner_is_not_found(service, seed) -> None:
    patient = seed.user()

    with pytest.raises(NotFoundError) as exception_info:
        service.create_reservation(patient.id, 999, at(9), at(9, 30))

    assert exception_info.value.detail == 'Practitioner not found.'


def test_create_with_unknown_clinic_is_not_found(service, seed) -> None:
    practitioner = seed.practitioner()
    patient = seed.user()

    with pytest.raises(NotFoundError) as exception_info:
        service.create_reservation(patient.id, practitioner.id, at(9), at(9, 30), clinic_id=42)

    assert exception_info.value.detail == 'Clinic not found.'


def test_create_with_clinic_reference(service, seed) -> None:
    clinic = seed.clinic()
    practitioner = seed.practitioner(clinic_id=clinic.id)
    patient = seed.user()

    reservation = service.create_reservation(patient.id, practitioner.id, at(9), at(9, 30), clinic_id=clinic.id)

    assert reservation.clinic_id == clinic.id


def test_check_and_insert_run_under_practitioner_lock(db, seed) -> None:
    locks = PractitionerLocks()
    practitioner = seed.practitioner()
    patient = seed.user()
    observed = []

    def clock() -> datetime:
        observed.append(locks.lock_for(practitioner.id).locked())
        return NOW

    ReservationService(db=db, clock=clock, locks=locks).create_reservation(
        patient.id, practitioner.id, at(9), at(9, 30),
    )

    assert observed == [True]
    assert not locks.lock_for(practitioner.id).locked()


def test_conflict_releases_practitioner_lock(db, seed) -> None:
    locks = PractitionerLocks()
    practitioner = seed.practitioner()
    patient = seed.user()
    service = ReservationService(db=db, clock=lambda: NOW, locks=locks)
    service.create_reservation(patient.id, practitioner.id, at(9), at(9, 30))

    with pytest.raises(ConflictError):
        service.create_reservation(patient.id, practitioner.id, at(9, 15), at(9, 45))

    assert not locks.lock_for(practitioner.id).locked()


def test_unknown_practitioner_is_rejected_before_taking_a_lock(db, seed) -> None:
    held = []

    class RecordingLocks(PractitionerLocks):
        def hold(self, practitioner_id: int):
            held.append(practitioner_id)
            return super().hold(practitioner_id)

    locks = RecordingLocks(stripes=4)
    patient = seed.user()
    service = ReservationService(db=db, clock=lambda: NOW, locks=locks)

    for practitioner_id in range(10_000, 10_100):
        with pytest.raises(NotFoundError):
            service.create_reservation(patient.id, practitioner_id, at(9), at(9, 30))

    assert held == []
    assert len(locks) == 4


def test_lock_registry_is_bounded_by_stripes() -> None:
    locks = PractitionerLocks(stripes=8)

    distinct = {id(locks.lock_for(practitioner_id)) for practitioner_id in range(1_000)}

    assert len(distinct) == 8
    assert locks.lock_for(3) is locks.lock_for(3)


def test_reschedule_into_other_reservation_conflicts_and_changes_nothing(service, seed, db) -> None:
    practitioner = seed.practitioner()
    patient = seed.user()
    moving = seed.reservation(practitioner.id, patient.id, at(9), at(9, 30))
    blocking = seed.reservation(practitioner.id, patient.id, at(10), at(10, 30))

    with pytest.raises(ConflictError):
        service.reschedule_reservation(seed.actor(patient), moving.id, at(10, 15), at(10, 45))

    db.expire_all()
    assert (moving.start_datetime, moving.end_datetime) == (at(9), at(9, 30))
    assert (blocking.start_datetime, blocking.end_datetime) == (at(10), at(10, 30))


def test_reschedule_may_overlap_its_own_previous_interval(service, seed) -> None:
    practitioner = seed.practitioner()
    patient = seed.user()
    reservation = seed.reservation(practitioner.id, patient.id, at(9), at(9, 30))

    updated = service.reschedule_reservation(seed.actor(patient), reservation.id, at(9, 15), at(9, 45))

    assert (updated.start_datetime, updated.end_datetime) == (at(9, 15), at(9, 45))
    assert updated.updated_at == NOW


def test_reschedule_preserves_status(service, seed) -> None:
    practitioner = seed.practitioner()
    patient = seed.user()
    reservation = seed.reservation(practitioner.id, patient.id, at(9), at(9, 30), status='confirmed')

    updated = service.reschedule_reservation(seed.actor(patient), reservation.id, at(11), at(11, 30))

    assert updated.status == 'confirmed'


def test_owning_practitioner_can_reschedule(service, seed) -> None:
    practitioner = seed.practitioner()
    patient = seed.user()
    reservation = seed.reservation(practitioner.id, patient.id, at(9), at(9, 30))
    practitioner_actor = Actor(user_id=practitioner.user_id, role=Role.PRACTITIONER)

    updated = service.reschedule_reservation(practitioner_actor, reservation.id, at(13), at(13, 30))

    assert updated.start_datetime == at(13)


def test_admin_can_reschedule(service, seed) -> None:
    practitioner = seed.practitioner()
    patient = seed.user()
    admin = seed.user(role='admin')
    reservation = seed.reservation(practitioner.id, patient.id, at(9), at(9, 30))

    updated = service.reschedule_reservation(seed.actor(admin), reservation.id, at(14), at(14, 30))

    assert updated.start_datetime == at(14)


def test_unrelated_users_cannot_reschedule(service, seed) -> None:
    practitioner = seed.practitioner()
    other_practitioner = seed.practitioner()
    patient = seed.user()
    stranger = seed.user()
    reservation = seed.reservation(practitioner.id, patient.id, at(9), at(9, 30))

    with pytest.raises(ForbiddenError):
        service.reschedule_reservation(seed.actor(stranger), reservation.id, at(11), at(11, 30))
    with pytest.raises(ForbiddenError):
        service.reschedule_reservation(
            Actor(user_id=other_practitioner.user_id, role=Role.PRACTITIONER), reservation.id, at(11), at(11, 30),
        )


def test_reschedule_validates_before_lookup(service, seed) -> None:
    patient = seed.user()

    with pytest.raises(ValidationError):
        service.reschedule_reservation(seed.actor(patient), 999, at(10), at(9))


def test_reschedule_missing_reservation_is_not_found(service, seed) -> None:
    patient = seed.user()

    with pytest.raises(NotFoundError):
        service.reschedule_reservation(seed.actor(patient), 999, at(9), at(10))


def test_cancel_transitions_to_cancelled_and_frees_slot(service, seed, db) -> None:
    practitioner = seed.practitioner()
    patient = seed.user()
    seed.schedule(practitioner.id, 3, time(9, 0), time(10, 0), slot_duration_minutes=30)
    reservation = service.create_reservation(patient.id, practitioner.id, at(9), at(9, 30))
    assert compute_availability(db, practitioner.id, WEDNESDAY).total == 1

    cancelled = service.cancel_reservation(seed.actor(patient), reservation.id)

    assert cancelled.status == 'cancelled'
    free = compute_availability(db, practitioner.id, WEDNESDAY)
    assert [(slot.start, slot.end) for slot in free.slots][0] == (
        at(9).replace(tzinfo=timezone.utc),
        at(9, 30).replace(tzinfo=timezone.utc),
    )


def test_cancelling_twice_is_accepted(service, seed) -> None:
    practitioner = seed.practitioner()
    patient = seed.user()
    reservation = seed.reservation(practitioner.id, patient.id, at(9), at(9, 30))

    service.cancel_reservation(seed.actor(patient), reservation.id)
    again = service.cancel_reservation(seed.actor(patient), reservation.id)

    assert again.status == 'cancelled'


def test_admin_can_cancel(service, seed) -> None:
    practitioner = seed.practitioner()
    patient = seed.user()
    admin = seed.user(role='admin')
    reservation = seed.reservation(practitioner.id, patient.id, at(9), at(9, 30))

    assert service.cancel_reservation(seed.actor(admin), reservation.id).status == 'cancelled'


def test_owning_practitioner_cannot_cancel(service, seed) -> None:
    practitioner = seed.practitioner()
    patient = seed.user()
    reservation = seed.reservation(practitioner.id, patient.id, at(9), at(9, 30))

    with pytest.raises(ForbiddenError):
        service.cancel_reservation(Actor(user_id=practitioner.user_id, role=Role.PRACTITIONER), reservation.id)


def test_cancel_missing_reservation_is_not_found(service, seed) -> None:
    patient = seed.user()

    with pytest.raises(NotFoundError):
        service.cancel_reservation(seed.actor(patient), 999)


def test_get_reservation_visible_to_patient_and_practitioner_only(service, seed) -> None:
    practitioner = seed.practitioner()
    patient = seed.user()
    stranger = seed.user()
    reservation = seed.reservation(practitioner.id, patient.id, at(9), at(9, 30))

    assert service.get_reservation(seed.actor(patient), reservation.id).id == reservation.id
    assert service.get_reservation(
        Actor(user_id=practitioner.user_id, role=Role.PRACTITIONER), reservation.id,
    ).id == reservation.id
    with pytest.raises(ForbiddenError):
        service.get_reservation(seed.actor(stranger), reservation.id)
