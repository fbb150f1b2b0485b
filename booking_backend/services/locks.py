from contextlib import contextmanager
from threading import Lock

from booking_backend.core import config


class PractitionerLocks:
    """A fixed set of mutexes striped by practitioner id.

    Serializes the check-then-write unit for a practitioner inside this
    process. Two practitioners may share a stripe; that only costs
    throughput. Cross-process exclusion comes from the row lock taken on
    the practitioner profile within the same unit.
    """

    def __init__(self, stripes: int | None = None) -> None:
        stripes = stripes or config.PRACTITIONER_LOCK_STRIPES
        if stripes < 1:
            raise ValueError('stripes must be at least 1.')
        self._locks = tuple(Lock() for _ in range(stripes))

    def __len__(self) -> int:
        return len(self._locks)

    def lock_for(self, practitioner_id: int) -> Lock:
        return self._locks[hash(practitioner_id) % len(self._locks)]

    @contextmanager
    def hold(self, practitioner_id: int):
        with self.lock_for(practitioner_id):
            yield


practitioner_locks = PractitionerLocks()
