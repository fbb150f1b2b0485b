"""Typed failures raised by the booking core.

Every expected failure is one of these kinds; routes never see a bare
boolean or a storage exception.
"""

from fastapi import status


class BookingError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Booking request failed.'

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid request.'


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'


class ForbiddenError(BookingError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Forbidden.'


class ConflictError(BookingError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Timeslot not available.'


class InternalError(BookingError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Database unavailable.'
