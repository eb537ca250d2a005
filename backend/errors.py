"""
Error taxonomy for booking operations

Client faults (validation, not-found, conflict, authentication) subclass
ValueError; server faults (pool exhaustion, lock timeouts) subclass
RuntimeError. ``status_code`` is what the HTTP layer answers with.
"""


class ReservationError(Exception):
    """Base class for every failure surfaced by the booking services"""
    status_code = 500

    def __init__(self, message=None):
        super().__init__(message or self.default_message())
        self.message = str(self)

    @classmethod
    def default_message(cls):
        return cls.__doc__ or cls.__name__


class ValidationError(ReservationError, ValueError):
    """Validation failed"""
    status_code = 400

    def __init__(self, message=None, errors=None):
        self.errors = list(errors or [])
        if message is None and len(self.errors) == 1:
            message = self.errors[0]
        super().__init__(message)


class AuthenticationError(ReservationError, ValueError):
    """Authentication failed"""
    status_code = 401


class NotFoundError(ReservationError, ValueError):
    """Resource not found"""
    status_code = 404


class UserNotFound(NotFoundError):
    """User not found"""


class FlightNotFound(NotFoundError):
    """Flight not found or is not active"""


class BookingNotFound(NotFoundError):
    """Booking not found"""


class ConflictError(ReservationError, ValueError):
    """Request conflicts with the current state"""
    status_code = 409


class NoSeatsAvailable(ConflictError):
    """No seats available on this flight"""


class SeatAlreadyBooked(ConflictError):
    """Seat already booked"""


class AlreadyCancelled(ConflictError):
    """Booking is already cancelled"""


class DuplicateUser(ConflictError):
    """Username or email already registered"""


class DuplicateFlight(ConflictError):
    """Flight number already exists"""


class ResourceError(ReservationError, RuntimeError):
    """Database resources are unavailable"""
    status_code = 503


class PoolExhausted(ResourceError):
    """No database connection available"""


class SeatLockTimeout(ResourceError):
    """Timed out waiting for the flight to become available for booking"""
