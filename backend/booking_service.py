"""
Booking service with concurrent seat reservation handling
Serializes bookings per flight through a row lock on the flight
"""
import logging
from typing import List, Optional

from psycopg2 import errors as pg_errors
from psycopg2.extras import RealDictCursor

from backend.errors import (
    ReservationError, UserNotFound, FlightNotFound, BookingNotFound,
    NoSeatsAvailable, SeatAlreadyBooked, AlreadyCancelled, SeatLockTimeout
)
from backend.validation import validate_booking_request, parse_positive_id
from database import (
    Booking, BookingStats, BookingStatus,
    row_to_booking, row_to_flight, row_to_booking_stats
)

logger = logging.getLogger(__name__)

# Booking columns plus flight columns with f_ prefix for joined queries
_BOOKING_WITH_FLIGHT_QUERY = """
    SELECT
        b.id, b.user_id, b.flight_id, b.seat_number, b.status, b.total_price,
        b.booking_date, b.updated_at,
        f.id AS f_id, f.flight_number, f.airline_name, f.departure_city,
        f.arrival_city, f.departure_time, f.arrival_time, f.total_seats,
        f.available_seats, f.price, f.status AS f_status,
        f.created_at AS f_created_at, f.updated_at AS f_updated_at
    FROM bookings b
    JOIN flights f ON b.flight_id = f.id
"""

# Postgres reports a lock_timeout as 55P03 and a statement_timeout as 57014
_TIMEOUT_ERRORS = (pg_errors.LockNotAvailable, pg_errors.QueryCanceled)


def _build_booking_with_flight(row) -> Optional[Booking]:
    """Build a Booking object with its flight relation from a joined row."""
    if not row:
        return None
    booking = row_to_booking(row)
    if row.get('f_id'):
        booking.flight = row_to_flight({
            'id': row['f_id'],
            'flight_number': row['flight_number'],
            'airline_name': row['airline_name'],
            'departure_city': row['departure_city'],
            'arrival_city': row['arrival_city'],
            'departure_time': row['departure_time'],
            'arrival_time': row['arrival_time'],
            'total_seats': row['total_seats'],
            'available_seats': row['available_seats'],
            'price': row['price'],
            'status': row['f_status'],
            'created_at': row.get('f_created_at'),
            'updated_at': row.get('f_updated_at')
        })
    return booking


class BookingService:
    """Service for booking operations with transaction safety"""

    def __init__(self, db_manager):
        self.db_manager = db_manager

    def create_booking(self, user_id: int, flight_id: int, seat_number: str) -> Booking:
        """
        Book a seat on a flight

        The request is validated before any connection is taken. The seat
        checks, the insert and the seat decrement then run in one
        transaction behind a row lock on the flight.

        Args:
            user_id: Authenticated user ID
            flight_id: Flight ID
            seat_number: Seat identifier such as ``A1`` or ``B12``

        Returns:
            The confirmed booking with its flight

        Raises:
            ValidationError: Missing fields or malformed seat number
            UserNotFound, FlightNotFound: Unknown user, or no active flight
            NoSeatsAvailable, SeatAlreadyBooked: Inventory conflicts
            SeatLockTimeout: The flight stayed locked past the lock timeout
        """
        user_id, flight_id, seat_number = validate_booking_request(user_id, flight_id, seat_number)

        try:
            booking_id = self.db_manager.run_transaction(
                lambda conn: self._book_seat(conn, user_id, flight_id, seat_number)
            )
        except pg_errors.UniqueViolation as e:
            logger.info("Seat %s on flight %s taken concurrently", seat_number, flight_id)
            raise SeatAlreadyBooked() from e
        except _TIMEOUT_ERRORS as e:
            logger.warning("Timed out waiting for lock on flight %s", flight_id)
            raise SeatLockTimeout() from e
        except ReservationError as e:
            logger.info("Booking rejected (user=%s flight=%s seat=%s): %s",
                        user_id, flight_id, seat_number, e)
            raise

        logger.info("Booking created: ID %s, flight %s, seat %s", booking_id, flight_id, seat_number)
        return self.get_booking_by_id(booking_id, user_id)

    @staticmethod
    def _book_seat(conn, user_id: int, flight_id: int, seat_number: str) -> int:
        """Unit of work for ``create_booking``; returns the new booking ID"""
        with conn.cursor(cursor_factory=RealDictCursor) as cursor:
            cursor.execute("SELECT id FROM users WHERE id = %s", (user_id,))
            if not cursor.fetchone():
                raise UserNotFound(f"User ID {user_id} not found. Please log in again.")

            # Every booking on this flight queues here until we commit
            cursor.execute("""
                SELECT id, available_seats, price
                FROM flights
                WHERE id = %s AND status = 'ACTIVE'
                FOR UPDATE
            """, (flight_id,))
            flight_row = cursor.fetchone()

            if not flight_row:
                raise FlightNotFound()

            if flight_row['available_seats'] <= 0:
                raise NoSeatsAvailable()

            cursor.execute("""
                SELECT id FROM bookings
                WHERE flight_id = %s AND seat_number = %s AND status = %s
            """, (flight_id, seat_number, BookingStatus.CONFIRMED.value))
            if cursor.fetchone():
                raise SeatAlreadyBooked()

            # Price is copied onto the booking and never re-derived
            cursor.execute("""
                INSERT INTO bookings (user_id, flight_id, seat_number, status, total_price)
                VALUES (%s, %s, %s, %s, %s)
                RETURNING id
            """, (user_id, flight_id, seat_number, BookingStatus.CONFIRMED.value, flight_row['price']))
            booking_id = cursor.fetchone()['id']

            cursor.execute("""
                UPDATE flights
                SET available_seats = available_seats - 1, updated_at = NOW()
                WHERE id = %s
            """, (flight_id,))

            return booking_id

    def cancel_booking(self, booking_id: int, user_id: int) -> dict:
        """
        Cancel a booking owned by ``user_id`` and release its seat

        Raises:
            BookingNotFound: No such booking for this user
            AlreadyCancelled: The booking was cancelled before
        """
        booking_id = parse_positive_id(booking_id, 'Booking ID')
        user_id = parse_positive_id(user_id, 'User ID')

        try:
            self.db_manager.run_transaction(
                lambda conn: self._release_seat(conn, booking_id, user_id)
            )
        except _TIMEOUT_ERRORS as e:
            logger.warning("Timed out waiting for lock on booking %s", booking_id)
            raise SeatLockTimeout("Timed out waiting for the booking to become available") from e
        except ReservationError as e:
            logger.info("Cancellation rejected (booking=%s user=%s): %s", booking_id, user_id, e)
            raise

        logger.info("Booking cancelled: ID %s", booking_id)
        return {'message': 'Booking cancelled successfully'}

    @staticmethod
    def _release_seat(conn, booking_id: int, user_id: int) -> None:
        with conn.cursor(cursor_factory=RealDictCursor) as cursor:
            # Ownership is part of the filter so other users' bookings look absent
            cursor.execute("""
                SELECT id, flight_id, status
                FROM bookings
                WHERE id = %s AND user_id = %s
                FOR UPDATE
            """, (booking_id, user_id))
            row = cursor.fetchone()

            if not row:
                raise BookingNotFound()

            status = BookingStatus(row['status'])
            if status == BookingStatus.CANCELLED:
                raise AlreadyCancelled()

            cursor.execute("""
                UPDATE bookings
                SET status = %s, updated_at = NOW()
                WHERE id = %s
            """, (BookingStatus.CANCELLED.value, booking_id))

            # Only a CONFIRMED booking holds a seat
            if status == BookingStatus.CONFIRMED:
                cursor.execute("""
                    UPDATE flights
                    SET available_seats = available_seats + 1, updated_at = NOW()
                    WHERE id = %s
                """, (row['flight_id'],))

    def get_booking_by_id(self, booking_id: int, user_id: int) -> Booking:
        """Get a booking with flight details, scoped to its owner"""
        booking_id = parse_positive_id(booking_id, 'Booking ID')
        user_id = parse_positive_id(user_id, 'User ID')

        with self.db_manager.get_cursor() as cursor:
            cursor.execute(f"""
                {_BOOKING_WITH_FLIGHT_QUERY}
                WHERE b.id = %s AND b.user_id = %s
            """, (booking_id, user_id))
            booking = _build_booking_with_flight(cursor.fetchone())

        if booking is None:
            raise BookingNotFound()
        return booking

    def get_user_bookings(self, user_id: int) -> List[Booking]:
        """All bookings of a user, newest first"""
        user_id = parse_positive_id(user_id, 'User ID')

        with self.db_manager.get_cursor() as cursor:
            cursor.execute(f"""
                {_BOOKING_WITH_FLIGHT_QUERY}
                WHERE b.user_id = %s
                ORDER BY b.booking_date DESC, b.id DESC
            """, (user_id,))
            return [_build_booking_with_flight(row) for row in cursor.fetchall()]

    def get_flight_booking_stats(self, flight_id: int) -> BookingStats:
        """Booking counts by status for a flight; zeros when it has none"""
        flight_id = parse_positive_id(flight_id, 'Flight ID')

        with self.db_manager.get_cursor() as cursor:
            cursor.execute("""
                SELECT
                    COUNT(*) AS total_bookings,
                    COALESCE(SUM(CASE WHEN status = 'CONFIRMED' THEN 1 ELSE 0 END), 0) AS confirmed_bookings,
                    COALESCE(SUM(CASE WHEN status = 'CANCELLED' THEN 1 ELSE 0 END), 0) AS cancelled_bookings,
                    COALESCE(SUM(CASE WHEN status = 'PENDING' THEN 1 ELSE 0 END), 0) AS pending_bookings
                FROM bookings
                WHERE flight_id = %s
            """, (flight_id,))
            return row_to_booking_stats(cursor.fetchone())
