"""
Flight management service
Handles listing, search and maintenance of the flight catalog
"""
import logging
from datetime import datetime, date, time, timedelta
from typing import List, Optional

from psycopg2 import errors as pg_errors

from backend.errors import FlightNotFound, DuplicateFlight, ValidationError
from backend.validation import (
    parse_positive_id, validate_flight_search, validate_new_flight,
    parse_price, parse_flight_status
)
from database import Flight, BookingStatus, row_to_flight

logger = logging.getLogger(__name__)

_FLIGHT_COLUMNS = """id, flight_number, airline_name, departure_city, arrival_city,
    departure_time, arrival_time, total_seats, available_seats, price, status,
    created_at, updated_at"""


def _day_window(day) -> tuple:
    """Start (inclusive) and end (exclusive) of the calendar day of ``day``"""
    if isinstance(day, str):
        day = date.fromisoformat(day[:10])
    elif isinstance(day, datetime):
        day = day.date()
    elif not isinstance(day, date):
        raise ValueError(f"Not a calendar day: {day!r}")
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class FlightService:
    """Service for flight catalog operations"""

    def __init__(self, db_manager):
        self.db_manager = db_manager

    def list_active_flights(self) -> List[Flight]:
        """All ACTIVE flights ordered by departure"""
        with self.db_manager.get_cursor() as cursor:
            cursor.execute(f"""
                SELECT {_FLIGHT_COLUMNS}
                FROM flights
                WHERE status = 'ACTIVE'
                ORDER BY departure_time ASC
            """)
            return [row_to_flight(row) for row in cursor.fetchall()]

    def get_flight(self, flight_id: int) -> Flight:
        """Get flight by ID regardless of status"""
        flight_id = parse_positive_id(flight_id, 'Flight ID')

        with self.db_manager.get_cursor() as cursor:
            cursor.execute(f"SELECT {_FLIGHT_COLUMNS} FROM flights WHERE id = %s", (flight_id,))
            flight = row_to_flight(cursor.fetchone())

        if flight is None:
            raise FlightNotFound("Flight not found")
        return flight

    def get_flight_by_number(self, flight_number: str) -> Optional[Flight]:
        with self.db_manager.get_cursor() as cursor:
            cursor.execute(f"SELECT {_FLIGHT_COLUMNS} FROM flights WHERE flight_number = %s",
                           (flight_number.strip().upper(),))
            return row_to_flight(cursor.fetchone())

    def search_flights(self, departure_city: str, arrival_city: str,
                       departure_date=None) -> List[Flight]:
        """
        Search for bookable flights on a route

        Args:
            departure_city: Origin city (case-insensitive exact match)
            arrival_city: Destination city (case-insensitive exact match)
            departure_date: Optional day (date, datetime or ISO string)

        Returns:
            ACTIVE flights with at least one free seat, by departure time
        """
        validate_flight_search(departure_city, arrival_city)

        conditions = [
            "status = 'ACTIVE'",
            "available_seats > 0",
            "LOWER(departure_city) = LOWER(%s)",
            "LOWER(arrival_city) = LOWER(%s)",
        ]
        params = [departure_city.strip(), arrival_city.strip()]

        if departure_date:
            try:
                start, end = _day_window(departure_date)
            except ValueError:
                raise ValidationError("Departure date must be YYYY-MM-DD")
            conditions.append("departure_time >= %s AND departure_time < %s")
            params.extend([start, end])

        with self.db_manager.get_cursor() as cursor:
            cursor.execute(f"""
                SELECT {_FLIGHT_COLUMNS}
                FROM flights
                WHERE {' AND '.join(conditions)}
                ORDER BY departure_time ASC
            """, params)
            return [row_to_flight(row) for row in cursor.fetchall()]

    def create_flight(self, flight_number: str, airline_name: str, departure_city: str,
                      arrival_city: str, departure_time, arrival_time,
                      total_seats: int, price) -> Flight:
        """
        Create a new ACTIVE flight with every seat available

        Raises:
            ValidationError: Missing or out-of-range fields
            DuplicateFlight: Flight number already exists
        """
        values = validate_new_flight(flight_number, airline_name, departure_city, arrival_city,
                                     departure_time, arrival_time, total_seats, price)

        def work(conn):
            with conn.cursor() as cursor:
                cursor.execute("SELECT id FROM flights WHERE flight_number = %s",
                               (values['flight_number'],))
                if cursor.fetchone():
                    raise DuplicateFlight()

                cursor.execute("""
                    INSERT INTO flights (flight_number, airline_name, departure_city, arrival_city,
                                         departure_time, arrival_time, total_seats, available_seats,
                                         price, status)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, 'ACTIVE')
                    RETURNING id
                """, (values['flight_number'], values['airline_name'], values['departure_city'],
                      values['arrival_city'], values['departure_time'], values['arrival_time'],
                      values['total_seats'], values['total_seats'], values['price']))
                return cursor.fetchone()[0]

        try:
            flight_id = self.db_manager.run_transaction(work)
        except pg_errors.UniqueViolation as e:
            raise DuplicateFlight() from e

        logger.info("Flight created: %s (ID %s)", values['flight_number'], flight_id)
        return self.get_flight(flight_id)

    def update_flight(self, flight_id: int, airline_name: Optional[str] = None,
                      price=None, status=None) -> Flight:
        """
        Update airline name, price or status

        Seat counts are owned by the booking service and never change here.
        Existing bookings keep the price they were booked at.
        """
        flight_id = parse_positive_id(flight_id, 'Flight ID')

        updates = []
        values = []

        if airline_name is not None:
            if not isinstance(airline_name, str):
                raise ValidationError("Airline name must be a string")
            if not airline_name.strip():
                raise ValidationError("Airline name cannot be empty")
            updates.append("airline_name = %s")
            values.append(airline_name.strip())

        if price is not None:
            updates.append("price = %s")
            values.append(parse_price(price))

        if status is not None:
            updates.append("status = %s")
            values.append(parse_flight_status(status).value)

        if not updates:
            raise ValidationError("No fields to update")

        values.append(flight_id)

        def work(conn):
            with conn.cursor() as cursor:
                cursor.execute(f"""
                    UPDATE flights
                    SET {', '.join(updates)}, updated_at = NOW()
                    WHERE id = %s
                    RETURNING id
                """, values)
                if not cursor.fetchone():
                    raise FlightNotFound("Flight not found")

        self.db_manager.run_transaction(work)
        logger.info("Flight updated: %s", flight_id)
        return self.get_flight(flight_id)

    def get_booked_seats(self, flight_id: int) -> List[str]:
        """Seat numbers held by CONFIRMED bookings"""
        flight_id = parse_positive_id(flight_id, 'Flight ID')

        with self.db_manager.get_cursor() as cursor:
            cursor.execute("""
                SELECT seat_number FROM bookings
                WHERE flight_id = %s AND status = %s
                ORDER BY seat_number
            """, (flight_id, BookingStatus.CONFIRMED.value))
            return [row['seat_number'] for row in cursor.fetchall()]
