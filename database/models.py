"""
Database models for the flight booking service
Plain Python classes and enums (no ORM)
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional
import enum


class FlightStatus(enum.Enum):
    """Flight status enumeration"""
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
    DELAYED = "DELAYED"


class BookingStatus(enum.Enum):
    """Booking status enumeration"""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


@dataclass
class User:
    """Registered user; the password hash never leaves the service layer"""
    id: Optional[int] = None
    username: Optional[str] = None
    email: Optional[str] = None
    password_hash: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"


@dataclass(frozen=True)
class Identity:
    """Authenticated caller as carried by a bearer token"""
    user_id: int
    username: str
    email: str


@dataclass
class Flight:
    """Flight with its seat inventory"""
    id: Optional[int] = None
    flight_number: Optional[str] = None
    airline_name: Optional[str] = None
    departure_city: Optional[str] = None
    arrival_city: Optional[str] = None
    departure_time: Optional[datetime] = None
    arrival_time: Optional[datetime] = None
    total_seats: Optional[int] = None
    available_seats: Optional[int] = None
    price: Optional[Decimal] = None
    status: Optional[FlightStatus] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __repr__(self):
        return (f"<Flight(id={self.id}, number='{self.flight_number}', "
                f"route='{self.departure_city}->{self.arrival_city}', "
                f"seats={self.available_seats}/{self.total_seats})>")


@dataclass
class Booking:
    """Booking of one seat on one flight by one user"""
    id: Optional[int] = None
    user_id: Optional[int] = None
    flight_id: Optional[int] = None
    seat_number: Optional[str] = None
    status: Optional[BookingStatus] = None
    total_price: Optional[Decimal] = None
    booking_date: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # For joined queries
    flight: Optional[Flight] = None

    def __repr__(self):
        return (f"<Booking(id={self.id}, flight_id={self.flight_id}, seat='{self.seat_number}', "
                f"status={self.status.value if self.status else None})>")


@dataclass
class BookingStats:
    """Booking counts for one flight, grouped by status"""
    total_bookings: int = 0
    confirmed_bookings: int = 0
    cancelled_bookings: int = 0
    pending_bookings: int = 0


def row_to_user(row) -> Optional[User]:
    """Convert database row to User object"""
    if not row:
        return None
    return User(
        id=row['id'],
        username=row['username'],
        email=row['email'],
        password_hash=row.get('password_hash'),
        first_name=row.get('first_name'),
        last_name=row.get('last_name'),
        phone_number=row.get('phone_number'),
        created_at=row.get('created_at'),
        updated_at=row.get('updated_at')
    )


def row_to_flight(row) -> Optional[Flight]:
    """Convert database row to Flight object"""
    if not row:
        return None
    return Flight(
        id=row['id'],
        flight_number=row['flight_number'],
        airline_name=row['airline_name'],
        departure_city=row['departure_city'],
        arrival_city=row['arrival_city'],
        departure_time=row['departure_time'],
        arrival_time=row['arrival_time'],
        total_seats=row['total_seats'],
        available_seats=row['available_seats'],
        price=row['price'],
        status=FlightStatus(row['status']) if row['status'] else None,
        created_at=row.get('created_at'),
        updated_at=row.get('updated_at')
    )


def row_to_booking(row) -> Optional[Booking]:
    """Convert database row to Booking object"""
    if not row:
        return None
    return Booking(
        id=row['id'],
        user_id=row['user_id'],
        flight_id=row['flight_id'],
        seat_number=row['seat_number'],
        status=BookingStatus(row['status']) if row['status'] else None,
        total_price=row['total_price'],
        booking_date=row.get('booking_date'),
        updated_at=row.get('updated_at')
    )


def row_to_booking_stats(row) -> BookingStats:
    """Convert an aggregate row to BookingStats; missing counts are zero"""
    if not row:
        return BookingStats()
    return BookingStats(
        total_bookings=int(row.get('total_bookings') or 0),
        confirmed_bookings=int(row.get('confirmed_bookings') or 0),
        cancelled_bookings=int(row.get('cancelled_bookings') or 0),
        pending_bookings=int(row.get('pending_bookings') or 0)
    )
