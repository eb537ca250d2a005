"""Database package initialization"""
from .models import (
    User, Identity, Flight, Booking, BookingStats,
    FlightStatus, BookingStatus,
    row_to_user, row_to_flight, row_to_booking, row_to_booking_stats
)
from .database import DatabaseManager

__all__ = [
    'User', 'Identity', 'Flight', 'Booking', 'BookingStats',
    'FlightStatus', 'BookingStatus',
    'row_to_user', 'row_to_flight', 'row_to_booking', 'row_to_booking_stats',
    'DatabaseManager'
]
