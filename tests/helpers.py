"""Shared helpers for the database-backed tests."""
from datetime import datetime, timedelta

import pytest

from database import DatabaseManager

TEST_PASSWORD = 'password123'


def open_test_database(url, **pool_options):
    """Open a pool on ``url`` or skip the calling test when PostgreSQL is unreachable."""
    db = DatabaseManager(database_url=url, **pool_options)
    try:
        db.initialize_pool()
    except RuntimeError as e:
        pytest.skip(f"PostgreSQL not available at {url}: {e}")
    return db


def register(auth_service, username, email=None):
    """Register a user and return it"""
    session = auth_service.register_user(
        username=username,
        email=email or f'{username}@example.com',
        password=TEST_PASSWORD,
        first_name='Test',
        last_name='User',
    )
    return session['user']


def schedule_flight(flight_service, flight_number='AA1234', total_seats=150, price='200.00',
                    departure_city='New York', arrival_city='Los Angeles', days_ahead=7):
    """Create an ACTIVE flight departing ``days_ahead`` days from now"""
    departure = (datetime.now() + timedelta(days=days_ahead)).replace(microsecond=0)
    return flight_service.create_flight(
        flight_number=flight_number,
        airline_name='Test Airways',
        departure_city=departure_city,
        arrival_city=arrival_city,
        departure_time=departure,
        arrival_time=departure + timedelta(hours=3),
        total_seats=total_seats,
        price=price,
    )


def confirmed_count(db_manager, flight_id):
    with db_manager.get_cursor() as cursor:
        cursor.execute(
            "SELECT COUNT(*) AS n FROM bookings WHERE flight_id = %s AND status = 'CONFIRMED'",
            (flight_id,),
        )
        return cursor.fetchone()['n']
