"""
Concurrency tests for simultaneous booking scenarios
Tests that the flight row lock prevents overbooking and double booking
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.booking_service import BookingService
from backend.errors import (
    ConflictError, NoSeatsAvailable, SeatAlreadyBooked, SeatLockTimeout
)
from database import BookingStatus
from tests.helpers import confirmed_count, register, schedule_flight


def run_concurrently(fn, args_list, max_workers=None):
    """
    Start every call at once and collect ('success', result) / ('failed', error) pairs
    """
    barrier = threading.Barrier(len(args_list))

    def call(args):
        barrier.wait()
        try:
            return ('success', fn(*args))
        except Exception as e:
            return ('failed', e)

    outcomes = []
    with ThreadPoolExecutor(max_workers=max_workers or len(args_list)) as executor:
        futures = [executor.submit(call, args) for args in args_list]
        for future in as_completed(futures):
            outcomes.append(future.result())
    return outcomes


def split(outcomes):
    successes = [result for status, result in outcomes if status == 'success']
    failures = [result for status, result in outcomes if status == 'failed']
    return successes, failures


class TestConcurrentBooking:
    """Test concurrent booking operations"""

    def create_multiple_users(self, auth_service, count=10):
        """Helper to create multiple test users"""
        return [register(auth_service, f'user{i}') for i in range(count)]

    def test_last_seat_has_exactly_one_winner(self, db_manager, auth_service, booking_service,
                                              flight_service, single_seat_flight):
        """Many users race for the only seat, each asking for a different seat number"""
        users = self.create_multiple_users(auth_service, count=20)
        args = [(user.id, single_seat_flight.id, f'A{i + 1}') for i, user in enumerate(users)]

        successes, failures = split(run_concurrently(booking_service.create_booking, args))

        assert len(successes) == 1
        assert len(failures) == 19
        assert all(isinstance(e, NoSeatsAvailable) for e in failures)

        flight = flight_service.get_flight(single_seat_flight.id)
        assert flight.available_seats == 0
        assert confirmed_count(db_manager, flight.id) == 1

    def test_same_seat_has_exactly_one_winner(self, db_manager, auth_service, booking_service,
                                              flight_service, test_flight):
        """Many users race for the same seat on a roomy flight"""
        users = self.create_multiple_users(auth_service, count=15)
        args = [(user.id, test_flight.id, 'C3') for user in users]

        successes, failures = split(run_concurrently(booking_service.create_booking, args))

        assert len(successes) == 1
        assert all(isinstance(e, SeatAlreadyBooked) for e in failures)
        assert successes[0].seat_number == 'C3'
        assert flight_service.get_flight(test_flight.id).available_seats == test_flight.total_seats - 1

    def test_more_requests_than_seats(self, db_manager, auth_service, booking_service, flight_service):
        """10 seats, 20 concurrent requests for distinct seats"""
        flight = schedule_flight(flight_service, flight_number='TEST001', total_seats=10)
        users = self.create_multiple_users(auth_service, count=20)
        args = [(user.id, flight.id, f'B{i + 1}') for i, user in enumerate(users)]

        successes, failures = split(run_concurrently(booking_service.create_booking, args))

        assert len(successes) == 10
        assert len(failures) == 10
        assert all(isinstance(e, NoSeatsAvailable) for e in failures)

        # Verify no double booking
        seats = [b.seat_number for b in successes]
        assert len(seats) == len(set(seats))

        updated = flight_service.get_flight(flight.id)
        assert updated.available_seats == 0
        assert updated.available_seats + confirmed_count(db_manager, flight.id) == updated.total_seats

    def test_concurrent_cancellations_release_once(self, db_manager, booking_service, flight_service,
                                                   test_user, test_flight):
        """The same booking cancelled from many threads frees one seat"""
        booking = booking_service.create_booking(test_user.id, test_flight.id, 'A1')
        args = [(booking.id, test_user.id)] * 10

        successes, failures = split(run_concurrently(booking_service.cancel_booking, args))

        assert len(successes) == 1
        assert len(failures) == 9
        assert all(isinstance(e, ConflictError) for e in failures)
        assert flight_service.get_flight(test_flight.id).available_seats == test_flight.total_seats

    def test_mixed_bookings_and_cancellations(self, db_manager, auth_service, booking_service,
                                              flight_service):
        """Interleaved bookings and cancellations keep the inventory consistent"""
        flight = schedule_flight(flight_service, flight_number='MIX001', total_seats=8)
        users = self.create_multiple_users(auth_service, count=16)

        held = [booking_service.create_booking(users[i].id, flight.id, f'A{i + 1}') for i in range(4)]

        def cancel(booking):
            return booking_service.cancel_booking(booking.id, booking.user_id)

        def book(user, seat):
            return booking_service.create_booking(user.id, flight.id, seat)

        calls = [(cancel, (b,)) for b in held]
        calls += [(book, (user, f'D{i + 1}')) for i, user in enumerate(users[4:])]

        outcomes = run_concurrently(lambda fn, args: fn(*args), calls)
        _, failures = split(outcomes)
        assert all(isinstance(e, (NoSeatsAvailable, SeatAlreadyBooked)) for e in failures)

        updated = flight_service.get_flight(flight.id)
        confirmed = confirmed_count(db_manager, flight.id)
        assert 0 <= updated.available_seats <= updated.total_seats
        assert updated.available_seats + confirmed == updated.total_seats

    def test_bookings_on_different_flights_do_not_block(self, auth_service, booking_service,
                                                        flight_service):
        flights = [schedule_flight(flight_service, flight_number=f'PAR{i}', total_seats=1)
                   for i in range(5)]
        users = self.create_multiple_users(auth_service, count=5)
        args = [(user.id, flight.id, 'A1') for user, flight in zip(users, flights)]

        successes, failures = split(run_concurrently(booking_service.create_booking, args))

        assert len(successes) == 5
        assert failures == []
        assert all(b.status == BookingStatus.CONFIRMED for b in successes)


class TestLockTimeout:
    """A booking that waits on a held flight lock longer than the lock timeout"""

    def test_lock_timeout_surfaces_as_seat_lock_timeout(self, db_manager, test_user, test_flight):
        impatient = BookingService(db_manager)
        db_manager.lock_timeout_ms = 200

        with db_manager.transaction() as conn:
            with conn.cursor() as cursor:
                cursor.execute("SELECT id FROM flights WHERE id = %s FOR UPDATE", (test_flight.id,))

            with pytest.raises(SeatLockTimeout):
                impatient.create_booking(test_user.id, test_flight.id, 'A1')

        assert confirmed_count(db_manager, test_flight.id) == 0
