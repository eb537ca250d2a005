"""
Test data generator for populating the database with valid entries
Supports generating large datasets for load testing
"""
from datetime import datetime, timedelta
import random
from faker import Faker
from typing import List, Optional
import sys
import os

# Add parent directory to path for imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import DatabaseManager
from backend.auth_service import AuthService
from backend.booking_service import BookingService
from backend.errors import ConflictError, ReservationError
from backend.flight_service import FlightService

SEAT_LETTERS = 'ABCDEF'
GENERATED_PASSWORD = 'password123'


def seat_label(index: int) -> str:
    """Zero-based seat index to a label such as A1, B1, ..., F1, A2"""
    return f"{SEAT_LETTERS[index % len(SEAT_LETTERS)]}{index // len(SEAT_LETTERS) + 1}"


class DataGenerator:
    """Generate realistic test data for the flight booking service"""

    def __init__(self, db_manager: DatabaseManager, seed: Optional[int] = None,
                 jwt_secret: str = 'data-generator', bcrypt_rounds: int = 4):
        """
        Initialize data generator

        Args:
            db_manager: Initialized database manager
            seed: Random seed for reproducibility
            jwt_secret: Secret for the tokens issued on registration (unused afterwards)
            bcrypt_rounds: Low cost factor keeps bulk registration fast
        """
        if seed is not None:
            random.seed(seed)
            Faker.seed(seed)

        self.faker = Faker()
        self.auth = AuthService(db_manager, jwt_secret, bcrypt_rounds=bcrypt_rounds)
        self.flights = FlightService(db_manager)
        self.bookings = BookingService(db_manager)

        # Common airports
        self.airports = [
            ('JFK', 'New York'),
            ('LAX', 'Los Angeles'),
            ('ORD', 'Chicago'),
            ('DFW', 'Dallas'),
            ('DEN', 'Denver'),
            ('SFO', 'San Francisco'),
            ('SEA', 'Seattle'),
            ('LAS', 'Las Vegas'),
            ('MCO', 'Orlando'),
            ('MIA', 'Miami'),
            ('ATL', 'Atlanta'),
            ('BOS', 'Boston'),
            ('IAH', 'Houston'),
            ('PHX', 'Phoenix'),
            ('PHL', 'Philadelphia')
        ]

        self.airlines = [
            ('AA', 'American Airlines'),
            ('UA', 'United Airlines'),
            ('DL', 'Delta Air Lines'),
            ('WN', 'Southwest Airlines'),
            ('BA', 'British Airways'),
            ('LH', 'Lufthansa'),
        ]

        # Seat counts of common narrowbody and widebody cabins
        self.cabin_sizes = [60, 120, 150, 180, 189, 296]

    def generate_users(self, count: int = 100) -> List:
        """
        Generate registered users

        Args:
            count: Number of users to generate

        Returns:
            List of created users
        """
        users = []

        print(f"Generating {count} users...")

        for i in range(count):
            username = f"{self.faker.user_name()[:40]}_{i}"
            try:
                session = self.auth.register_user(
                    username=username,
                    email=self.faker.unique.email(),
                    password=GENERATED_PASSWORD,
                    first_name=self.faker.first_name(),
                    last_name=self.faker.last_name(),
                    # Fits in varchar(20)
                    phone_number=self.faker.bothify(text='+1-###-###-####')[:20],
                )
                users.append(session['user'])

                if (i + 1) % 100 == 0:
                    print(f"  Created {i + 1}/{count} users")

            except ReservationError as e:
                print(f"  Error creating user: {e}")

        print(f"Generated {len(users)} users")
        return users

    def generate_flights(self, count: int = 100, days_ahead: int = 30) -> List:
        """
        Generate flights

        Args:
            count: Number of flights to generate
            days_ahead: Number of days ahead to schedule flights

        Returns:
            List of created flights
        """
        flights = []

        print(f"Generating {count} flights...")

        for i in range(count):
            # Random route
            origin_code, origin_city = random.choice(self.airports)
            dest_code, dest_city = random.choice(self.airports)

            # Ensure origin != destination
            while dest_code == origin_code:
                dest_code, dest_city = random.choice(self.airports)

            # Random departure time in next N days
            days_offset = random.randint(0, days_ahead)
            hour = random.randint(0, 23)
            minute = random.choice([0, 15, 30, 45])
            departure = (datetime.now() + timedelta(days=days_offset)).replace(
                hour=hour, minute=minute, second=0, microsecond=0)

            # Flight duration 1-8 hours
            arrival = departure + timedelta(hours=random.randint(1, 8))

            airline_code, airline_name = random.choice(self.airlines)
            flight_number = f"{airline_code}{random.randint(100, 9999)}"

            try:
                flight = self.flights.create_flight(
                    flight_number=flight_number,
                    airline_name=airline_name,
                    departure_city=origin_city,
                    arrival_city=dest_city,
                    departure_time=departure,
                    arrival_time=arrival,
                    total_seats=random.choice(self.cabin_sizes),
                    price=round(random.uniform(100, 500), 2),
                )
                flights.append(flight)

                if (i + 1) % 50 == 0:
                    print(f"  Created {i + 1}/{count} flights")

            except ReservationError as e:
                # Random flight numbers occasionally collide
                print(f"  Error creating flight: {e}")

        print(f"Generated {len(flights)} flights")
        return flights

    def generate_bookings(self, user_ids: list, flights: list, count: int = 1000,
                          cancel_rate: float = 0.05, max_attempt_multiplier: float = 3.0):
        """
        Generate bookings, cancelling a fraction of them

        Args:
            user_ids: List of user IDs
            flights: List of flights to book on
            count: Number of bookings to generate
            cancel_rate: Fraction of created bookings to cancel again (0.0 - 1.0)
            max_attempt_multiplier: Retry multiplier to ensure requested volume

        Returns:
            Tuple of (booking_ids, cancelled_ids) lists
        """
        booking_ids = []
        cancelled_ids = []

        print(f"Generating {count} bookings...")

        attempts = 0
        max_attempts = max(count, int(count * max(1.0, max_attempt_multiplier)))

        while len(booking_ids) < count and attempts < max_attempts:
            attempts += 1
            user_id = random.choice(user_ids)
            flight = random.choice(flights)
            seat_number = seat_label(random.randrange(flight.total_seats))

            try:
                booking = self.bookings.create_booking(user_id, flight.id, seat_number)
            except ConflictError:
                # Seat taken or flight full
                continue
            except ReservationError as e:
                print(f"  Error creating booking: {e}")
                continue

            booking_ids.append(booking.id)

            if random.random() < cancel_rate:
                self.bookings.cancel_booking(booking.id, user_id)
                cancelled_ids.append(booking.id)

            if len(booking_ids) % 500 == 0:
                print(f"  Created {len(booking_ids)}/{count} bookings")

        if len(booking_ids) < count:
            print(
                f"Warning: requested {count} bookings but only created {len(booking_ids)}"
                f" after {attempts} attempts. Consider increasing flight capacity."
            )

        print(f"Generated {len(booking_ids)} bookings ({len(cancelled_ids)} cancelled)")
        return booking_ids, cancelled_ids

    def generate_dataset(self, num_users: int = 200, num_flights: int = 150,
                         num_bookings: int = 500, days_ahead: int = 60):
        """
        Generate a complete dataset

        Returns:
            Dictionary with all generated data
        """
        print("=" * 60)
        print(f"GENERATING DATASET ({num_bookings:,} bookings)")
        print("=" * 60)

        users = self.generate_users(count=num_users)
        flights = self.generate_flights(count=num_flights, days_ahead=days_ahead)

        booking_ids, cancelled_ids = [], []
        if users and flights:
            booking_ids, cancelled_ids = self.generate_bookings(
                user_ids=[u.id for u in users],
                flights=flights,
                count=num_bookings,
            )

        print("=" * 60)
        print("DATASET GENERATION COMPLETE")
        print("=" * 60)
        print(f"Users: {len(users)}")
        print(f"Flights: {len(flights)}")
        print(f"Bookings: {len(booking_ids)}")
        print(f"Cancelled: {len(cancelled_ids)}")
        print("=" * 60)

        return {
            'users': users,
            'flights': flights,
            'booking_ids': booking_ids,
            'cancelled_ids': cancelled_ids,
        }


def main():
    """Main function for command-line usage"""
    import argparse

    parser = argparse.ArgumentParser(description='Generate test data for the flight booking service')
    parser.add_argument('--type', choices=['sample', 'large'], default='sample',
                        help='Type of dataset to generate')
    parser.add_argument('--users', type=int, default=10000,
                        help='Number of users for large dataset')
    parser.add_argument('--flights', type=int, default=500,
                        help='Number of flights for large dataset')
    parser.add_argument('--bookings', type=int, default=100000,
                        help='Number of bookings for large dataset')
    parser.add_argument('--database-url', help='Overrides DATABASE_URL')
    parser.add_argument('--seed', type=int, help='Random seed for reproducibility')

    args = parser.parse_args()

    with DatabaseManager(database_url=args.database_url) as db_manager:
        db_manager.create_tables()
        generator = DataGenerator(db_manager, seed=args.seed)

        if args.type == 'sample':
            generator.generate_dataset()
        else:
            generator.generate_dataset(
                num_users=args.users,
                num_flights=args.flights,
                num_bookings=args.bookings,
                days_ahead=180,
            )


if __name__ == '__main__':
    main()
