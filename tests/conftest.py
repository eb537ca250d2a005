"""Pytest configuration and fixtures."""
import os
import sys
from unittest.mock import MagicMock

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import User
from backend.auth_service import AuthService
from backend.booking_service import BookingService
from backend.flight_service import FlightService
from api import create_app
from api.config import TestingConfig
from api.container import ServiceContainer
from tests.helpers import open_test_database, register, schedule_flight


def pytest_addoption(parser):
    """Register custom CLI options for the test suite."""
    parser.addoption(
        "--performance",
        action="store_true",
        default=False,
        help="Run the performance test suite",
    )
    parser.addoption(
        "--performance-users",
        type=int,
        default=200,
        help="Number of users to generate for performance tests",
    )
    parser.addoption(
        "--performance-flights",
        type=int,
        default=50,
        help="Number of flights to generate for performance tests",
    )
    parser.addoption(
        "--performance-bookings",
        type=int,
        default=2000,
        help="Number of bookings to generate for performance tests",
    )


def pytest_configure(config):
    """Declare custom markers to avoid pytest warnings."""
    config.addinivalue_line(
        "markers",
        "performance: marks performance tests that only run when --performance is supplied",
    )


def pytest_collection_modifyitems(config, items):
    """Skip performance tests unless the dedicated flag is present."""
    if config.getoption("--performance"):
        return

    skip_marker = pytest.mark.skip(
        reason="Performance tests only run when --performance flag is provided",
    )
    for item in items:
        if "performance" in item.keywords:
            item.add_marker(skip_marker)


@pytest.fixture(scope='function')
def db_manager():
    """Create a test database manager with PostgreSQL test database."""
    # Use environment variable or default to local test database
    test_db_url = os.getenv('TEST_DATABASE_URL', 'postgresql://localhost/flight_booking_test')
    db = open_test_database(test_db_url, min_connections=1, max_connections=30, pool_timeout=10)
    db.drop_tables()  # Clean slate for each test
    db.create_tables()
    yield db
    db.drop_tables()  # Cleanup after test
    db.close_all_connections()


@pytest.fixture(scope='function')
def auth_service(db_manager):
    return AuthService(db_manager, TestingConfig.JWT_SECRET, bcrypt_rounds=TestingConfig.BCRYPT_ROUNDS)


@pytest.fixture(scope='function')
def flight_service(db_manager):
    return FlightService(db_manager)


@pytest.fixture(scope='function')
def booking_service(db_manager):
    return BookingService(db_manager)


@pytest.fixture(scope='function')
def test_user(auth_service):
    """Create a test user"""
    return register(auth_service, 'john_doe', 'john@example.com')


@pytest.fixture(scope='function')
def other_user(auth_service):
    """A second user for ownership checks"""
    return register(auth_service, 'jane_doe', 'jane@example.com')


@pytest.fixture(scope='function')
def test_flight(flight_service):
    """Create a test flight"""
    return schedule_flight(flight_service)


@pytest.fixture(scope='function')
def single_seat_flight(flight_service):
    """A flight with exactly one seat"""
    return schedule_flight(flight_service, flight_number='SS0001', total_seats=1, price='99.50')


# API fixtures: services are mocks, except token handling which is real

@pytest.fixture
def services():
    db_manager = MagicMock(name='db_manager')
    db_manager.ping.return_value = True
    return ServiceContainer(
        db_manager=db_manager,
        auth=AuthService(db_manager, TestingConfig.JWT_SECRET, bcrypt_rounds=TestingConfig.BCRYPT_ROUNDS),
        flights=MagicMock(name='flights'),
        bookings=MagicMock(name='bookings'),
    )


@pytest.fixture
def app(services):
    app = create_app(TestingConfig, services=services)
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(services):
    """Bearer header for user 7"""
    token = services.auth.issue_token(User(id=7, username='john_doe', email='john@example.com'))
    return {'Authorization': f'Bearer {token}'}
