"""Services wired to one explicitly owned database manager."""
import logging
from dataclasses import dataclass

from backend.auth_service import AuthService
from backend.booking_service import BookingService
from backend.flight_service import FlightService
from database import DatabaseManager

_logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Holds the pool owner and the services built on top of it."""
    db_manager: DatabaseManager
    auth: AuthService
    flights: FlightService
    bookings: BookingService

    @classmethod
    def from_config(cls, config) -> "ServiceContainer":
        """Open the pool and build every service from ``config``."""
        db_manager = DatabaseManager(database_url=config.DATABASE_URL)
        db_manager.initialize_pool()
        if config.INIT_SCHEMA:
            db_manager.create_tables()
            _logger.info("Database schema ensured")

        return cls(
            db_manager=db_manager,
            auth=AuthService(db_manager, config.JWT_SECRET,
                             jwt_expiration=config.jwt_expiration(),
                             bcrypt_rounds=config.BCRYPT_ROUNDS),
            flights=FlightService(db_manager),
            bookings=BookingService(db_manager),
        )

    def shutdown(self) -> None:
        self.db_manager.close_all_connections()
