"""Application configuration with environment-based settings."""
import os
from datetime import timedelta
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


class Config:
    """Base configuration read from the environment."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "postgresql://localhost/flight_booking")
    INIT_SCHEMA: bool = os.getenv("INIT_SCHEMA", "true").lower() == "true"

    # Authentication
    JWT_SECRET: Optional[str] = os.getenv("JWT_SECRET")
    JWT_EXPIRATION_HOURS: int = int(os.getenv("JWT_EXPIRATION_HOURS", "24"))
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "10"))

    # Application
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3000"))
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    TESTING: bool = False
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    ENVIRONMENT: str = "development"
    CORS_ORIGINS: list = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",")]

    @classmethod
    def jwt_expiration(cls) -> timedelta:
        return timedelta(hours=cls.JWT_EXPIRATION_HOURS)

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration values."""
        missing = [name for name, value in (("JWT_SECRET", cls.JWT_SECRET),) if not value]
        if missing:
            raise ValueError(f"Missing required environment variables: {', '.join(missing)}")


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    JWT_SECRET = Config.JWT_SECRET or "dev-secret-change-me"


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    INIT_SCHEMA = False
    ENVIRONMENT = "production"


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    JWT_SECRET = "test-secret"
    BCRYPT_ROUNDS = 4
    DATABASE_URL = os.getenv("TEST_DATABASE_URL", "postgresql://localhost/flight_booking_test")
    ENVIRONMENT = "testing"


def get_config() -> type:
    """Pick the configuration class from FLASK_ENV."""
    env = os.getenv("FLASK_ENV", "development").lower()

    config_map = {
        "development": DevelopmentConfig,
        "production": ProductionConfig,
        "testing": TestingConfig,
    }

    return config_map.get(env, DevelopmentConfig)
