"""
Request validation shared by the services and the HTTP layer

Everything here runs before a connection is taken from the pool.
"""
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation

from backend.errors import ValidationError
from database import FlightStatus

SEAT_NUMBER_PATTERN = re.compile(r'^[A-Z][0-9]+$')
USERNAME_PATTERN = re.compile(r'^[a-zA-Z0-9_-]+$')
EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
MAX_CITY_LENGTH = 50
# bcrypt only reads the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


def parse_positive_id(value, field='ID'):
    """Coerce ``value`` to a positive int or raise ValidationError"""
    if isinstance(value, bool) or value is None or value == '':
        raise ValidationError(f"{field} is required")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a positive number")
    if isinstance(value, float) and value != number:
        raise ValidationError(f"{field} must be a positive number")
    if number <= 0:
        raise ValidationError(f"{field} must be a positive number")
    return number


def is_valid_seat_number(seat_number) -> bool:
    return isinstance(seat_number, str) and SEAT_NUMBER_PATTERN.fullmatch(seat_number) is not None


def validate_booking_request(user_id, flight_id, seat_number):
    """
    Validate a booking request

    Returns:
        Tuple of (user_id, flight_id, seat_number) normalized

    Raises:
        ValidationError: With one message per problem found
    """
    if user_id is None or flight_id is None or not seat_number:
        raise ValidationError("User ID, flight ID, and seat number are required")

    errors = []
    parsed = {}
    for field, label, value in (('user_id', 'User ID', user_id), ('flight_id', 'Flight ID', flight_id)):
        try:
            parsed[field] = parse_positive_id(value, label)
        except ValidationError as e:
            errors.append(e.message)

    if not is_valid_seat_number(seat_number):
        errors.append("Invalid seat number format (e.g., A1, B12)")

    if errors:
        raise ValidationError("Validation failed" if len(errors) > 1 else None, errors)

    return parsed['user_id'], parsed['flight_id'], seat_number


def validate_registration(username, email, password):
    errors = []

    if not username:
        errors.append("Username is required")
    elif not isinstance(username, str):
        errors.append("Username must be a string")
    elif len(username) < 3:
        errors.append("Username must be at least 3 characters")
    elif len(username) > 50:
        errors.append("Username must not exceed 50 characters")
    elif not USERNAME_PATTERN.fullmatch(username):
        errors.append("Username can only contain letters, numbers, underscores, and hyphens")

    if not email:
        errors.append("Email is required")
    elif not isinstance(email, str):
        errors.append("Email must be a string")
    elif not EMAIL_PATTERN.fullmatch(email):
        errors.append("Invalid email format")

    errors.extend(password_problems(password))

    if errors:
        raise ValidationError("Validation failed", errors)


def password_problems(password, label="Password"):
    if not password:
        return [f"{label} is required"]
    if not isinstance(password, str):
        return [f"{label} must be a string"]
    if len(password) < 8:
        return [f"{label} must be at least 8 characters"]
    if len(password.encode('utf-8')) > MAX_PASSWORD_BYTES:
        return [f"{label} must not exceed {MAX_PASSWORD_BYTES} bytes"]
    return []


def validate_flight_search(departure_city, arrival_city):
    errors = []

    if not departure_city:
        errors.append("Departure city is required")
    elif not isinstance(departure_city, str):
        errors.append("Departure city must be a string")
    elif len(departure_city) > MAX_CITY_LENGTH:
        errors.append(f"Departure city must not exceed {MAX_CITY_LENGTH} characters")

    if not arrival_city:
        errors.append("Arrival city is required")
    elif not isinstance(arrival_city, str):
        errors.append("Arrival city must be a string")
    elif len(arrival_city) > MAX_CITY_LENGTH:
        errors.append(f"Arrival city must not exceed {MAX_CITY_LENGTH} characters")

    both_text = isinstance(departure_city, str) and isinstance(arrival_city, str)
    if both_text and departure_city and arrival_city and departure_city.lower() == arrival_city.lower():
        errors.append("Departure and arrival cities must be different")

    if errors:
        raise ValidationError("Validation failed", errors)


def parse_price(value):
    """Positive money amount as Decimal"""
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("Price must be a number")
    if not price.is_finite() or price <= 0:
        raise ValidationError("Price must be greater than 0")
    return price.quantize(Decimal('0.01'))


def parse_flight_status(value):
    try:
        return value if isinstance(value, FlightStatus) else FlightStatus(str(value).upper())
    except ValueError:
        raise ValidationError("Invalid flight status")


def parse_datetime(value, field):
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"{field} must be an ISO 8601 timestamp")


def validate_new_flight(flight_number, airline_name, departure_city, arrival_city,
                        departure_time, arrival_time, total_seats, price):
    """
    Validate and normalize the fields of a new flight

    Returns:
        Dict of normalized column values
    """
    required = {
        'flight number': flight_number, 'airline name': airline_name,
        'departure city': departure_city, 'arrival city': arrival_city,
        'departure time': departure_time, 'arrival time': arrival_time,
        'total seats': total_seats, 'price': price,
    }
    missing = [name for name, value in required.items() if value in (None, '')]
    if missing:
        raise ValidationError("All flight fields are required",
                              [f"Missing {name}" for name in missing])

    text_fields = {'Flight number': flight_number, 'Airline name': airline_name,
                   'Departure city': departure_city, 'Arrival city': arrival_city}
    not_text = [f"{name} must be a string" for name, value in text_fields.items()
                if not isinstance(value, str)]
    if not_text:
        raise ValidationError("Validation failed", not_text)

    try:
        seats = int(total_seats)
    except (TypeError, ValueError):
        raise ValidationError("Total seats must be a whole number")
    if seats <= 0:
        raise ValidationError("Total seats must be greater than 0")

    departure = parse_datetime(departure_time, "Departure time")
    arrival = parse_datetime(arrival_time, "Arrival time")
    if arrival <= departure:
        raise ValidationError("Arrival time must be after departure time")

    return {
        'flight_number': flight_number.strip().upper(),
        'airline_name': airline_name.strip(),
        'departure_city': departure_city.strip(),
        'arrival_city': arrival_city.strip(),
        'departure_time': departure,
        'arrival_time': arrival,
        'total_seats': seats,
        'price': parse_price(price),
    }
