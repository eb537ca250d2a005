"""JSON shapes returned by the API (camelCase keys)."""
from decimal import Decimal


def _money(value):
    return float(value) if isinstance(value, Decimal) else value


def _timestamp(value):
    return value.isoformat() if value is not None else None


def user_to_json(user):
    return {
        "userId": user.id,
        "username": user.username,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "phoneNumber": user.phone_number,
        "createdAt": _timestamp(user.created_at),
    }


def session_to_json(session):
    """Registration/login result: the user plus a token."""
    user = session["user"]
    return {
        "userId": user.id,
        "username": user.username,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "token": session["token"],
    }


def flight_to_json(flight):
    return {
        "flightId": flight.id,
        "flightNumber": flight.flight_number,
        "airlineName": flight.airline_name,
        "departureCity": flight.departure_city,
        "arrivalCity": flight.arrival_city,
        "departureTime": _timestamp(flight.departure_time),
        "arrivalTime": _timestamp(flight.arrival_time),
        "totalSeats": flight.total_seats,
        "availableSeats": flight.available_seats,
        "price": _money(flight.price),
        "status": flight.status.value if flight.status else None,
    }


def booking_to_json(booking):
    flight = booking.flight
    return {
        "bookingId": booking.id,
        "userId": booking.user_id,
        "flightId": booking.flight_id,
        "flightNumber": flight.flight_number if flight else None,
        "airlineName": flight.airline_name if flight else None,
        "departureCity": flight.departure_city if flight else None,
        "arrivalCity": flight.arrival_city if flight else None,
        "departureTime": _timestamp(flight.departure_time) if flight else None,
        "arrivalTime": _timestamp(flight.arrival_time) if flight else None,
        "seatNumber": booking.seat_number,
        "bookingStatus": booking.status.value if booking.status else None,
        "totalPrice": _money(booking.total_price),
        "bookingDate": _timestamp(booking.booking_date),
    }


def stats_to_json(stats):
    return {
        "totalBookings": stats.total_bookings,
        "confirmedBookings": stats.confirmed_bookings,
        "cancelledBookings": stats.cancelled_bookings,
        "pendingBookings": stats.pending_bookings,
    }
