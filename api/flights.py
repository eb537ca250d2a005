"""Flight catalog endpoints."""
from flask import Blueprint, jsonify, request

from api.auth import get_services, token_required
from api.serializers import flight_to_json

flights_blueprint = Blueprint("flights", __name__, url_prefix="/api/flights")


def _flight_list(flights, message):
    return jsonify({
        "success": True,
        "message": message,
        "data": [flight_to_json(f) for f in flights],
        "count": len(flights),
    }), 200


@flights_blueprint.route("", methods=["GET"])
def list_flights():
    return _flight_list(get_services().flights.list_active_flights(), "Flights retrieved successfully")


@flights_blueprint.route("/<flight_id>", methods=["GET"])
def get_flight(flight_id):
    flight = get_services().flights.get_flight(flight_id)
    return jsonify({"success": True, "message": "Flight retrieved successfully",
                    "data": flight_to_json(flight)}), 200


@flights_blueprint.route("/search", methods=["POST"])
def search_flights():
    """Body: {departureCity, arrivalCity, departureDate?}"""
    body = request.get_json(silent=True) or {}
    flights = get_services().flights.search_flights(
        departure_city=body.get("departureCity"),
        arrival_city=body.get("arrivalCity"),
        departure_date=body.get("departureDate"),
    )
    return _flight_list(flights, "Flights found")


@flights_blueprint.route("/<flight_id>/booked-seats", methods=["GET"])
def booked_seats(flight_id):
    seats = get_services().flights.get_booked_seats(flight_id)
    return jsonify({"success": True, "message": "Booked seats retrieved",
                    "data": seats, "count": len(seats)}), 200


@flights_blueprint.route("", methods=["POST"])
@token_required
def create_flight():
    body = request.get_json(silent=True) or {}
    flight = get_services().flights.create_flight(
        flight_number=body.get("flightNumber"),
        airline_name=body.get("airlineName"),
        departure_city=body.get("departureCity"),
        arrival_city=body.get("arrivalCity"),
        departure_time=body.get("departureTime"),
        arrival_time=body.get("arrivalTime"),
        total_seats=body.get("totalSeats"),
        price=body.get("price"),
    )
    return jsonify({"success": True, "message": "Flight created successfully",
                    "data": flight_to_json(flight)}), 201


@flights_blueprint.route("/<flight_id>", methods=["PUT"])
@token_required
def update_flight(flight_id):
    body = request.get_json(silent=True) or {}
    flight = get_services().flights.update_flight(
        flight_id,
        airline_name=body.get("airlineName"),
        price=body.get("price"),
        status=body.get("status"),
    )
    return jsonify({"success": True, "message": "Flight updated successfully",
                    "data": flight_to_json(flight)}), 200
