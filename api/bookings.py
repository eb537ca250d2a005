"""Booking endpoints: create, list, view, cancel, statistics."""
from flask import Blueprint, g, jsonify, request

from api.auth import get_services, token_required
from api.serializers import booking_to_json, stats_to_json

bookings_blueprint = Blueprint("bookings", __name__, url_prefix="/api/bookings")


@bookings_blueprint.route("", methods=["POST"])
@token_required
def create_booking():
    """Book a seat for the authenticated user. Body: {flightId, seatNumber}"""
    body = request.get_json(silent=True) or {}
    booking = get_services().bookings.create_booking(
        user_id=g.identity.user_id,
        flight_id=body.get("flightId"),
        seat_number=body.get("seatNumber"),
    )
    return jsonify({
        "success": True,
        "message": "Booking created successfully",
        "data": booking_to_json(booking),
    }), 201


@bookings_blueprint.route("", methods=["GET"])
@token_required
def list_bookings():
    bookings = get_services().bookings.get_user_bookings(g.identity.user_id)
    return jsonify({
        "success": True,
        "message": "Bookings retrieved successfully",
        "data": [booking_to_json(b) for b in bookings],
        "count": len(bookings),
    }), 200


@bookings_blueprint.route("/<booking_id>", methods=["GET"])
@token_required
def get_booking(booking_id):
    booking = get_services().bookings.get_booking_by_id(booking_id, g.identity.user_id)
    return jsonify({
        "success": True,
        "message": "Booking retrieved successfully",
        "data": booking_to_json(booking),
    }), 200


@bookings_blueprint.route("/<booking_id>", methods=["DELETE"])
@token_required
def cancel_booking(booking_id):
    result = get_services().bookings.cancel_booking(booking_id, g.identity.user_id)
    return jsonify({"success": True, "message": result["message"]}), 200


@bookings_blueprint.route("/flight/<flight_id>/stats", methods=["GET"])
def flight_stats(flight_id):
    stats = get_services().bookings.get_flight_booking_stats(flight_id)
    return jsonify({
        "success": True,
        "message": "Booking statistics retrieved",
        "data": stats_to_json(stats),
    }), 200
