"""User endpoints: registration, login and profile."""
from flask import Blueprint, g, jsonify, request

from api.auth import get_services, token_required
from api.serializers import session_to_json, user_to_json
from backend.errors import ValidationError

users_blueprint = Blueprint("users", __name__, url_prefix="/api/users")


@users_blueprint.route("/register", methods=["POST"])
def register():
    body = request.get_json(silent=True) or {}
    session = get_services().auth.register_user(
        username=body.get("username"),
        email=body.get("email"),
        password=body.get("password"),
        first_name=body.get("firstName"),
        last_name=body.get("lastName"),
        phone_number=body.get("phoneNumber"),
    )
    return jsonify({"success": True, "message": "User registered successfully",
                    "data": session_to_json(session)}), 201


@users_blueprint.route("/login", methods=["POST"])
def login():
    """Body: {username, password}; ``username`` may also be an email."""
    body = request.get_json(silent=True) or {}
    session = get_services().auth.login_user(body.get("username"), body.get("password"))
    return jsonify({"success": True, "message": "Login successful",
                    "data": session_to_json(session)}), 200


@users_blueprint.route("/profile", methods=["GET"])
@token_required
def get_profile():
    user = get_services().auth.get_user_profile(g.identity.user_id)
    return jsonify({"success": True, "message": "Profile retrieved successfully",
                    "data": user_to_json(user)}), 200


@users_blueprint.route("/profile", methods=["PUT"])
@token_required
def update_profile():
    body = request.get_json(silent=True) or {}
    user = get_services().auth.update_user_profile(
        g.identity.user_id,
        first_name=body.get("firstName"),
        last_name=body.get("lastName"),
        phone_number=body.get("phoneNumber"),
    )
    return jsonify({"success": True, "message": "Profile updated successfully",
                    "data": user_to_json(user)}), 200


@users_blueprint.route("/change-password", methods=["POST"])
@token_required
def change_password():
    body = request.get_json(silent=True) or {}
    old_password = body.get("oldPassword")
    new_password = body.get("newPassword")
    if not old_password or not new_password:
        raise ValidationError("Old password and new password are required")

    result = get_services().auth.change_password(g.identity.user_id, old_password, new_password)
    return jsonify({"success": True, "message": result["message"]}), 200
