# Overview: Flask API routes for user accounts; parses input and returns JSON responses.

"""User account routes. Password hashes never appear in responses."""

from flask import Blueprint, jsonify

from ..decorators import error_response, handle_service_errors, json_body
from ..models import User
from ..services import user_service
from ..validation import ModelValidationPolicy, ValidationError, validate_payload, enforce_rules_user

USER_POLICY = ModelValidationPolicy(
    writable_fields={"username", "email", "role"},
    required_on_create={"username", "email", "role"},
)

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@handle_service_errors("fetch users")
def list_users():
    return jsonify(user_service.list_users()), 200


@users_bp.get("/<int:user_id>")
@handle_service_errors("fetch user")
def get_user_route(user_id: int):
    return jsonify(user_service.get_user(user_id).to_dict()), 200


@users_bp.post("")
@handle_service_errors("create user")
def create_user_route():
    payload = dict(json_body())
    password = payload.pop("password", None)
    if not password:
        raise ValidationError("Missing required fields: password")
    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=False)
    enforce_rules_user(patch)
    user = user_service.create_user(patch=patch, password=password)
    return jsonify(user.to_dict()), 201


@users_bp.put("/<int:user_id>")
@handle_service_errors("update user")
def update_user_route(user_id: int):
    payload = dict(json_body())
    password = payload.pop("password", None) or None
    patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=True)
    enforce_rules_user(patch)
    user = user_service.update_user(user_id=user_id, patch=patch, password=password)
    return jsonify(user.to_dict()), 200


@users_bp.delete("/<int:user_id>")
@handle_service_errors("delete user")
def delete_user_route(user_id: int):
    user_service.delete_user(user_id=user_id)
    return jsonify({"message": "User deleted successfully"}), 200


@users_bp.post("/authenticate")
@handle_service_errors("authenticate")
def authenticate_route():
    """Check credentials. Returns the user record; issuing sessions happens elsewhere."""
    payload = json_body()
    user = user_service.authenticate(payload.get("username"), payload.get("password"))
    if user is None:
        return error_response("Invalid credentials", "auth", 401)
    return jsonify({"user": user.to_dict()}), 200
