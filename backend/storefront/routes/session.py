# backend/storefront/routes/session.py
"""
Development sign-in.

Identity is owned by an external provider. These routes let a client (or
a test) place an email into the Flask session so the capability checks in
decorators.py have something to read. Off unless SESSION_LOGIN_ENABLED is set.
"""

from flask import Blueprint, current_app, jsonify, request

from ..auth import resolve_auth_state, sign_in, sign_out
from ..validation import PayloadPolicy, ValidationError, coerce_str, validate_payload


session_bp = Blueprint("session", __name__, url_prefix="/api/session")

SIGN_IN_POLICY = PayloadPolicy(
    fields={"email": coerce_str, "user_id": coerce_str},
    required={"email"},
)


@session_bp.post("")
def sign_in_route():
    if not current_app.config.get("SESSION_LOGIN_ENABLED", False):
        return jsonify({"error": "Sign-in is handled by the identity provider"}), 404

    try:
        data = validate_payload(request.get_json(silent=True), SIGN_IN_POLICY)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    if "@" not in data["email"]:
        return jsonify({"error": "email must be an email address"}), 400

    state = sign_in(data["email"], data.get("user_id"))
    return jsonify({"session": state.to_dict()}), 200


@session_bp.get("")
def current_session_route():
    return jsonify({"session": resolve_auth_state().to_dict()}), 200


@session_bp.delete("")
def sign_out_route():
    sign_out()
    return jsonify({"session": resolve_auth_state().to_dict()}), 200
