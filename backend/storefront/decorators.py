# Overview: Request decorators for API routes (customer and admin capability checks).

from functools import wraps
from flask import jsonify, g

from .auth import resolve_auth_state


def _load_auth():
    g.auth = resolve_auth_state()
    return g.auth


def require_customer(f):
    """
    Require a signed-in customer.

    Sets g.auth (AuthState). Returns 401 with a sign-in hint otherwise, so
    clients can redirect instead of showing a stock or order error.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth = _load_auth()
        if not auth.is_authenticated or not auth.email:
            return jsonify({"error": "Authentication required", "kind": "unauthenticated"}), 401
        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """
    Require an admin identity.

    Authorization happens here, at the HTTP edge; the services below trust
    their callers and only use the admin email as the timeline actor label.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth = _load_auth()
        if not auth.is_authenticated:
            return jsonify({"error": "Authentication required", "kind": "unauthenticated"}), 401
        if not auth.is_admin:
            return jsonify({"error": "Permission denied", "required_permission": "ADMIN"}), 403
        return f(*args, **kwargs)

    return decorated_function
