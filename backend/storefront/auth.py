# Overview: Adapter for the external authentication provider.

"""
Authentication collaborator.

The order engine only needs to know whether a caller is signed in, whether
they are an admin, and their email. Identity itself is owned by an
external provider; this module reads the identity that provider (or the
development sign-in route) placed in the Flask session.

Admin rule: the email is listed in ADMIN_EMAILS. Nothing else grants admin.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from flask import current_app, session

from .services.normalization import normalize_email

SESSION_EMAIL_KEY = "auth_email"
SESSION_USER_ID_KEY = "auth_user_id"


@dataclass(frozen=True)
class AuthState:
    is_authenticated: bool = False
    is_admin: bool = False
    email: Optional[str] = None
    user_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "is_authenticated": self.is_authenticated,
            "is_admin": self.is_admin,
            "email": self.email,
        }


ANONYMOUS = AuthState()


def is_admin_email(email, admin_emails=None) -> bool:
    normalized = normalize_email(email)
    if not normalized:
        return False
    if admin_emails is None:
        admin_emails = current_app.config.get("ADMIN_EMAILS", [])
    return normalized in {normalize_email(e) for e in admin_emails}


def auth_state_for(email, user_id=None, admin_emails=None) -> AuthState:
    normalized = normalize_email(email)
    if not normalized:
        return ANONYMOUS
    return AuthState(
        is_authenticated=True,
        is_admin=is_admin_email(normalized, admin_emails),
        email=normalized,
        user_id=str(user_id) if user_id is not None else None,
    )


def resolve_auth_state() -> AuthState:
    return auth_state_for(session.get(SESSION_EMAIL_KEY), session.get(SESSION_USER_ID_KEY))


def sign_in(email, user_id=None) -> AuthState:
    state = auth_state_for(email, user_id)
    if not state.is_authenticated:
        sign_out()
        return state
    session[SESSION_EMAIL_KEY] = state.email
    if state.user_id is not None:
        session[SESSION_USER_ID_KEY] = state.user_id
    else:
        session.pop(SESSION_USER_ID_KEY, None)
    return state


def sign_out() -> None:
    session.pop(SESSION_EMAIL_KEY, None)
    session.pop(SESSION_USER_ID_KEY, None)
