from __future__ import annotations
from functools import wraps
from flask import request, g, current_app

from models.user import Role
from utils.auth_errors import AuthError, AuthErrorKind
from utils.gates import Guard


def get_guard() -> Guard:
    return current_app.extensions["guard"]


def refresh_cookie() -> str | None:
    return request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"])


def jwt_required():
    """
    Authorization gate then ban gate. On success `g.current_user_id` is set; when
    the access token had to be renewed, `g.renewed_tokens` holds the new pair and
    the app's after_request hook writes it into the response.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            guard = get_guard()
            identity = guard.authorization.authorize(
                request.headers.get("Authorization"), refresh_cookie()
            )
            if identity.renewed is not None:
                g.renewed_tokens = identity.renewed
            guard.ban_gate.check(identity.user_id)
            g.current_user_id = identity.user_id
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def roles_required(role: Role):
    """
    Allow access only if the caller's stored role is `role`.
    The role is read from the database on every request, never from the token.
    """
    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            get_guard().role_gate.check(g.current_user_id, role)
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def guest_only():
    """Reject callers that already hold a valid access token (409)."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if get_guard().authorization.is_authenticated(request.headers.get("Authorization")):
                raise AuthError(AuthErrorKind.ALREADY_AUTHENTICATED)
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def refresh_token_required():
    """Routes that act on the refresh cookie itself (refresh, logout)."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = refresh_cookie()
            if not token:
                raise AuthError(AuthErrorKind.MISSING_REFRESH)
            g.refresh_token = token
            return fn(*args, **kwargs)

        return wrapper

    return decorator
