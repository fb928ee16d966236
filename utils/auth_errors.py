"""
The closed set of failures the token lifecycle and the gates can produce.

Callers branch on `AuthError.kind`; the HTTP layer renders every kind through
the single table below.
"""
from __future__ import annotations

import enum


class AuthErrorKind(enum.Enum):
    MISSING_CREDENTIAL = "missing_credential"
    INVALID_CREDENTIAL = "invalid_credential"
    EXPIRED_CREDENTIAL = "expired_credential"
    INVALID_TOKENS = "invalid_tokens"
    MISSING_REFRESH = "missing_refresh"
    SESSION_NOT_FOUND = "session_not_found"
    BANNED = "banned"
    ROLE_REQUIRED = "role_required"
    ALREADY_AUTHENTICATED = "already_authenticated"
    NOT_IMPLEMENTED = "not_implemented"


# kind -> (HTTP status, message template)
_RESPONSES = {
    AuthErrorKind.MISSING_CREDENTIAL: (401, "Missing access token"),
    AuthErrorKind.INVALID_CREDENTIAL: (401, "Invalid access token"),
    AuthErrorKind.EXPIRED_CREDENTIAL: (401, "Expired access token"),
    AuthErrorKind.INVALID_TOKENS: (401, "Invalid tokens"),
    AuthErrorKind.MISSING_REFRESH: (401, "Missing refresh token"),
    AuthErrorKind.SESSION_NOT_FOUND: (401, "Refresh session not found"),
    AuthErrorKind.BANNED: (403, "User logged in currently banned"),
    AuthErrorKind.ROLE_REQUIRED: (403, "{role} role required"),
    AuthErrorKind.ALREADY_AUTHENTICATED: (409, "Already logged in"),
    AuthErrorKind.NOT_IMPLEMENTED: (501, "Not implemented"),
}


class AuthError(Exception):
    """
    A tagged failure: `kind` says what went wrong, `payload` carries the extra
    response fields (`bans` for BANNED, `role` for ROLE_REQUIRED).
    """

    def __init__(self, kind: AuthErrorKind, **payload):
        self.kind = kind
        self.payload = payload
        super().__init__(self.message)

    @property
    def status(self) -> int:
        return _RESPONSES[self.kind][0]

    @property
    def message(self) -> str:
        return _RESPONSES[self.kind][1].format(**self.payload)

    def body_extras(self) -> dict:
        """Payload fields that belong in the JSON error body."""
        return {k: v for k, v in self.payload.items() if k != "role"}

    def __repr__(self):
        return f"AuthError({self.kind.name}, {self.payload!r})"
