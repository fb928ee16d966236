"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT creation/verification via PyJWT (CredentialSigner)
- JTI generation for token identifiers
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError

from models.base_model import utcnow
from utils.auth_errors import AuthError, AuthErrorKind

ph = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


@dataclass(frozen=True)
class AccessClaim:
    user_id: str
    expires_at: datetime


class CredentialSigner:
    """
    Signs and verifies one kind of credential ("access" or "refresh").

    Each kind gets its own secret and ttl, and the kind is embedded as the
    `type` claim, so a refresh token never verifies as an access token and
    vice versa.
    """

    def __init__(self, secret: str, ttl: timedelta, token_type: str,
                 algorithm: str = "HS256", issuer: Optional[str] = None):
        if not secret:
            raise ValueError(f"{token_type} token secret must not be empty")
        self.secret = secret
        self.ttl = ttl
        self.token_type = token_type
        self.algorithm = algorithm
        self.issuer = issuer

    def sign(self, user_id: str, now: Optional[datetime] = None) -> Tuple[str, datetime]:
        """Return (token, expires_at) for `user_id`, expiring `ttl` after `now`."""
        now = now or utcnow()
        exp = now + self.ttl
        payload = {
            "sub": str(user_id),
            "iat": _timestamp(now),
            "exp": _timestamp(exp),
            "type": self.token_type,
            "jti": generate_jti(),
        }
        if self.issuer:
            payload["iss"] = self.issuer
        token = jwt.encode(payload, self.secret, algorithm=self.algorithm)
        return token, exp.replace(microsecond=0)

    def verify(self, token: str) -> AccessClaim:
        """
        Decode and validate a token of this signer's kind.
        Raises AuthError(EXPIRED_CREDENTIAL) when only the expiry is wrong and
        AuthError(INVALID_CREDENTIAL) for anything else.
        """
        options = {"require": ["exp", "sub", "type"]}
        try:
            decoded = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options=options,
            )
        except jwt.ExpiredSignatureError:
            raise AuthError(AuthErrorKind.EXPIRED_CREDENTIAL)
        except jwt.InvalidTokenError:
            raise AuthError(AuthErrorKind.INVALID_CREDENTIAL)

        if decoded.get("type") != self.token_type:
            raise AuthError(AuthErrorKind.INVALID_CREDENTIAL)
        expires_at = datetime.fromtimestamp(decoded["exp"], tz=timezone.utc).replace(tzinfo=None)
        return AccessClaim(user_id=decoded["sub"], expires_at=expires_at)


def _timestamp(value: datetime) -> int:
    return int(value.replace(tzinfo=timezone.utc).timestamp())
