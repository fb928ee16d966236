"""
The request gates every protected route passes through, in order:

1. AuthorizationGate - bearer credential -> user id, renewing silently on expiry
2. BanGate           - rejects users with an active ban
3. RoleGate          - rejects users lacking the required role (only where asked)

The gates know nothing about Flask; utils.decorators feeds them the header and
cookie values and the Guard bundles them for the application.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from models.base_model import utcnow
from models.schemas.ban import BanOutSchema
from models.user import Role
from utils.auth_errors import AuthError, AuthErrorKind
from utils.security import CredentialSigner
from utils.tokens import TokenIssuer, TokenPair

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

ban_list_schema = BanOutSchema(many=True, only=("start_at", "end_at", "reason"))


@dataclass(frozen=True)
class Identity:
    user_id: str
    # set when the access token had expired and the refresh cookie was rotated
    renewed: Optional[TokenPair] = None


def extract_bearer(header: Optional[str]) -> Optional[str]:
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


class AuthorizationGate:
    def __init__(self, access_signer: CredentialSigner, issuer: TokenIssuer):
        self.access_signer = access_signer
        self.issuer = issuer

    def authorize(self, auth_header: Optional[str], refresh_token: Optional[str]) -> Identity:
        token = extract_bearer(auth_header)
        if token is None:
            raise AuthError(AuthErrorKind.MISSING_CREDENTIAL)

        try:
            claim = self.access_signer.verify(token)
        except AuthError as err:
            if err.kind is not AuthErrorKind.EXPIRED_CREDENTIAL:
                raise
        else:
            return Identity(user_id=claim.user_id)

        return self._renew(refresh_token)

    def _renew(self, refresh_token: Optional[str]) -> Identity:
        if not refresh_token:
            raise AuthError(AuthErrorKind.INVALID_TOKENS)
        try:
            tokens = self.issuer.renew(refresh_token)
        except AuthError as err:
            logger.info("Silent renewal refused: %s", err.kind.name)
            raise AuthError(AuthErrorKind.INVALID_TOKENS) from err
        claim = self.access_signer.verify(tokens.access)
        logger.debug("Access token renewed for user %s", claim.user_id)
        return Identity(user_id=claim.user_id, renewed=tokens)

    def is_authenticated(self, auth_header: Optional[str]) -> bool:
        """True only for a currently valid access token; expired or bad ones count as anonymous."""
        token = extract_bearer(auth_header)
        if token is None:
            return False
        try:
            self.access_signer.verify(token)
        except AuthError:
            return False
        return True


class BanGate:
    def __init__(self, bans):
        self.bans = bans

    def check(self, user_id: str, now: Optional[datetime] = None) -> None:
        active = self.bans.active_bans_for(user_id, now or utcnow())
        if active:
            logger.info("Rejected request from banned user %s", user_id)
            raise AuthError(AuthErrorKind.BANNED, bans=ban_list_schema.dump(active))


class RoleGate:
    def __init__(self, users):
        self.users = users

    def check(self, user_id: str, role: Role) -> None:
        if self.users.role_of(user_id) != role:
            logger.info("Rejected request from user %s lacking role %s", user_id, role.value)
            raise AuthError(AuthErrorKind.ROLE_REQUIRED, role=role.value)


class Guard:
    """Everything a request needs to be authenticated, wired once per application."""

    def __init__(self, issuer: TokenIssuer, users, bans):
        self.issuer = issuer
        self.authorization = AuthorizationGate(issuer.access_signer, issuer)
        self.ban_gate = BanGate(bans)
        self.role_gate = RoleGate(users)
