"""
Token issuance and rotation.

- issue(): mint an access + refresh pair and reset the user's refresh session
- renew(): trade a refresh token for a new pair; the presented token is
  consumed, so a replayed (or raced) refresh token fails
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from models.base_model import utcnow
from utils.auth_errors import AuthError, AuthErrorKind
from utils.security import CredentialSigner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    access: str
    refresh: str
    refresh_expires_at: datetime

    @property
    def bearer(self) -> str:
        return f"Bearer {self.access}"


class TokenIssuer:
    def __init__(self, access_signer: CredentialSigner, refresh_signer: CredentialSigner,
                 sessions, clock: Optional[Callable[[], datetime]] = None):
        self.access_signer = access_signer
        self.refresh_signer = refresh_signer
        self.sessions = sessions
        self.clock = clock or utcnow

    def _mint(self, user_id: str, now: datetime) -> TokenPair:
        access, _ = self.access_signer.sign(user_id, now=now)
        refresh, refresh_exp = self.refresh_signer.sign(user_id, now=now)
        return TokenPair(access=access, refresh=refresh, refresh_expires_at=refresh_exp)

    def issue(self, user_id: str) -> TokenPair:
        """
        Mint a pair for `user_id` and overwrite its refresh session.
        A failing store write propagates; no tokens leave this method unless persisted.
        """
        tokens = self._mint(user_id, self.clock())
        self.sessions.upsert_by_user(user_id, tokens.refresh, tokens.refresh_expires_at)
        logger.info("Issued new session for user %s", user_id)
        return tokens

    def renew(self, refresh_token: str) -> TokenPair:
        now = self.clock()
        session = self.sessions.find_by_token(refresh_token, now)
        if session is None:
            raise AuthError(AuthErrorKind.SESSION_NOT_FOUND)

        claim = self.refresh_signer.verify(refresh_token)
        if claim.user_id != str(session.user_id):
            raise AuthError(AuthErrorKind.INVALID_CREDENTIAL)

        tokens = self._mint(session.user_id, now)
        if not self.sessions.update_token(refresh_token, tokens.refresh, tokens.refresh_expires_at, now):
            # someone else rotated this token between our read and our write
            logger.warning("Refresh token for user %s was rotated concurrently", session.user_id)
            raise AuthError(AuthErrorKind.SESSION_NOT_FOUND)
        logger.info("Rotated refresh session for user %s", session.user_id)
        return tokens

    def revoke(self, refresh_token: str) -> bool:
        """Delete the session holding `refresh_token` (logout)."""
        return self.sessions.delete_by_token(refresh_token)
