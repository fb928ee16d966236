"""In-memory stand-ins for the stores, for testing the issuer and gates without a database."""
from datetime import timedelta
from types import SimpleNamespace

from models.base_model import utcnow
from utils.security import CredentialSigner
from utils.tokens import TokenIssuer


def make_issuer(sessions=None):
    access = CredentialSigner("access-secret-for-tests-0123456789abcdef", timedelta(minutes=15), "access")
    refresh = CredentialSigner("refresh-secret-for-tests-0123456789abcdef", timedelta(days=7), "refresh")
    return TokenIssuer(access, refresh, sessions if sessions is not None else FakeSessionStore())


class FakeSessionStore:
    def __init__(self):
        self.rows = {}
        self.writes = 0

    def upsert_by_user(self, user_id, token, expires_at):
        self.writes += 1
        self.rows[user_id] = SimpleNamespace(user_id=user_id, token=token, expires_at=expires_at)
        return self.rows[user_id]

    def _live(self, token, now=None):
        now = now or utcnow()
        for row in self.rows.values():
            if row.token == token and row.expires_at > now:
                return row
        return None

    def find_by_token(self, token, now=None):
        return self._live(token, now)

    def update_token(self, old_token, new_token, expires_at, now=None):
        # conditional on the stored value, like the SQL UPDATE ... WHERE token = old
        row = self._live(old_token, now)
        if row is None:
            return False
        self.writes += 1
        row.token = new_token
        row.expires_at = expires_at
        return True

    def delete_by_token(self, token):
        for user_id, row in list(self.rows.items()):
            if row.token == token:
                del self.rows[user_id]
                return True
        return False


class BrokenSessionStore(FakeSessionStore):
    def upsert_by_user(self, user_id, token, expires_at):
        raise RuntimeError("database unavailable")


class StaleReadSessionStore(FakeSessionStore):
    """
    Replays the first lookup result for every later lookup, the way two
    concurrent requests both read the row before either writes it.
    """

    def __init__(self):
        super().__init__()
        self._snapshot = {}

    def find_by_token(self, token, now=None):
        if token not in self._snapshot:
            row = super().find_by_token(token, now)
            self._snapshot[token] = SimpleNamespace(**vars(row)) if row else None
        return self._snapshot[token]


class FakeBanStore:
    def __init__(self, bans=()):
        self.bans = list(bans)
        self.calls = 0

    def add(self, user_id, start_at, end_at=None, reason="Spam"):
        self.bans.append(SimpleNamespace(user_id=user_id, start_at=start_at, end_at=end_at, reason=reason))

    def active_bans_for(self, user_id, now=None):
        self.calls += 1
        now = now or utcnow()
        return [
            b for b in self.bans
            if b.user_id == user_id and b.start_at <= now and (b.end_at is None or b.end_at > now)
        ]


class FakeUserStore:
    def __init__(self, roles=None):
        self.roles = dict(roles or {})
        self.lookups = 0

    def role_of(self, user_id):
        self.lookups += 1
        return self.roles.get(user_id)
