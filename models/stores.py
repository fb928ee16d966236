"""
Stores: the narrow persistence collaborators the token issuer, the gates and
the route handlers are handed at construction time.

Each store wraps the shared DBStorage (engine + scoped_session) and exposes only
the predicates its callers need, so tests can swap any of them for an in-memory
fake with the same method names.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import or_

from models.base_model import utcnow
from models.ban import Ban
from models.db_storage import DBStorage
from models.refresh_session import RefreshSession
from models.user import Role, User


class UserStore:
    def __init__(self, storage: DBStorage):
        self.storage = storage

    def find_by_id(self, user_id: str) -> Optional[User]:
        return self.storage.get(User, user_id)

    def find_by_login_or_email(self, login: str) -> List[User]:
        """Every user whose username or email equals `login`."""
        session = self.storage.get_session()
        return (
            session.query(User)
            .filter(or_(User.username == login, User.email == login.lower()))
            .all()
        )

    def role_of(self, user_id: str) -> Optional[Role]:
        """Current role, always read from the database."""
        session = self.storage.get_session()
        row = session.query(User.role).filter(User.id == user_id).first()
        return row[0] if row else None

    def find_by_username(self, username: str) -> Optional[User]:
        session = self.storage.get_session()
        return session.query(User).filter(User.username == username).first()

    def email_taken(self, email: str, exclude_id: str | None = None) -> bool:
        session = self.storage.get_session()
        query = session.query(User.id).filter(User.email == email)
        if exclude_id:
            query = query.filter(User.id != exclude_id)
        return query.first() is not None

    def username_taken(self, username: str, exclude_id: str | None = None) -> bool:
        session = self.storage.get_session()
        query = session.query(User.id).filter(User.username == username)
        if exclude_id:
            query = query.filter(User.id != exclude_id)
        return query.first() is not None

    def create(self, **fields) -> User:
        user = User(**fields)
        self.storage.new(user)
        self.storage.save()
        return user

    def update(self, user: User, **fields) -> User:
        for key, value in fields.items():
            setattr(user, key, value)
        self.storage.new(user)
        self.storage.save()
        return user

    def delete(self, user: User) -> None:
        self.storage.delete(user)
        self.storage.save()

    def search(
        self,
        filters: dict,
        page: int,
        limit: int,
        roles: Iterable[Role] | None = None,
    ) -> Tuple[List[User], int]:
        """Exact-match filtering on the given columns, paginated, ordered by username."""
        session = self.storage.get_session()
        query = session.query(User)
        for column, value in filters.items():
            query = query.filter(getattr(User, column) == value)
        if roles is not None:
            query = query.filter(User.role.in_(list(roles)))
        total = query.count()
        rows = query.order_by(User.username.asc()).offset((page - 1) * limit).limit(limit).all()
        return rows, total


class SessionStore:
    """RefreshSession persistence: one row per user, keyed by user and by token."""

    def __init__(self, storage: DBStorage):
        self.storage = storage

    def upsert_by_user(self, user_id: str, token: str, expires_at: datetime) -> RefreshSession:
        """Create the user's session or overwrite the existing one (session reset)."""
        session = self.storage.get_session()
        row = session.query(RefreshSession).filter(RefreshSession.user_id == user_id).first()
        if row is None:
            row = RefreshSession(user_id=user_id, token=token, expires_at=expires_at)
        else:
            row.token = token
            row.expires_at = expires_at
        self.storage.new(row)
        self.storage.save()
        return row

    def find_by_token(self, token: str, now: datetime | None = None) -> Optional[RefreshSession]:
        """The live session holding `token`, or None if absent or expired."""
        now = now or utcnow()
        session = self.storage.get_session()
        return (
            session.query(RefreshSession)
            .filter(RefreshSession.token == token, RefreshSession.expires_at > now)
            .first()
        )

    def update_token(self, old_token: str, new_token: str, expires_at: datetime, now: datetime | None = None) -> bool:
        """
        Swap `old_token` for `new_token` in a single conditional UPDATE.
        Returns False when no live row holds `old_token` any more, e.g. because a
        concurrent request rotated it first.
        """
        now = now or utcnow()
        session = self.storage.get_session()
        updated = (
            session.query(RefreshSession)
            .filter(RefreshSession.token == old_token, RefreshSession.expires_at > now)
            .update(
                {RefreshSession.token: new_token, RefreshSession.expires_at: expires_at},
                synchronize_session="fetch",
            )
        )
        self.storage.save()
        return updated == 1

    def delete_by_token(self, token: str) -> bool:
        session = self.storage.get_session()
        deleted = (
            session.query(RefreshSession)
            .filter(RefreshSession.token == token)
            .delete(synchronize_session="fetch")
        )
        self.storage.save()
        return deleted > 0

    def find_by_user(self, user_id: str) -> Optional[RefreshSession]:
        session = self.storage.get_session()
        return session.query(RefreshSession).filter(RefreshSession.user_id == user_id).first()


class BanStore:
    def __init__(self, storage: DBStorage):
        self.storage = storage

    @staticmethod
    def _active(query, now: datetime):
        return query.filter(
            Ban.start_at <= now,
            or_(Ban.end_at.is_(None), Ban.end_at > now),
        )

    def active_bans_for(self, user_id: str, now: datetime | None = None) -> List[Ban]:
        now = now or utcnow()
        session = self.storage.get_session()
        query = session.query(Ban).filter(Ban.user_id == user_id)
        return self._active(query, now).order_by(Ban.start_at.asc()).all()

    def create(self, user_id: str, admin_id: str | None, start_at: datetime,
               end_at: datetime | None, reason: str) -> Ban:
        ban = Ban(user_id=user_id, admin_id=admin_id, start_at=start_at, end_at=end_at, reason=reason)
        self.storage.new(ban)
        self.storage.save()
        return ban

    def lift_active_bans(self, user_id: str, now: datetime | None = None) -> int:
        """End every ban active at `now` by closing its window at `now`. Returns how many."""
        now = now or utcnow()
        session = self.storage.get_session()
        query = session.query(Ban).filter(Ban.user_id == user_id)
        lifted = self._active(query, now).update({Ban.end_at: now}, synchronize_session="fetch")
        self.storage.save()
        return lifted
