import logging
from datetime import timedelta

import pytest

from models.base_model import utcnow
from models.user import Role
from utils.auth_errors import AuthError, AuthErrorKind
from utils.gates import AuthorizationGate, BanGate, Guard, RoleGate, extract_bearer

from tests.fakes import FakeBanStore, FakeSessionStore, FakeUserStore, make_issuer


@pytest.fixture()
def sessions():
    return FakeSessionStore()


@pytest.fixture()
def issuer(sessions):
    return make_issuer(sessions)


@pytest.fixture()
def gate(issuer):
    return AuthorizationGate(issuer.access_signer, issuer)


def expired_header(issuer, user_id):
    token, _ = issuer.access_signer.sign(user_id, now=utcnow() - timedelta(hours=1))
    return f"Bearer {token}"


@pytest.mark.parametrize("header,expected", [
    (None, None),
    ("", None),
    ("Bearer ", None),
    ("Basic abc", None),
    ("bearer abc", None),
    ("Bearer abc", "abc"),
])
def test_extract_bearer(header, expected):
    assert extract_bearer(header) == expected


class TestAuthorizationGate:
    def test_missing_header(self, gate):
        with pytest.raises(AuthError) as excinfo:
            gate.authorize(None, None)
        assert excinfo.value.kind is AuthErrorKind.MISSING_CREDENTIAL
        assert excinfo.value.message == "Missing access token"

    def test_invalid_signature_is_not_renewed(self, gate, issuer, sessions):
        tokens = issuer.issue("u1")
        with pytest.raises(AuthError) as excinfo:
            gate.authorize("Bearer not-a-token", tokens.refresh)
        assert excinfo.value.kind is AuthErrorKind.INVALID_CREDENTIAL
        # the refresh session is untouched
        assert sessions.rows["u1"].token == tokens.refresh

    def test_valid_token(self, gate, issuer):
        tokens = issuer.issue("u1")
        identity = gate.authorize(tokens.bearer, None)
        assert identity.user_id == "u1"
        assert identity.renewed is None

    def test_expired_without_refresh_cookie(self, gate, issuer):
        with pytest.raises(AuthError) as excinfo:
            gate.authorize(expired_header(issuer, "u1"), None)
        assert excinfo.value.kind is AuthErrorKind.INVALID_TOKENS

    def test_expired_with_unknown_refresh_token(self, gate, issuer):
        with pytest.raises(AuthError) as excinfo:
            gate.authorize(expired_header(issuer, "u1"), "never-issued")
        assert excinfo.value.kind is AuthErrorKind.INVALID_TOKENS

    def test_expired_is_renewed_silently(self, gate, issuer, sessions):
        tokens = issuer.issue("u1")
        identity = gate.authorize(expired_header(issuer, "u1"), tokens.refresh)

        assert identity.user_id == "u1"
        assert identity.renewed is not None
        assert identity.renewed.refresh != tokens.refresh
        assert sessions.rows["u1"].token == identity.renewed.refresh
        assert issuer.access_signer.verify(identity.renewed.access).user_id == "u1"

    def test_renewal_consumes_the_refresh_token(self, gate, issuer):
        tokens = issuer.issue("u1")
        gate.authorize(expired_header(issuer, "u1"), tokens.refresh)
        with pytest.raises(AuthError) as excinfo:
            gate.authorize(expired_header(issuer, "u1"), tokens.refresh)
        assert excinfo.value.kind is AuthErrorKind.INVALID_TOKENS

    def test_renewed_identity_comes_from_the_session(self, gate, issuer):
        # expired token for u1, refresh session belongs to u2
        tokens = issuer.issue("u2")
        identity = gate.authorize(expired_header(issuer, "u1"), tokens.refresh)
        assert identity.user_id == "u2"

    def test_is_authenticated(self, gate, issuer):
        tokens = issuer.issue("u1")
        assert gate.is_authenticated(tokens.bearer)
        assert not gate.is_authenticated(None)
        assert not gate.is_authenticated("Bearer garbage")
        assert not gate.is_authenticated(expired_header(issuer, "u1"))


class TestBanGate:
    def test_no_bans(self):
        BanGate(FakeBanStore()).check("u1")

    def test_open_ended_ban_rejects(self):
        bans = FakeBanStore()
        bans.add("u1", start_at=utcnow() - timedelta(days=1), reason="Spam")
        with pytest.raises(AuthError) as excinfo:
            BanGate(bans).check("u1")
        err = excinfo.value
        assert err.kind is AuthErrorKind.BANNED
        assert err.status == 403
        assert err.payload["bans"][0]["reason"] == "Spam"
        assert err.payload["bans"][0]["endAt"] is None

    def test_window_boundaries(self):
        now = utcnow()
        bans = FakeBanStore()
        bans.add("u1", start_at=now - timedelta(hours=2), end_at=now)
        bans.add("u1", start_at=now + timedelta(seconds=1))
        gate = BanGate(bans)
        # ended exactly now and not started yet: both inactive
        gate.check("u1", now=now)

        bans.add("u1", start_at=now, end_at=now + timedelta(hours=1))
        with pytest.raises(AuthError):
            gate.check("u1", now=now)

    def test_other_users_bans_do_not_apply(self):
        bans = FakeBanStore()
        bans.add("u2", start_at=utcnow() - timedelta(days=1))
        BanGate(bans).check("u1")


class TestRoleGate:
    def test_matching_role(self):
        RoleGate(FakeUserStore({"u1": Role.ADMIN})).check("u1", Role.ADMIN)

    def test_wrong_role_names_required_role(self):
        with pytest.raises(AuthError) as excinfo:
            RoleGate(FakeUserStore({"u1": Role.USER})).check("u1", Role.ADMIN)
        assert excinfo.value.kind is AuthErrorKind.ROLE_REQUIRED
        assert excinfo.value.message == "ADMIN role required"
        assert excinfo.value.body_extras() == {}

    def test_rejection_is_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="utils.gates"):
            with pytest.raises(AuthError):
                RoleGate(FakeUserStore({"u1": Role.USER})).check("u1", Role.ADMIN)
        assert "lacking role ADMIN" in caplog.text

    def test_unknown_user(self):
        with pytest.raises(AuthError):
            RoleGate(FakeUserStore()).check("ghost", Role.USER)

    def test_role_is_read_on_every_check(self):
        users = FakeUserStore({"u1": Role.ADMIN})
        gate = RoleGate(users)
        gate.check("u1", Role.ADMIN)
        users.roles["u1"] = Role.USER
        with pytest.raises(AuthError):
            gate.check("u1", Role.ADMIN)
        assert users.lookups == 2


def test_guard_wires_gates_to_the_same_issuer(issuer):
    guard = Guard(issuer, users=FakeUserStore(), bans=FakeBanStore())
    assert guard.authorization.issuer is issuer
    assert guard.authorization.access_signer is issuer.access_signer
