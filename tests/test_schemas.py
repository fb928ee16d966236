from datetime import datetime, timedelta

import pytest
from marshmallow import ValidationError

from models.schemas.ban import BanCreateSchema
from models.schemas.common import parse_duration, validate_password_strength
from models.schemas.user import UserCreateSchema, UserLoginSchema, UserUpdateSchema


@pytest.mark.parametrize("raw,expected", [
    (1500, timedelta(milliseconds=1500)),
    ("250ms", timedelta(milliseconds=250)),
    ("30s", timedelta(seconds=30)),
    ("15m", timedelta(minutes=15)),
    ("2h", timedelta(hours=2)),
    ("7d", timedelta(days=7)),
    ("1w", timedelta(weeks=1)),
    ("1y", timedelta(days=365.25)),
])
def test_parse_duration(raw, expected):
    assert parse_duration(raw) == expected


@pytest.mark.parametrize("raw", [
    "", "10", "2 h", "h2", "-5m", "0s", 0, -10, True, None, [1],
    "99999999999y", 1e300, 10 ** 20, float("nan"), float("inf"),
])
def test_parse_duration_rejects(raw):
    with pytest.raises(ValidationError):
        parse_duration(raw)


def test_password_policy_lists_every_failure():
    with pytest.raises(ValidationError) as excinfo:
        validate_password_strength("abc")
    assert excinfo.value.messages == [
        "Password must be at least 8 characters long",
        "Password must contain at least one uppercase letter",
        "Password must contain at least one number",
        "Password must contain at least one special character",
    ]
    validate_password_strength("Valid#Pass1")


def test_user_create_normalizes():
    data = UserCreateSchema().load({
        "username": "  jdoe ",
        "email": " JDoe@Mail.COM ",
        "lastname": " Doe ",
        "password": "Secret#123",
    })
    assert data["username"] == "jdoe"
    assert data["email"] == "jdoe@mail.com"
    assert data["lastname"] == "Doe"
    assert data["firstname"] is None


def test_login_requires_both_fields():
    with pytest.raises(ValidationError) as excinfo:
        UserLoginSchema().load({"login": ""})
    assert set(excinfo.value.messages) == {"login", "password"}


def test_ban_window_defaults_to_now_and_open_ended():
    data = BanCreateSchema().load({"username": " target ", "reason": " Spam "})
    assert data["username"] == "target"
    assert data["reason"] == "Spam"
    assert data["end_at"] is None
    assert data["start_at"].tzinfo is None


def test_ban_window_uses_normalized_start():
    data = BanCreateSchema().load({
        "username": "target",
        "reason": "Spam",
        "startAt": "2030-06-01T12:00:00+02:00",
        "duration": "1d",
    })
    assert data["start_at"] == datetime(2030, 6, 1, 10, 0, 0)
    assert data["end_at"] == datetime(2030, 6, 2, 10, 0, 0)


@pytest.mark.parametrize("start_at", ["9999-12-31T00:00:00Z", "9999-12-31T23:00:00-02:00"])
def test_ban_window_out_of_range(start_at):
    with pytest.raises(ValidationError) as excinfo:
        BanCreateSchema().load({
            "username": "target",
            "reason": "Spam",
            "startAt": start_at,
            "duration": "2d",
        })
    assert set(excinfo.value.messages) <= {"duration", "startAt"}


def test_user_update_normalizes_like_create():
    data = UserUpdateSchema().load({
        "username": " bob ",
        "firstname": " Bob ",
        "lastname": " Smith ",
        "email": " Bob@Mail.COM ",
    })
    assert data == {
        "username": "bob",
        "firstname": "Bob",
        "lastname": "Smith",
        "email": "bob@mail.com",
    }
