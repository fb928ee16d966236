from marshmallow import Schema, fields, pre_load, validates, validate

from models.schemas.common import validate_password_strength
from models.user import Role


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


def _strip(v):
    return v.strip() if isinstance(v, str) else v


class UserCreateSchema(Schema):
    username = fields.String(required=True, validate=validate.Length(min=1, max=64))
    email = fields.Email(required=True)
    firstname = fields.String(allow_none=True, load_default=None)
    lastname = fields.String(required=True, validate=validate.Length(min=1))
    password = fields.String(required=True, load_only=True)

    @pre_load
    def normalize(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("username", "firstname", "lastname"):
            if key in data:
                data[key] = _strip(data[key])
        if "email" in data:
            data["email"] = _norm_email(data["email"])
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        validate_password_strength(value)


class AdminUserCreateSchema(UserCreateSchema):
    role = fields.Enum(Role, load_default=Role.USER)


class UserLoginSchema(Schema):
    login = fields.String(required=True, validate=validate.Length(min=1, error="Username is required"))
    password = fields.String(required=True, validate=validate.Length(min=1, error="Password is required"))

    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "login" in data:
            data = dict(data, login=_strip(data["login"]))
        return data


class UserUpdateSchema(Schema):
    username = fields.String(validate=validate.Length(min=1, max=64))
    email = fields.Email()
    firstname = fields.String(allow_none=True)
    lastname = fields.String(validate=validate.Length(min=1))
    password = fields.String(load_only=True)
    role = fields.Enum(Role)

    @pre_load
    def normalize(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("username", "firstname", "lastname"):
            if key in data:
                data[key] = _strip(data[key])
        if "email" in data:
            data["email"] = _norm_email(data["email"])
        return data

    @validates("password")
    def validate_password(self, value, **kwargs):
        validate_password_strength(value)


class UserFilterSchema(Schema):
    """Query-string filters and pagination for user listings."""
    page = fields.Integer(load_default=1, validate=validate.Range(min=1))
    per_page = fields.Integer(load_default=20, validate=validate.Range(min=1, max=100), data_key="perPage")
    username = fields.String()
    email = fields.String()
    firstname = fields.String()
    lastname = fields.String()


class UserOutSchema(Schema):
    id = fields.String()
    username = fields.String()
    email = fields.String()
    firstname = fields.String(allow_none=True)
    lastname = fields.String()
    role = fields.Enum(Role)
    created_at = fields.DateTime(data_key="createdAt")
