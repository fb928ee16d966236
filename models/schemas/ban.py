from marshmallow import Schema, ValidationError, fields, post_load, validate

from models.base_model import to_naive_utc, utcnow
from models.schemas.common import Duration
from models.schemas.user import UserOutSchema


class BanCreateSchema(Schema):
    username = fields.String(required=True, validate=validate.Length(min=1, error="Username is required"))
    start_at = fields.DateTime(data_key="startAt", load_default=None)
    duration = Duration(load_default=None)
    reason = fields.String(required=True, validate=validate.Length(min=1, error="Reason of the ban is required"))

    @post_load
    def window(self, data, **kwargs):
        # end_at is derived from the normalized start, never from the raw input
        try:
            start_at = to_naive_utc(data.pop("start_at")) or utcnow()
        except OverflowError:
            raise ValidationError("Invalid date.", field_name="startAt")
        duration = data.pop("duration")
        data["username"] = data["username"].strip()
        data["reason"] = data["reason"].strip()
        data["start_at"] = start_at
        data["end_at"] = None
        if duration is not None:
            try:
                data["end_at"] = start_at + duration
            except OverflowError:
                raise ValidationError("Invalid duration.", field_name="duration")
        return data


class UnbanSchema(Schema):
    username = fields.String(required=True, validate=validate.Length(min=1, error="Username is required"))


class BanOutSchema(Schema):
    start_at = fields.DateTime(data_key="startAt")
    end_at = fields.DateTime(data_key="endAt", allow_none=True)
    reason = fields.String()
    user = fields.Nested(UserOutSchema, only=("id", "username", "email", "firstname", "lastname", "role"))
