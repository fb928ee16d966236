"""
Moderation blueprint (ADMIN only):
- POST /admin/ban    open a ban window for a user
- POST /admin/unban  close every ban window active right now
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, abort, current_app

from models.base_model import utcnow
from models.schemas.ban import BanCreateSchema, BanOutSchema, UnbanSchema
from models.user import Role
from utils.decorators import roles_required

bp = Blueprint("admin", __name__)

ban_create_schema = BanCreateSchema()
unban_schema = UnbanSchema()
ban_out_schema = BanOutSchema()


@bp.post("/ban")
@roles_required(Role.ADMIN)
def ban():
    """
    Ban a user, optionally for a limited duration
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [username, reason]
          properties:
            username: { type: string }
            startAt: { type: string, format: date-time }
            duration:
              type: string
              description: milliseconds, or a string like "30m", "2h", "7d"; omit for an open-ended ban
            reason: { type: string }
    responses:
      200: { description: User banned }
      403: { description: ADMIN role required }
      404: { description: No such user }
    """
    payload = request.get_json(silent=True) or {}
    data = ban_create_schema.load(payload)

    user = current_app.extensions["users"].find_by_username(data["username"])
    if not user:
        abort(404, description="User not found")

    record = current_app.extensions["bans"].create(
        user_id=user.id,
        admin_id=g.current_user_id,
        start_at=data["start_at"],
        end_at=data["end_at"],
        reason=data["reason"],
    )
    return jsonify(
        {
            "message": f"User `{user.username}` was successfully banned",
            "ban": ban_out_schema.dump(record),
        }
    ), 200


@bp.post("/unban")
@roles_required(Role.ADMIN)
def unban():
    """
    Lift every ban currently active on a user
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [username]
          properties:
            username: { type: string }
    responses:
      200: { description: User unbanned, or was not banned }
      404: { description: No such user }
    """
    payload = request.get_json(silent=True) or {}
    data = unban_schema.load(payload)
    username = data["username"].strip()

    user = current_app.extensions["users"].find_by_username(username)
    if not user:
        abort(404, description="User not found")

    lifted = current_app.extensions["bans"].lift_active_bans(user.id, utcnow())
    message = (
        f"User `{username}` was successfully unbanned"
        if lifted
        else f"User `{username}` isn't currently banned"
    )
    return jsonify({"message": message}), 200
