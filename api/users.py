from __future__ import annotations

from flask import Blueprint, request, jsonify, g, abort, current_app

from models.schemas.user import (
    AdminUserCreateSchema,
    UserFilterSchema,
    UserOutSchema,
    UserUpdateSchema,
)
from models.user import Role
from utils.decorators import jwt_required, roles_required
from utils.security import hash_password

bp = Blueprint("users", __name__)

user_create_schema = AdminUserCreateSchema()
user_update_schema = UserUpdateSchema()
user_filter_schema = UserFilterSchema()
user_out_schema = UserOutSchema()
user_list_out_schema = UserOutSchema(many=True)


def _users():
    return current_app.extensions["users"]


def _visible_roles():
    """Admins see every account, everybody else only sees regular users."""
    if _users().role_of(g.current_user_id) == Role.ADMIN:
        return None
    return [Role.USER]


def _get_or_404(user_id: str):
    user = _users().find_by_id(user_id)
    if not user:
        abort(404, description="User not found")
    return user


@bp.get("/me")
@jwt_required()
def me():
    """
    Get current user info.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
      403:
        description: Banned
    """
    user = _get_or_404(g.current_user_id)
    return jsonify(
        {
            "message": f"User `{user.username}`",
            "data": user_out_schema.dump(user),
        }
    ), 200


@bp.get("/users")
@jwt_required()
def list_users():
    """
    List users, filtered by exact username / email / firstname / lastname
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - { in: query, name: page, type: integer }
      - { in: query, name: perPage, type: integer }
      - { in: query, name: username, type: string }
      - { in: query, name: email, type: string }
      - { in: query, name: firstname, type: string }
      - { in: query, name: lastname, type: string }
    responses:
      200: { description: OK }
    """
    params = user_filter_schema.load(request.args.to_dict())
    page = params.pop("page")
    limit = params.pop("per_page")

    rows, total = _users().search(params, page, limit, roles=_visible_roles())
    return jsonify(
        {
            "message": f"{len(rows)} users found" if rows else "No user found",
            "data": user_list_out_schema.dump(rows),
            "meta": {"page": page, "perPage": limit, "total": total},
        }
    ), 200


@bp.get("/users/<user_id>")
@jwt_required()
def get_user(user_id: str):
    """
    Get one user
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - { in: path, name: user_id, type: string, required: true }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    user = _get_or_404(user_id)
    roles = _visible_roles()
    if roles is not None and user.role not in roles:
        abort(404, description="User not found")
    return jsonify({"message": f"User `{user.username}`", "data": user_out_schema.dump(user)}), 200


@bp.post("/users")
@roles_required(Role.ADMIN)
def create_user():
    """
    Admin-only: create a user
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            username: { type: string }
            email: { type: string }
            firstname: { type: string }
            lastname: { type: string }
            password: { type: string }
            role: { type: string, enum: [USER, ADMIN] }
    responses:
      201: { description: Created }
      409: { description: Email or username already used }
    """
    payload = request.get_json(silent=True) or {}
    data = user_create_schema.load(payload)

    users = _users()
    if users.email_taken(data["email"]):
        abort(409, description="Email already used")
    if users.username_taken(data["username"]):
        abort(409, description="Username already used")

    password = data.pop("password")
    user = users.create(password_hash=hash_password(password), **data)
    return jsonify(
        {
            "message": f"User `{user.username}` created successfully",
            "data": user_out_schema.dump(user),
        }
    ), 201


@bp.put("/users/<user_id>")
@roles_required(Role.ADMIN)
def update_user(user_id: str):
    """
    Admin-only: update a user (partial)
    ---
    tags:
      - Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - { in: path, name: user_id, type: string, required: true }
      - in: body
        name: body
        schema:
          type: object
          properties:
            username: { type: string }
            email: { type: string }
            firstname: { type: string }
            lastname: { type: string }
            password: { type: string }
            role: { type: string, enum: [USER, ADMIN] }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    payload = request.get_json(silent=True) or {}
    data = user_update_schema.load(payload)

    users = _users()
    user = _get_or_404(user_id)
    if "email" in data and users.email_taken(data["email"], exclude_id=user.id):
        abort(409, description="Email already used")
    if "username" in data and users.username_taken(data["username"], exclude_id=user.id):
        abort(409, description="Username already used")
    if "password" in data:
        data["password_hash"] = hash_password(data.pop("password"))

    users.update(user, **data)
    updated = sorted(k if k != "password_hash" else "password" for k in data)
    return jsonify(
        {
            "message": f"User `{user.username}` updated successfully",
            "data": user_out_schema.dump(user),
            "updated": updated,
        }
    ), 200


@bp.delete("/users/<user_id>")
@roles_required(Role.ADMIN)
def delete_user(user_id: str):
    """
    Admin-only: delete a user (their session and bans go with them)
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - { in: path, name: user_id, type: string, required: true }
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    user = _get_or_404(user_id)
    username = user.username
    _users().delete(user)
    return jsonify({"message": f"User `{username}` deleted successfully"}), 200
