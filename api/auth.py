"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout
- POST /auth/password-reset (not implemented, always 501)

The implementation:
- Uses argon2 for password hashing (via utils.security)
- Issues short-lived access tokens and a longer-lived refresh token (JWTs signed with HS256)
- Keeps one refresh session per user in the DB so refresh tokens can be rotated and revoked
- The access token travels in the JSON body ("Bearer <jwt>"), the refresh token in the
  `refreshToken` cookie
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, abort, current_app, make_response

from models.base_model import utcnow
from models.schemas.user import UserCreateSchema, UserLoginSchema
from utils.auth_errors import AuthError, AuthErrorKind
from utils.decorators import get_guard, guest_only, refresh_token_required
from utils.gates import ban_list_schema
from utils.security import hash_password, verify_password
from .errors import error_response
from .responses import token_response, clear_refresh_cookie

bp = Blueprint("auth", __name__)

user_create_schema = UserCreateSchema()
user_login_schema = UserLoginSchema()


@bp.post("/register")
@guest_only()
def register():
    """
    Register a new user and open a session for them.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [username, email, lastname, password]
          properties:
            username: { type: string }
            email: { type: string }
            firstname: { type: string }
            lastname: { type: string }
            password: { type: string }
    responses:
      201:
        description: Created, returns the access token and sets the refreshToken cookie
      409:
        description: Email or username already used, or caller already logged in
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = user_create_schema.load(payload)

    users = current_app.extensions["users"]
    if users.email_taken(data["email"]):
        abort(409, description="Email already used")
    if users.username_taken(data["username"]):
        abort(409, description="Username already used")

    user = users.create(
        username=data["username"],
        email=data["email"],
        firstname=data.get("firstname"),
        lastname=data["lastname"],
        password_hash=hash_password(data["password"]),
    )

    tokens = get_guard().issuer.issue(user.id)
    return token_response(f"User `{user.username}` registered successfully", tokens, 201)


@bp.post("/login")
@guest_only()
def login():
    """
    Login with username or email: returns the access token, sets the refresh cookie
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           required: [login, password]
           properties:
             login: { type: string, description: username or email }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Invalid password
      403:
        description: User currently banned
      404:
        description: No user with this login information
      409:
        description: Several users match, or caller already logged in
    """
    payload = request.get_json(silent=True) or {}
    data = user_login_schema.load(payload)

    users = current_app.extensions["users"]
    matches = users.find_by_login_or_email(data["login"])
    if len(matches) > 1:
        return error_response("Invalid credentials", 409,
                              details="Multiple users have this login information")
    if not matches:
        return error_response("Invalid credentials", 404,
                              details="No user with this login information")
    user = matches[0]

    if not verify_password(data["password"], user.password_hash):
        return error_response("Invalid password", 401)

    bans = current_app.extensions["bans"].active_bans_for(user.id, utcnow())
    if bans:
        return error_response("User currently banned", 403, bans=ban_list_schema.dump(bans))

    tokens = get_guard().issuer.issue(user.id)
    return token_response(f"User `{user.username}` logged in successfully", tokens)


@bp.post("/refresh")
@refresh_token_required()
def refresh():
    """
    Trade the refresh cookie for a new access token and a rotated refresh cookie
    ---
    tags:
      - Auth
    responses:
      200:
        description: Token refreshed successfully
      401:
        description: Missing, unknown or already rotated refresh token
    """
    tokens = get_guard().issuer.renew(g.refresh_token)
    return token_response("Token refreshed successfully", tokens)


@bp.post("/logout")
@refresh_token_required()
def logout():
    """
    Logout: deletes the refresh session and clears the cookie
    ---
    tags:
      - Auth
    responses:
      200:
        description: User logged out successfully
      401:
        description: Missing refresh token
    """
    get_guard().issuer.revoke(g.refresh_token)
    response = make_response(jsonify({"message": "User logged out successfully"}), 200)
    return clear_refresh_cookie(response)


@bp.post("/password-reset")
def password_reset():
    """
    Password reset (not available)
    ---
    tags:
      - Auth
    responses:
      501:
        description: Not implemented
    """
    raise AuthError(AuthErrorKind.NOT_IMPLEMENTED)
