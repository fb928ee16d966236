"""
Response envelopes shared by the auth routes and the silent-renewal hook.

Success: {"message": ..., "accessToken": "Bearer <jwt>"} plus the refresh cookie.
"""
from flask import current_app, jsonify, make_response

from utils.tokens import TokenPair


def set_refresh_cookie(response, tokens: TokenPair):
    response.set_cookie(
        current_app.config["REFRESH_COOKIE_NAME"],
        tokens.refresh,
        max_age=int(current_app.config["JWT_REFRESH_EXPIRES"].total_seconds()),
        httponly=True,
        secure=True,
        samesite="Strict",
    )
    return response


def clear_refresh_cookie(response):
    response.delete_cookie(
        current_app.config["REFRESH_COOKIE_NAME"],
        httponly=True,
        secure=True,
        samesite="Strict",
    )
    return response


def token_response(message: str, tokens: TokenPair, status: int = 200):
    response = make_response(jsonify({"message": message, "accessToken": tokens.bearer}), status)
    return set_refresh_cookie(response, tokens)


def compose_renewal(response, tokens: TokenPair):
    """
    Fold a silent renewal into an outgoing response.
    The cookie is always replaced (the old refresh token is already dead);
    successful JSON object bodies also gain the new `accessToken`.
    """
    set_refresh_cookie(response, tokens)
    if response.status_code < 400 and response.is_json:
        body = response.get_json(silent=True)
        if isinstance(body, dict):
            body["accessToken"] = tokens.bearer
            response.set_data(current_app.json.dumps(body))
    return response
