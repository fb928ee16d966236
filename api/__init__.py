from flask import Flask, g
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from .responses import compose_renewal
from models import DBStorage, UserStore, SessionStore, BanStore
from utils.gates import Guard
from utils.security import CredentialSigner
from utils.tokens import TokenIssuer

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Gatekeeper API",
        "version": "1.0.0",
        "description": "User registration, login, session renewal and administrative moderation.",
    },
    "basePath": "/",  # blueprints are mounted under /api/v1
    "schemes": ["http", "https"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def build_guard(config, storage: DBStorage) -> Guard:
    """Wire signers, stores, issuer and gates around one storage."""
    access_signer = CredentialSigner(
        config["JWT_ACCESS_SECRET"], config["JWT_ACCESS_EXPIRES"], "access",
        algorithm=config["JWT_ALGORITHM"], issuer=config.get("JWT_ISSUER"),
    )
    refresh_signer = CredentialSigner(
        config["JWT_REFRESH_SECRET"], config["JWT_REFRESH_EXPIRES"], "refresh",
        algorithm=config["JWT_ALGORITHM"], issuer=config.get("JWT_ISSUER"),
    )
    issuer = TokenIssuer(access_signer, refresh_signer, SessionStore(storage))
    return Guard(issuer, users=UserStore(storage), bans=BanStore(storage))


def create_app(config_name: str | None = None, config_overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    The storage, stores and guard are built here and published in
    app.extensions so routes and decorators never reach for a global.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    if config_overrides:
        app.config.update(config_overrides)

    # Cross-Origin Resource Sharing: enable for dev, configurable for prod
    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Register global error handlers that return the uniform error envelope
    register_error_handlers(app)

    storage = DBStorage(app.config["DATABASE_URL"], echo=app.config.get("SQL_ECHO", False))
    storage.reload()
    guard = build_guard(app.config, storage)
    app.extensions["storage"] = storage
    app.extensions["guard"] = guard
    app.extensions["users"] = guard.role_gate.users
    app.extensions["bans"] = guard.ban_gate.bans

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp
    from .admin import bp as admin_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/auth")
    app.register_blueprint(users_bp, url_prefix="/api/v1")
    app.register_blueprint(admin_bp, url_prefix="/api/v1/admin")

    # A gate that renewed the access token leaves the new pair on `g`;
    # it is folded into whatever response the route (or an error handler) produced.
    @app.after_request
    def attach_renewed_tokens(response):
        tokens = g.pop("renewed_tokens", None)
        if tokens is not None:
            compose_renewal(response, tokens)
        return response

    # Ensure the DB session is removed at the end of each request/app context
    # This calls scoped_session.remove(), preventing connection leaks
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Gatekeeper API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
