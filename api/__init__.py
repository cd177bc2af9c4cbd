import asyncio
import logging

from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import Settings, get_config
from .errors import register_error_handlers
from .extensions import EXTENSION_KEY, Services

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "VidTube Accounts API",
        "version": "1.0.0",
        "description": "User accounts, token sessions, profile media, channel profiles and watch history.",
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


def _configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)


def create_app(config_name: str | None = None, config_overrides: dict | None = None, media_store=None) -> Flask:
    """
    Application factory: creates and configures the Flask app.

    Settings, storage, media store, token service and controllers are built
    here exactly once and kept in app.extensions for the views.
    Must be called outside a running event loop (tables are created with
    asyncio.run).
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    if config_overrides:
        app.config.update(config_overrides)

    _configure_logging(app)

    # Cross-Origin Resource Sharing; credentials are needed for the token cookies
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Register global error handlers that return the uniform error envelope
    register_error_handlers(app)

    services = Services.build(Settings.from_mapping(app.config), media=media_store)
    asyncio.run(services.storage.reload())
    app.extensions[EXTENSION_KEY] = services

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp
    from .media import bp as media_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/users")
    app.register_blueprint(users_bp, url_prefix="/api/v1/users")
    app.register_blueprint(media_bp)

    @app.route("/")
    def root():
        return {
            "message": "Welcome to VidTube Accounts API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    app.logger.info("App created (env=%s)", app.config.get("APP_ENV"))
    return app
