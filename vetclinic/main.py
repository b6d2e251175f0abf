import logging
from typing import Optional

from flask import Flask

from vetclinic.controllers.appointment_controller import appointment_bp
from vetclinic.controllers.auth_controller import auth_bp
from vetclinic.controllers.client_controller import client_bp
from vetclinic.controllers.dashboard_controller import dashboard_bp
from vetclinic.controllers.error_handlers import register_error_handlers
from vetclinic.controllers.health_controller import health_bp
from vetclinic.controllers.pet_controller import pet_bp
from vetclinic.controllers.treatment_controller import treatment_bp
from vetclinic.controllers.veterinarian_controller import veterinarian_bp
from vetclinic.core.auth import init_auth
from vetclinic.core.config import AppConfig
from vetclinic.core.extensions import EXTENSION_KEY, ClinicServices
from vetclinic.core.limiter_config import limiter
from vetclinic.core.logging_config import setup_logging
from vetclinic.core.security import TokenService
from vetclinic.db.session import Database
from vetclinic.services.image_service import LocalImageStorage

logger = logging.getLogger(__name__)


def create_app(config: Optional[AppConfig] = None) -> Flask:
    """Build the Flask application.

    Args:
        config: Settings to run with; read from the environment when omitted

    Returns:
        The configured application with every blueprint registered
    """
    if config is None:
        config = AppConfig.from_env()

    app = Flask(__name__)
    app.config["TESTING"] = config.testing
    app.config["SECRET_KEY"] = config.secret_key
    app.config["MAX_CONTENT_LENGTH"] = config.max_upload_bytes

    setup_logging(app, config)
    config.log_summary()

    # Limiter reads its settings from app.config when bound
    app.config["RATELIMIT_STORAGE_URI"] = config.limiter_storage_uri
    app.config["RATELIMIT_ENABLED"] = config.rate_limit_enabled
    app.config["RATELIMIT_HEADERS_ENABLED"] = True
    limiter.init_app(app)
    limiter.enabled = config.rate_limit_enabled

    init_auth(app)

    database = Database(config.database_url, echo=config.sql_echo)
    app.extensions[EXTENSION_KEY] = ClinicServices(
        config=config,
        database=database,
        token_service=TokenService(
            config.jwt_private_key,
            config.jwt_public_key,
            expiration_hours=config.jwt_expiration_hours,
            issuer=config.jwt_issuer,
        ),
        image_storage=LocalImageStorage(config.image_storage_dir),
    )

    # Production schemas are created by `manage.py init-db`
    if config.testing or not config.is_production:
        database.create_tables()

    for blueprint in (
        auth_bp,
        client_bp,
        pet_bp,
        veterinarian_bp,
        appointment_bp,
        treatment_bp,
        dashboard_bp,
        health_bp,
    ):
        app.register_blueprint(blueprint)

    register_error_handlers(app)

    logger.info(
        "Application created",
        extra={
            "context": {
                "environment": config.environment,
                "blueprints": sorted(app.blueprints),
            }
        },
    )
    return app
