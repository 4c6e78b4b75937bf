"""WorkTrack application factory."""

import logging
import os
import sys

from flask import Flask

from app.config import config
from app.extensions import db

APP_LOGGERS = ("app", "analytics")
QUIET_LOGGERS = ("sqlalchemy.engine", "werkzeug")


def create_app(config_name: str | None = None) -> Flask:
    """Build the WorkTrack API.

    Args:
        config_name: Key into :data:`app.config.config`. Falls back to the
            ``FLASK_ENV`` environment variable, then 'development'.
    """
    config_name = config_name or os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name])

    _configure_logging(app)
    os.makedirs(app.instance_path, exist_ok=True)

    db.init_app(app)
    from app import models  # noqa: F401  (registers the tables)

    with app.app_context():
        db.create_all()

    _register_request_hooks(app)
    _register_blueprints(app)

    logging.getLogger(__name__).debug(
        f"WorkTrack started with '{config_name}' config, "
        f"transition checks {'on' if app.config['ENFORCE_STATUS_TRANSITIONS'] else 'off'}"
    )
    return app


def _configure_logging(app: Flask) -> None:
    level = logging.DEBUG if app.debug else app.config.get("LOG_LEVEL", logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )
    for name in APP_LOGGERS:
        logging.getLogger(name).setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _register_request_hooks(app: Flask) -> None:
    from app.auth import load_caller
    from app.errors import register_error_handlers

    app.before_request(load_caller)
    register_error_handlers(app)


def _register_blueprints(app: Flask) -> None:
    from app.blueprints.api import bp as api_bp
    from app.blueprints.main import bp as main_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(api_bp, url_prefix="/api")
