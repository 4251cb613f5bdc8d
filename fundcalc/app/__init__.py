"""Application factory and app-wide configuration."""

import logging
from typing import Any, Mapping, Optional

from flask import Flask
from flask_cors import CORS

from fundcalc.app.api.routes import api_bp
from fundcalc.app.config import Config

logger = logging.getLogger(__name__)


def create_app(overrides: Optional[Mapping[str, Any]] = None, config: type = Config) -> Flask:
    """Build the Flask app instance."""
    app = Flask(__name__)
    app.config.from_object(config)
    app.config.from_prefixed_env("FUNDCALC")
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.json.sort_keys = app.config["JSON_SORT_KEYS"]

    CORS(
        app,
        resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}},
        supports_credentials=True,
    )

    app.register_blueprint(api_bp, url_prefix="/api")
    logger.debug("fundcalc app created with origins %s", app.config["CORS_ORIGINS"])
    return app
