from __future__ import annotations

import importlib
import logging
from typing import Any, Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import build_container
from .core.constants import DEFAULT_TIMEZONE
from .core.enums import ErrorKind
from .core.exceptions import DomainError
from .database.bootstrap import apply_schema, list_tables
from .leave.controller import register as register_leave
from .overtime.controller import register as register_overtime

logger = logging.getLogger(__name__)

HTTP_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.POLICY: 422,
    ErrorKind.STATE: 409,
    ErrorKind.COLLABORATOR: 503,
}


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        status = HTTP_STATUS_BY_KIND.get(exc.kind, 400)
        if exc.kind == ErrorKind.COLLABORATOR:
            logger.error("Collaborator failure: %s", exc)
        return (
            jsonify({"success": False, "kind": exc.kind.value, "retryable": exc.retryable, "message": str(exc)}),
            status,
        )


def create_app(container: Optional[Any] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logger.info(
        "Starting with settings=%s db=%s@%s:%s/%s",
        settings_module, db_config.get("user"), db_config.get("host"), db_config.get("port", 3306), db_config.get("database"),
    )

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        container = build_container(
            db_config=db_config,
            timezone=getattr(settings, "EMPLOYER_TIMEZONE", DEFAULT_TIMEZONE),
        )

    register_error_handlers(app)
    register_attendance(app, container)
    register_leave(app, container)
    register_overtime(app, container)

    return app
