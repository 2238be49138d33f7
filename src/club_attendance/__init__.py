"""Club Attendance package.

This package is organized by feature modules (users, sessions, attendance,
reports, dashboard) with a thin Flask controller layer over service and
repository layers.
"""
from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask
from werkzeug.exceptions import HTTPException

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.responses import fail, ok
from .container import Container, build_container
from .core.constants import API_PREFIX
from .core.exceptions import DomainError
from .dashboard.controller import register as register_dashboard
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables
from .sessions.controller import register as register_sessions
from .users.controller import register as register_users


def _configure_logging(app: Flask, level_name: str) -> None:
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    app.logger.setLevel(level)
    logging.getLogger(__name__).setLevel(level)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        return fail(str(exc), status=exc.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return fail(exc.description or exc.name, status=exc.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        app.logger.exception("Unhandled error: %s", exc)
        return fail("Server error", status=500)


def _bootstrap_database(app: Flask, container: Container, settings) -> None:
    auto_init_db = bool(getattr(settings, "AUTO_INIT_DB", False))
    auto_seed_db = bool(getattr(settings, "AUTO_SEED_DB", False))
    if container.conn is None or not (auto_init_db or auto_seed_db):
        return

    if auto_init_db:
        schema_path = Path(__file__).resolve().parents[2] / "database" / "schema.sql"
        apply_schema(container.conn, schema_path=schema_path)
        app.logger.info("schema ready (tables=%d)", len(list_tables(container.conn)))
    if auto_seed_db:
        ensure_demo_users(container.conn)
        app.logger.info("demo seed ready")


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    _configure_logging(app, getattr(settings, "LOG_LEVEL", "INFO"))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        app.logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        container = build_container(settings)
        _bootstrap_database(app, container, settings)

    app.extensions["club_attendance"] = container
    _register_error_handlers(app)

    @app.route(f"{API_PREFIX}/health", methods=["GET"], endpoint="health")
    def health():
        return ok({"status": "ok"}, message="Server is running")

    register_users(app, container)
    register_sessions(app, container)
    register_attendance(app, container)
    register_dashboard(app, container)

    return app
