from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .absentees.controller import register as register_absentees
from .assignments.controller import register as register_assignments
from .common.http import register_error_handlers
from .common.logging_config import configure_logging
from .container import build_container
from .database.bootstrap import apply_schema, list_tables
from .sessions.controller import register as register_sessions
from .teams.controller import register as register_teams
from .timers.controller import register as register_timers

logger = logging.getLogger(__name__)


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    configure_logging(app, level_name=getattr(settings, "LOG_LEVEL", None))
    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config)
        logger.info("schema ready (tables=%s)", len(list_tables(db_config)))

    container = build_container(
        db_config=db_config,
        quota=int(getattr(settings, "FACULTY_TEAM_QUOTA", 4)),
        access_hours=float(getattr(settings, "DEFAULT_ACCESS_HOURS", 24)),
        chunk_size=int(getattr(settings, "BATCH_CHUNK_SIZE", 50)),
        batch_timeout_seconds=int(getattr(settings, "BATCH_TRANSACTION_TIMEOUT_SECONDS", 30)),
    )

    register_error_handlers(app)
    register_timers(app, container)
    register_teams(app, container)
    register_assignments(app, container)
    register_sessions(app, container)
    register_absentees(app, container)

    return app
