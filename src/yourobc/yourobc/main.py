from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .audit.controller import register as register_audit
from .comments.controller import register as register_comments
from .commissions.controller import register as register_commissions
from .common.http import ApiJSONProvider, register_error_handlers
from .container import Settings, build_container
from .counters.controller import register as register_counters
from .couriers.controller import register as register_couriers
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from .employees.controller import register as register_employees
from .exchange_rates.controller import register as register_exchange_rates
from .invoices.controller import register as register_invoices
from .jobs.cli import register_cli
from .kpis.controller import register as register_kpis
from .notifications.controller import register as register_notifications
from .partners.controller import register as register_partners
from .projects.controller import register as register_projects
from .quotes.controller import register as register_quotes
from .reminders.controller import register as register_reminders
from .sessions.controller import register as register_sessions
from .users.controller import register as register_users
from .vacations.controller import register as register_vacations
from .wiki.controller import register as register_wiki

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]

_CONTROLLERS = (
    register_users,
    register_counters,
    register_invoices,
    register_employees,
    register_sessions,
    register_vacations,
    register_kpis,
    register_commissions,
    register_projects,
    register_couriers,
    register_partners,
    register_quotes,
    register_exchange_rates,
    register_wiki,
    register_comments,
    register_reminders,
    register_notifications,
    register_audit,
)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)
    app.json = ApiJSONProvider(app)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
        logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        ensure_demo_users(db_config)
        apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
        logger.info("Demo seed ready")

    container = build_container(db_config=db_config, settings=Settings.from_module(settings))
    register_error_handlers(app)
    for register in _CONTROLLERS:
        register(app, container)
    register_cli(app, container)

    return app
