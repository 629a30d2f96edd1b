"""Create the YourOBC schema and optionally load demo data.

    python scripts/init_db.py            # schema only
    python scripts/init_db.py --seed     # schema, demo users and demo rows
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.yourobc.yourobc.database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from src.yourobc.yourobc.main import configure_logging


def main() -> None:
    parser = argparse.ArgumentParser(description="Initialise the YourOBC database")
    parser.add_argument("--seed", action="store_true", help="also create demo users and load database/seed.sql")
    parser.add_argument("--skip-schema", action="store_true", help="only seed an existing schema")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)
    target = f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"

    if not args.skip_schema:
        apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
        print(f"OK: schema -> {target} (tables={len(list_tables(db_config))})")

    if args.seed:
        # seed.sql references the demo users by username
        ensure_demo_users(db_config)
        apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
        print(f"OK: demo data -> {target}")


if __name__ == "__main__":
    main()
