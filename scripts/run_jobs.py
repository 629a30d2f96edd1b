"""Run a scheduled job from cron.

    python scripts/run_jobs.py process-scheduled
    python scripts/run_jobs.py aggregate-analytics --year 2026 --month 9
"""

from __future__ import annotations

import argparse
import dataclasses
import importlib
import json
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.yourobc.yourobc.container import Settings, build_container
from src.yourobc.yourobc.jobs.cli import JOB_NAMES, run_job
from src.yourobc.yourobc.main import configure_logging


def main() -> None:
    parser = argparse.ArgumentParser(description="Run a YourOBC maintenance job")
    parser.add_argument("name", choices=JOB_NAMES)
    parser.add_argument("--year", type=int, help="Analytics year (default: previous month)")
    parser.add_argument("--month", type=int, help="Analytics month (default: previous month)")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(db_config=dict(settings.DB_CONFIG), settings=Settings.from_module(settings))
    result = run_job(container, args.name, year=args.year, month=args.month)
    print(json.dumps(dataclasses.asdict(result)))


if __name__ == "__main__":
    main()
