from __future__ import annotations

import dataclasses
import json
from typing import Optional

import click
from flask import Flask

from ..container import Container

JOB_NAMES = ("aggregate-analytics", "process-scheduled")


def run_job(container: Container, name: str, *, year: Optional[int] = None, month: Optional[int] = None):
    if name == "aggregate-analytics":
        return container.job_runner.aggregate_analytics(year=year, month=month)
    if name == "process-scheduled":
        return container.job_runner.process_scheduled()
    raise ValueError(f"Unknown job: {name}")


def register_cli(app: Flask, container: Container) -> None:
    @app.cli.command("run-job")
    @click.argument("name", type=click.Choice(JOB_NAMES))
    @click.option("--year", type=int, default=None)
    @click.option("--month", type=int, default=None)
    def run_job_command(name: str, year: Optional[int], month: Optional[int]) -> None:
        """Run one scheduled job and print its result."""
        result = run_job(container, name, year=year, month=month)
        click.echo(json.dumps(dataclasses.asdict(result)))
