from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import asdict
from enum import Enum
from typing import Iterator, Optional, Sequence

import typer
from typing_extensions import Annotated

from .container import Container
from ..core.domain.errors import ConfigurationError, IngestError
from ..core.domain.models import VulnerabilityRecord


app = typer.Typer(add_completion=False, help="Ingest vulnerability scan results from GitHub repositories")


class LogLevel(str, Enum):
    OFF = "OFF"
    CRITICAL = "CRITICAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"
    DEBUG = "DEBUG"


@contextmanager
def provide_container() -> Iterator[Container]:
    container = Container()
    try:
        yield container
    finally:
        container.shutdown_resources()


@contextmanager
def _exit_on_error() -> Iterator[None]:
    try:
        yield
    except ConfigurationError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=2)
    except IngestError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


@app.callback()
def main(
    log_level: Annotated[
        Optional[LogLevel],
        typer.Option("--log-level", help="Set log level (OFF, CRITICAL, ERROR, WARNING, INFO, DEBUG). Default: OFF"),
    ] = None,
) -> None:
    """Root command callback to configure logging if requested."""
    if log_level in (None, LogLevel.OFF):
        return

    level = logging.getLevelName(log_level.value)
    package_name = __package__.split(".", 1)[0] if __package__ else "vuln_ingest"
    logger = logging.getLogger(package_name)

    # Avoid stacking console handlers when invoked repeatedly (tests)
    has_stream = any(isinstance(h, logging.StreamHandler) for h in logger.handlers)
    if not has_stream:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s | %(name)s | %(message)s"))
        logger.addHandler(handler)

    logger.propagate = False
    logger.setLevel(level)


@app.command(help="Search REPO for scan result files, ingest them and print the scan summary as JSON.")
def scan(
    repo: str = typer.Argument(..., help="Repository in owner/name form"),
    files: Optional[list[str]] = typer.Option(
        None, "--file", "-f", help="File name to look for, without .json (repeatable). Default: every JSON file"
    ),
) -> None:
    with provide_container() as container, _exit_on_error():
        uc = container.scan_uc()
        summary = uc.execute(repo, files or None)
        typer.echo(json.dumps(summary.to_dict(), ensure_ascii=False, indent=2))


@app.command(help="Print stored vulnerabilities with exactly SEVERITY (e.g. HIGH) as JSON, newest scan first.")
def query(severity: str = typer.Argument(..., help="Severity to match (case-sensitive)")) -> None:
    with provide_container() as container, _exit_on_error():
        uc = container.query_uc()
        records = uc.execute(severity)
        typer.echo(json.dumps(_records_to_json(records), ensure_ascii=False, indent=2, default=str))


@app.command("init-db", help="Create the vulnerabilities table if it does not exist.")
def init_db() -> None:
    with provide_container() as container, _exit_on_error():
        container.store()
        typer.echo("Schema ready")


def _records_to_json(records: Sequence[VulnerabilityRecord]) -> list[dict]:
    out = []
    for r in records:
        item = asdict(r)
        item["risk_factors"] = list(r.risk_factors)
        out.append(item)
    return out


if __name__ == "__main__":  # pragma: no cover
    app()
