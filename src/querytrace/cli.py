# src/querytrace/cli.py
"""querytrace Command Line Interface.

Inspect and relay connector telemetry outside a running connector:
canonicalize a captured plan, print the client info document, or push a
plan event through the configured transport.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from pydantic import ValidationError

from querytrace import __version__
from querytrace.contracts.config import RuntimeTelemetryConfig
from querytrace.contracts.plans import LogicalPlan
from querytrace.core.config import QuerytraceSettings, load_settings
from querytrace.core.plan_loader import PlanDescriptionError, load_plan
from querytrace.telemetry.canonicalize import plan_to_document, plan_tree
from querytrace.telemetry.client_info import client_info_document
from querytrace.telemetry.errors import TelemetryTransportError
from querytrace.telemetry.factory import create_telemetry_manager

__all__ = ["app"]

app = typer.Typer(
    name="querytrace",
    help="querytrace: plan and pushdown telemetry for the Snowflake connector.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"querytrace version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables (e.g. session tokens) from a .env file.

    Raises:
        typer.Exit: If an explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(f"Error: .env file not found: {env_file}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)
    return load_dotenv(override=False)


def _fail(message: str) -> typer.Exit:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    return typer.Exit(1)


def _read_plan(plan_file: Path) -> LogicalPlan:
    if not plan_file.exists():
        raise _fail(f"Plan file not found: {plan_file}")
    try:
        return load_plan(plan_file)
    except PlanDescriptionError as e:
        raise _fail(f"Invalid plan description: {e}") from None


def _parse_extra(extra: list[str]) -> dict[str, str]:
    values: dict[str, str] = {}
    for item in extra:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise _fail(f"--extra expects KEY=VALUE, got {item!r}")
        values[key] = value
    return values


def _load_settings_or_exit(settings_path: Path | None) -> QuerytraceSettings:
    if settings_path is None:
        return QuerytraceSettings()
    try:
        return load_settings(settings_path)
    except FileNotFoundError as e:
        raise _fail(str(e)) from None
    except ValidationError as e:
        raise _fail(f"Invalid settings: {e}") from None


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(False, "--no-dotenv", help="Skip loading .env file."),
    env_file: Path | None = typer.Option(None, "--env-file", help="Path to .env file (skips automatic search)."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Output structured JSON logs."),
) -> None:
    """querytrace: plan and pushdown telemetry for the Snowflake connector."""
    from querytrace.core.logging import configure_logging

    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "WARNING")

    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho("Warning: --env-file ignored because --no-dotenv is set.", fg=typer.colors.YELLOW, err=True)


@app.command()
def canonicalize(
    plan_file: Path = typer.Argument(..., help="YAML/JSON plan description."),
    all_plans: bool = typer.Option(
        False,
        "--all",
        "-a",
        help="Canonicalize any plan, not only complete queries that read Snowflake.",
    ),
    indent: int | None = typer.Option(2, "--indent", help="JSON indent; 0 for compact output."),
) -> None:
    """Print the canonical telemetry document for a plan.

    Without --all, exits with code 1 when the plan would not produce a plan event.
    """
    plan = _read_plan(plan_file)
    if all_plans:
        is_snowflake_plan, document = plan_tree(plan)
        output = {"is_snowflake_plan": is_snowflake_plan, "plan": document}
    else:
        result = plan_to_document(plan)
        if result is None:
            typer.secho(
                "Plan produces no telemetry: root must be ReturnAnswer and read a Snowflake relation.",
                fg=typer.colors.YELLOW,
                err=True,
            )
            raise typer.Exit(1)
        _, output = result
    typer.echo(json.dumps(output, indent=indent or None))


@app.command("client-info")
def client_info(
    extra: list[str] = typer.Option([], "--extra", "-e", help="Extra KEY=VALUE pairs (repeatable)."),
    settings: Path | None = typer.Option(None, "--settings", "-s", help="Path to settings YAML file."),
) -> None:
    """Print the client info document that is sent once per process."""
    loaded = _load_settings_or_exit(settings)
    document = client_info_document(loaded.telemetry.deployment)
    document.update(_parse_extra(extra))
    typer.echo(json.dumps(document, indent=2))


@app.command()
def send(
    plan_file: Path = typer.Argument(..., help="YAML/JSON plan description."),
    settings: Path | None = typer.Option(None, "--settings", "-s", help="Path to settings YAML file."),
    extra: list[str] = typer.Option([], "--extra", "-e", help="Extra client info KEY=VALUE pairs (repeatable)."),
) -> None:
    """Send client info and the plan event through the configured transport."""
    loaded = _load_settings_or_exit(settings)
    if settings is not None:
        from querytrace.core.logging import configure_logging

        configure_logging(json_output=loaded.logging.json_output, level=loaded.logging.level)
    extra_values = _parse_extra(extra)
    plan = _read_plan(plan_file)

    config = RuntimeTelemetryConfig.from_settings(loaded.telemetry)
    try:
        manager = create_telemetry_manager(config)
    except TelemetryTransportError as e:
        raise _fail(str(e)) from None
    if manager is None:
        typer.secho("Telemetry is disabled in settings; nothing sent.", fg=typer.colors.YELLOW, err=True)
        return

    try:
        manager.send_client_info_if_not_yet(extra_values)
        recorded = manager.add_plan_telemetry(plan)
        sent = manager.send()
    finally:
        manager.close()

    if not recorded:
        typer.secho("Plan produced no telemetry event.", fg=typer.colors.YELLOW, err=True)
    typer.secho(f"Sent {sent} event(s) in final batch.", err=True)


if __name__ == "__main__":
    app()
