from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer
from lsprotocol import converters
from pydantic import TypeAdapter, ValidationError

from gomodfix import config as gomodfix_config
from gomodfix.exceptions import GomodfixError, NoDiagnosticError
from gomodfix.json_types import JSONObject, JSONValue
from gomodfix.mod import compute_diagnostics, compute_quick_fixes, locate_tool_error
from gomodfix.schema import DiagnosticDTO
from gomodfix.snapshot import WorkspaceSnapshot

app = typer.Typer(add_completion=False)

_CONVERTER = converters.get_converter()
_DIAGNOSTICS_ADAPTER = TypeAdapter(List[DiagnosticDTO])
_LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

EXIT_NO_DIAGNOSTIC = 1
EXIT_FAILURE = 2


def configure_logging(level: str) -> None:
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise typer.BadParameter(f"unknown log level {level!r}", param_hint="--log-level")
    logging.basicConfig(level=numeric, format=_LOG_FORMAT, stream=sys.stderr, force=True)


def _emit(payload: JSONValue) -> None:
    typer.echo(json.dumps(payload, indent=2))


def _fail(message: str, code: int = EXIT_FAILURE) -> typer.Exit:
    typer.echo(message, err=True)
    return typer.Exit(code=code)


def _snapshot(root: Path, config: Path | None, report: Path | None = None) -> WorkspaceSnapshot:
    return WorkspaceSnapshot.from_config(
        root.resolve(),
        config_path=config,
        report=report.resolve() if report is not None else None,
    )


def _setup_logging(ctx: typer.Context, root: Path | None, config: Path | None) -> None:
    # --log-level wins over the [logging] section of the workspace config.
    level = ctx.obj
    if level is None:
        level = gomodfix_config.log_level(
            gomodfix_config.logging_defaults(root=root, config_path=config)
        )
    configure_logging(level)


@app.callback()
def main(
    ctx: typer.Context,
    log_level: Optional[str] = typer.Option(None, "--log-level"),
) -> None:
    """Diagnostics and quick fixes for go.mod files."""
    if log_level is not None:
        configure_logging(log_level)
    ctx.obj = log_level


@app.command()
def diagnose(
    ctx: typer.Context,
    root: Path = typer.Argument(Path("."), help="Module root containing go.mod."),
    report: Optional[Path] = typer.Option(None, "--report", help="JSON tidy report."),
    config: Optional[Path] = typer.Option(None, "--config"),
) -> None:
    """Print go.mod diagnostics grouped by file URI."""
    _setup_logging(ctx, root.resolve(), config)
    snapshot = _snapshot(root, config, report)
    try:
        reports = compute_diagnostics(snapshot)
    except (GomodfixError, ValidationError) as exc:
        raise _fail(str(exc))
    payload: JSONObject = {}
    for identity, diagnostics in reports.items():
        payload.setdefault(identity.uri, [])
        payload[identity.uri].extend(_CONVERTER.unstructure(d) for d in diagnostics)
    _emit(payload)


@app.command()
def fix(
    ctx: typer.Context,
    root: Path = typer.Argument(Path("."), help="Module root containing go.mod."),
    diagnostics: Path = typer.Option(..., "--diagnostics", help="JSON list of diagnostics."),
    report: Optional[Path] = typer.Option(None, "--report", help="JSON tidy report."),
    config: Optional[Path] = typer.Option(None, "--config"),
) -> None:
    """Print quick fixes for previously reported diagnostics."""
    _setup_logging(ctx, root.resolve(), config)
    try:
        selected = _DIAGNOSTICS_ADAPTER.validate_json(diagnostics.read_text(encoding="utf-8"))
    except OSError as exc:
        raise _fail(f"cannot read {diagnostics}: {exc}")
    except ValidationError as exc:
        raise _fail(f"invalid diagnostics in {diagnostics}: {exc}")
    snapshot = _snapshot(root, config, report)
    try:
        actions = compute_quick_fixes(snapshot, [dto.to_diagnostic() for dto in selected])
    except (GomodfixError, ValidationError) as exc:
        raise _fail(str(exc))
    _emit([_CONVERTER.unstructure(action) for action in actions])


@app.command()
def locate(
    ctx: typer.Context,
    root: Path = typer.Argument(..., help="Module root containing go.mod."),
    error: str = typer.Argument(..., help="Error text printed by the go command."),
    config: Optional[Path] = typer.Option(None, "--config"),
) -> None:
    """Anchor a go command error to the go.mod statement it mentions."""
    _setup_logging(ctx, root.resolve(), config)
    snapshot = _snapshot(root, config)
    uri = snapshot.mod_file()
    if uri is None:
        raise _fail(f"no {snapshot.modfile_name} in {root}")
    try:
        diagnostic = locate_tool_error(snapshot, snapshot.get_file(uri), error)
    except NoDiagnosticError as exc:
        raise _fail(str(exc), code=EXIT_NO_DIAGNOSTIC)
    except GomodfixError as exc:
        raise _fail(str(exc))
    _emit(_CONVERTER.unstructure(diagnostic))


@app.command()
def serve(ctx: typer.Context) -> None:
    """Run the language server over stdio."""
    _setup_logging(ctx, None, None)
    from gomodfix.server import start

    start()
