"""cgp-lens render command - rewrite a cargo JSON message stream."""

from __future__ import annotations

import json
from pathlib import Path
from typing import IO, Any

import click
import structlog

from cgplens.analysis import RenderedDiagnostic, finalize, ingest, new_session
from cgplens.cli.output import make_console, print_diagnostic
from cgplens.config import CgpLensConfig, load_config
from cgplens.core.errors import CgpLensError, InternalError
from cgplens.core.logging import clear_run_id, configure_logging, get_log_file_path
from cgplens.diagnostics import CargoMessage, CompilerDiagnostic, parse_message_stream

log = structlog.get_logger(__name__)


def _overrides(
    message_format: str | None, color: str | None, use_ascii: bool
) -> dict[str, Any]:
    render: dict[str, Any] = {}
    if message_format is not None:
        render["message_format"] = message_format
    if color is not None:
        render["color"] = color
    if use_ascii:
        render["charset"] = "ascii"
    return {"render": render} if render else {}


@click.command()
@click.argument("input_file", default="-", type=click.File("r", encoding="utf-8"))
@click.option(
    "--message-format",
    type=click.Choice(["human", "json"]),
    default=None,
    help="Output rendered text or cargo JSON messages",
)
@click.option(
    "--color",
    type=click.Choice(["auto", "always", "never"]),
    default=None,
    help="Colorize human output",
)
@click.option("--ascii", "use_ascii", is_flag=True, help="Draw trees with ASCII characters")
@click.option(
    "--project",
    "project_root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory holding .cgplens.yaml (default: current directory)",
)
@click.pass_context
def render_command(
    ctx: click.Context,
    input_file: IO[str],
    message_format: str | None,
    color: str | None,
    use_ascii: bool,
    project_root: Path | None,
) -> None:
    """Render CGP errors from `cargo check --message-format=json` output.

    INPUT_FILE is a saved message stream, or '-' for stdin (default).
    """
    try:
        config = load_config(project_root, **_overrides(message_format, color, use_ascii))
    except CgpLensError as e:
        raise click.ClickException(str(e)) from e

    if not (ctx.obj or {}).get("verbose"):
        configure_logging(config=config.logging)

    try:
        saw_error = _run(input_file, config)
    except CgpLensError as e:
        raise click.ClickException(str(e)) from e
    except Exception as e:
        log.error("render_failed", error_type=type(e).__name__, error=str(e))
        raise click.ClickException(_internal_error_message(e)) from e
    finally:
        clear_run_id()

    if saw_error:
        ctx.exit(1)


def _run(input_file: IO[str], config: CgpLensConfig) -> bool:
    """Stream messages through one analysis session. Returns True on any error."""
    render = config.render
    as_json = render.message_format == "json"
    console = make_console(render.color)
    session = new_session()
    envelopes: dict[int, CargoMessage] = {}
    saw_error = False

    for message in parse_message_stream(input_file):
        if message.diagnostic is None:
            if message.parse_error:
                log.debug("stream_line_unparsed", error=message.parse_error)
            if as_json or message.envelope is None:
                click.echo(message.line)
            continue

        outcome = ingest(session, message.diagnostic)
        if outcome.held:
            envelopes[id(message.diagnostic)] = message
            continue

        saw_error = saw_error or message.diagnostic.is_error
        if as_json:
            click.echo(message.line)
        else:
            print_diagnostic(console, message.diagnostic.text)

    for rendered in finalize(session, render):
        saw_error = saw_error or rendered.is_error
        first = envelopes.get(id(rendered.sources[0])) if rendered.sources else None
        if as_json:
            click.echo(_json_line(rendered, first))
        else:
            print_diagnostic(
                console,
                rendered.render_plain(show_source=render.show_source, tab_width=render.tab_width),
            )
    return saw_error


def _json_line(rendered: RenderedDiagnostic, first: CargoMessage | None) -> str:
    """Cargo message line for a rendered diagnostic, in its first source's envelope."""
    if rendered.is_pass_through and first is not None:
        return first.line
    diagnostic: CompilerDiagnostic = rendered.to_compiler_diagnostic()
    if first is not None:
        return json.dumps(first.with_diagnostic(diagnostic))
    return json.dumps({"reason": "compiler-message", "message": diagnostic.to_dict()})


def _internal_error_message(exc: Exception) -> str:
    error = InternalError.unexpected(str(exc) or type(exc).__name__, error_type=type(exc).__name__)
    log_file = get_log_file_path()
    if log_file is None:
        return str(error)
    return f"{error}. See {log_file} for details."
