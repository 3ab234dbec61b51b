from __future__ import annotations

import logging
import shlex
import sys
from pathlib import Path
from typing import Callable, Mapping, Optional

import typer

from golangci_langserver import server
from golangci_langserver.json_types import JSONObject
from golangci_langserver.lsp_client import CheckRequest, LspClientError, lint_document

app = typer.Typer(add_completion=False)

_SEVERITY_NAMES = {1: "error", 2: "warning", 3: "info", 4: "hint"}
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(*, debug: bool, log_file: Optional[Path] = None) -> None:
    # stdout carries the protocol, so logs go to stderr or a file.
    handler: logging.Handler
    if log_file is not None:
        handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        handlers=[handler],
        force=True,
    )


def _context_start(ctx: typer.Context) -> Callable[..., None]:
    obj = ctx.obj
    if isinstance(obj, Mapping):
        candidate = obj.get("start")
        if callable(candidate):
            return candidate
    return server.start


def _context_lint_document(ctx: typer.Context) -> Callable[..., list[JSONObject]]:
    obj = ctx.obj
    if isinstance(obj, Mapping):
        candidate = obj.get("lint_document")
        if callable(candidate):
            return candidate
    return lint_document


def format_diagnostic(path: Path, diagnostic: JSONObject) -> str:
    start = {}
    range_ = diagnostic.get("range")
    if isinstance(range_, dict) and isinstance(range_.get("start"), dict):
        start = range_["start"]
    line = int(start.get("line", 0)) + 1
    column = int(start.get("character", 0)) + 1
    severity = _SEVERITY_NAMES.get(diagnostic.get("severity"), "warning")
    message = str(diagnostic.get("message", "")).rstrip()
    return f"{path}:{line}:{column}: {severity}: {message}"


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Log requests and lint runs."),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Write logs here instead of stderr."),
) -> None:
    """Language server publishing golangci-lint findings as diagnostics."""
    configure_logging(debug=debug, log_file=log_file)
    if ctx.invoked_subcommand is None:
        _context_start(ctx)()


@app.command()
def serve(
    ctx: typer.Context,
    nolintername: bool = typer.Option(
        False, "--nolintername", help="Do not prefix messages with the linter name."
    ),
    tcp: bool = typer.Option(False, "--tcp", help="Listen on TCP instead of stdio."),
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(2087, "--port"),
) -> None:
    """Run the language server."""
    _context_start(ctx)(
        no_linter_name=True if nolintername else None,
        tcp=tcp,
        host=host,
        port=port,
    )


@app.command()
def check(
    ctx: typer.Context,
    path: Path = typer.Argument(..., exists=True, dir_okay=False, resolve_path=True),
    root: Optional[Path] = typer.Option(None, "--root", help="Workspace root; defaults to the file's directory."),
    command: Optional[str] = typer.Option(None, "--command", help="Lint command line, e.g. 'golangci-lint run --output.json.path=stdout'."),
    nolintername: bool = typer.Option(False, "--nolintername"),
    timeout: float = typer.Option(120.0, "--timeout", help="Seconds to wait for diagnostics."),
) -> None:
    """Lint one file through the language server and print its diagnostics."""
    request = CheckRequest(
        path=path,
        root=root,
        command=shlex.split(command) if command else None,
        no_linter_name=nolintername,
    )
    run = _context_lint_document(ctx)
    try:
        diagnostics = run(request, timeout=timeout)
    except LspClientError as exc:
        typer.echo(f"check failed: {exc}", err=True)
        raise typer.Exit(code=2)
    for diagnostic in diagnostics:
        typer.echo(format_diagnostic(path, diagnostic))
    if any(diagnostic.get("severity") == 1 for diagnostic in diagnostics):
        raise typer.Exit(code=1)
