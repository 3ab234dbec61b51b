from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from golangci_langserver import cli
from golangci_langserver.lsp_client import LspClientError


def _diagnostic(line: int, character: int, severity: int, message: str) -> dict:
    position = {"line": line, "character": character}
    return {"range": {"start": position, "end": position}, "severity": severity, "message": message}


def test_no_subcommand_starts_the_server() -> None:
    calls: list[dict] = []
    runner = CliRunner()
    result = runner.invoke(cli.app, [], obj={"start": lambda **kwargs: calls.append(kwargs)})
    assert result.exit_code == 0, result.output
    assert calls == [{}]


def test_serve_forwards_flags() -> None:
    calls: list[dict] = []
    runner = CliRunner()
    result = runner.invoke(
        cli.app,
        ["--debug", "serve", "--nolintername", "--tcp", "--port", "9000"],
        obj={"start": lambda **kwargs: calls.append(kwargs)},
    )
    assert result.exit_code == 0, result.output
    assert calls == [{"no_linter_name": True, "tcp": True, "host": "127.0.0.1", "port": 9000}]


def test_serve_leaves_linter_name_to_initialization_options_by_default() -> None:
    calls: list[dict] = []
    runner = CliRunner()
    result = runner.invoke(cli.app, ["serve"], obj={"start": lambda **kwargs: calls.append(kwargs)})
    assert result.exit_code == 0, result.output
    assert calls[0]["no_linter_name"] is None


def test_check_prints_diagnostics_and_fails_on_errors(tmp_path: Path) -> None:
    document = tmp_path / "main.go"
    document.write_text("package main\n")
    requests: list = []

    def _lint(request, *, timeout):
        requests.append(request)
        return [
            _diagnostic(2, 4, 2, "unused: x is unused"),
            _diagnostic(0, 0, 1, "typecheck failed\n"),
        ]

    runner = CliRunner()
    result = runner.invoke(
        cli.app,
        ["check", str(document), "--command", "golangci-lint run --fast"],
        obj={"lint_document": _lint},
    )
    assert result.exit_code == 1
    assert f"{document}:3:5: warning: unused: x is unused" in result.output
    assert f"{document}:1:1: error: typecheck failed" in result.output
    assert requests[0].command == ["golangci-lint", "run", "--fast"]


def test_check_succeeds_without_errors(tmp_path: Path) -> None:
    document = tmp_path / "main.go"
    document.write_text("package main\n")
    runner = CliRunner()
    result = runner.invoke(
        cli.app,
        ["check", str(document)],
        obj={"lint_document": lambda request, *, timeout: [_diagnostic(0, 0, 3, "note")]},
    )
    assert result.exit_code == 0
    assert "info: note" in result.output


def test_check_reports_client_errors(tmp_path: Path) -> None:
    document = tmp_path / "main.go"
    document.write_text("package main\n")

    def _fail(request, *, timeout):
        raise LspClientError("LSP response timed out")

    runner = CliRunner()
    result = runner.invoke(cli.app, ["check", str(document)], obj={"lint_document": _fail})
    assert result.exit_code == 2
