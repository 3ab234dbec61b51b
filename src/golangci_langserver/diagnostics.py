from __future__ import annotations

from pathlib import Path

from lsprotocol.types import Diagnostic, DiagnosticSeverity, Position, Range

from golangci_langserver.invariants import never
from golangci_langserver.outcome import (
    LintFindings,
    LintOutcome,
    MalformedOutput,
    NoLintableFiles,
    ToolFailure,
)
from golangci_langserver.schema import Issue

_SEVERITIES = {
    "err": DiagnosticSeverity.Error,
    "error": DiagnosticSeverity.Error,
    "warn": DiagnosticSeverity.Warning,
    "warning": DiagnosticSeverity.Warning,
    "info": DiagnosticSeverity.Information,
    "hint": DiagnosticSeverity.Hint,
}


def issue_severity(issue: Issue) -> DiagnosticSeverity:
    # Empty severity means no severity rules are configured in golangci-lint.
    return _SEVERITIES.get(issue.severity.strip().lower(), DiagnosticSeverity.Warning)


def diagnostic_message(issue: Issue, *, no_linter_name: bool) -> str:
    if no_linter_name:
        return issue.text
    return f"{issue.from_linter}: {issue.text}"


def _point(line: int, character: int) -> Range:
    position = Position(line=line, character=character)
    return Range(start=position, end=position)


def issue_matches(issue: Issue, path: Path, cwd: Path) -> bool:
    """True when the issue was reported for exactly `path`.

    Relative filenames are anchored to the directory the tool ran in.
    """
    return cwd / issue.pos.filename == path


def issue_to_diagnostic(issue: Issue, *, no_linter_name: bool) -> Diagnostic:
    return Diagnostic(
        range=_point(max(issue.pos.line - 1, 0), max(issue.pos.column - 1, 0)),
        severity=issue_severity(issue),
        source=issue.from_linter,
        message=diagnostic_message(issue, no_linter_name=no_linter_name),
    )


def failure_diagnostic(message: str) -> Diagnostic:
    return Diagnostic(
        range=_point(0, 0),
        severity=DiagnosticSeverity.Error,
        message=message,
    )


def outcome_to_diagnostics(
    outcome: LintOutcome,
    path: Path,
    cwd: Path,
    *,
    no_linter_name: bool = False,
) -> list[Diagnostic]:
    if isinstance(outcome, NoLintableFiles):
        return []
    if isinstance(outcome, (ToolFailure, MalformedOutput)):
        return [failure_diagnostic(outcome.message)]
    if isinstance(outcome, LintFindings):
        return [
            issue_to_diagnostic(issue, no_linter_name=no_linter_name)
            for issue in outcome.report.issues
            if issue_matches(issue, path, cwd)
        ]
    never("unhandled lint outcome", outcome_type=type(outcome).__name__)
