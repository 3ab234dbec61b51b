"""Classified results of one golangci-lint run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from golangci_langserver.schema import LintReport


@dataclass(frozen=True)
class NoLintableFiles:
    """The tool found nothing to lint; published as an empty list."""


@dataclass(frozen=True)
class ToolFailure:
    """The tool could not run, or exited nonzero without a report."""

    message: str


@dataclass(frozen=True)
class MalformedOutput:
    """The tool wrote something to stdout that is not a report."""

    message: str


@dataclass(frozen=True)
class LintFindings:
    report: LintReport


LintOutcome: TypeAlias = NoLintableFiles | ToolFailure | MalformedOutput | LintFindings
