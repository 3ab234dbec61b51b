from __future__ import annotations

import json
import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from pydantic import ValidationError

from golangci_langserver.outcome import (
    LintFindings,
    LintOutcome,
    MalformedOutput,
    NoLintableFiles,
    ToolFailure,
)
from golangci_langserver.schema import LintReport

# golangci-lint pkg/exitcodes: no Go files matched the arguments.
GO_NO_FILES_EXIT_CODE = 5

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess]


@dataclass(frozen=True)
class LintInvocation:
    argv: list[str]
    cwd: Path
    path: Path


def build_invocation(path: Path, command: Sequence[str], root_dir: Path | None) -> LintInvocation:
    """Scope a lint run to the directory holding `path`.

    Inside the root the tool runs from the root, so config discovery and
    reported paths stay root-relative; elsewhere it runs from the directory.
    """
    directory = path.parent
    if root_dir is not None and directory.is_relative_to(root_dir):
        cwd = root_dir
        target = str(directory.relative_to(root_dir))
    else:
        cwd = directory
        target = str(directory)
    return LintInvocation(argv=[*command, target], cwd=cwd, path=path)


def classify(returncode: int, stdout: bytes, stderr: bytes) -> LintOutcome:
    if returncode == GO_NO_FILES_EXIT_CODE:
        return NoLintableFiles()
    if not stdout:
        # Fatal and config errors go to stderr rather than stdout.
        if returncode != 0:
            return ToolFailure(stderr.decode("utf-8", errors="replace"))
        return NoLintableFiles()
    try:
        report = LintReport.model_validate_json(stdout)
    except ValidationError as exc:
        return MalformedOutput(str(exc))
    return LintFindings(report)


def run_lint(invocation: LintInvocation, *, runner: Runner = subprocess.run) -> LintOutcome:
    logger.debug("golangci-lint cmd: %s (cwd=%s)", shlex.join(invocation.argv), invocation.cwd)
    try:
        completed = runner(
            invocation.argv,
            cwd=invocation.cwd,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            check=False,
        )
    except (OSError, ValueError) as exc:
        # ValueError covers argv or cwd the OS rejects, e.g. an embedded NUL.
        logger.debug("golangci-lint failed to start: %s", exc)
        return ToolFailure(str(exc))
    outcome = classify(completed.returncode, completed.stdout or b"", completed.stderr or b"")
    if isinstance(outcome, LintFindings) and logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "golangci-lint result: %s",
            json.dumps(outcome.report.model_dump(by_alias=True)),
        )
    return outcome
