from __future__ import annotations

import pytest
from pydantic import ValidationError

from golangci_langserver.schema import InitializationOptions, LintReport

from tests.lint_helpers import issue, report_bytes


def test_report_parses_issue_fields() -> None:
    report = LintReport.model_validate_json(
        report_bytes(issue("/proj/foo.go", 3, 7, linter="errcheck", text="unchecked", severity="error"))
    )
    [parsed] = report.issues
    assert parsed.pos.filename == "/proj/foo.go"
    assert (parsed.pos.line, parsed.pos.column) == (3, 7)
    assert parsed.from_linter == "errcheck"
    assert parsed.text == "unchecked"
    assert parsed.severity == "error"


@pytest.mark.parametrize("payload", [b'{"Issues": null}', b"{}"])
def test_report_without_issues_is_empty(payload: bytes) -> None:
    assert LintReport.model_validate_json(payload).issues == []


def test_report_rejects_non_json() -> None:
    with pytest.raises(ValidationError):
        LintReport.model_validate_json(b"level=error msg=boom")


def test_initialization_options_accept_camel_case() -> None:
    options = InitializationOptions.model_validate(
        {"command": ["golangci-lint", "run"], "noLinterName": True}
    )
    assert options.command == ["golangci-lint", "run"]
    assert options.no_linter_name is True


def test_initialization_options_reject_empty_command() -> None:
    with pytest.raises(ValidationError):
        InitializationOptions.model_validate({"command": []})
    with pytest.raises(ValidationError):
        InitializationOptions.model_validate({"command": "golangci-lint run"})
