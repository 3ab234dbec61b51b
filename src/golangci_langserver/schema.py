from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IssuePosition(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    filename: str = Field(alias="Filename")
    line: int = Field(default=0, alias="Line")
    column: int = Field(default=0, alias="Column")


class Issue(BaseModel):
    """A single finding in the golangci-lint JSON report."""

    model_config = ConfigDict(populate_by_name=True)

    pos: IssuePosition = Field(alias="Pos")
    from_linter: str = Field(default="", alias="FromLinter")
    text: str = Field(default="", alias="Text")
    severity: str = Field(default="", alias="Severity")


class LintReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    issues: List[Issue] = Field(default_factory=list, alias="Issues")

    @field_validator("issues", mode="before")
    @classmethod
    def _null_issues(cls, value: object) -> object:
        # golangci-lint writes `"Issues": null` when nothing was found.
        if value is None:
            return []
        return value


class InitializationOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    command: Optional[List[str]] = None
    no_linter_name: Optional[bool] = Field(default=None, alias="noLinterName")

    @field_validator("command")
    @classmethod
    def _non_empty_command(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is not None and not value:
            raise ValueError("command must name an executable")
        return value
