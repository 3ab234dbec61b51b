from __future__ import annotations

from datetime import date, datetime, time
from pathlib import Path
from typing import TypeAlias
import logging
import tomllib

DEFAULT_CONFIG_NAME = "golangci-lint-langserver.toml"
DEFAULT_COMMAND = [
    "golangci-lint",
    "run",
    "--output.json.path=stdout",
    "--show-stats=false",
]

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]

logger = logging.getLogger(__name__)


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        logger.warning("cannot read %s: %s", path, exc)
        return {}
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        logger.warning("ignoring malformed %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def _as_bool(value: TomlValue) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return False


def server_defaults(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    """Return the normalized `command` / `no_linter_name` table from config.

    Keys with unusable values are dropped rather than reported, so a broken
    project file degrades to the built-in defaults.
    """
    data = load_config(root=root, config_path=config_path)
    defaults: TomlTable = {}
    command = data.get("command")
    if isinstance(command, str):
        command = command.split()
    if isinstance(command, list) and command and all(isinstance(item, str) for item in command):
        defaults["command"] = list(command)
    if "no_linter_name" in data:
        defaults["no_linter_name"] = _as_bool(data["no_linter_name"])
    return defaults


def merge_payload(payload: TomlTable, defaults: TomlTable) -> TomlTable:
    merged = dict(defaults)
    for key, value in payload.items():
        if value is None:
            continue
        merged[key] = value
    return merged
