from __future__ import annotations

from pathlib import Path
from urllib.parse import quote, unquote, urlparse


def uri_to_path(uri: str) -> Path:
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return Path(uri)


def path_to_uri(path: Path | str) -> str:
    return "file://" + quote(str(path), safe="/:")
