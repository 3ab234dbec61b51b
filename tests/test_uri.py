from __future__ import annotations

from pathlib import Path

from golangci_langserver.uri import path_to_uri, uri_to_path


def test_uri_to_path_decodes_file_uris() -> None:
    assert uri_to_path("file:///proj/pkg/foo.go") == Path("/proj/pkg/foo.go")
    assert uri_to_path("file:///proj/my%20pkg/foo.go") == Path("/proj/my pkg/foo.go")


def test_uri_to_path_passes_plain_paths_through() -> None:
    assert uri_to_path("/proj/pkg/foo.go") == Path("/proj/pkg/foo.go")


def test_path_to_uri_round_trips_through_uri_to_path() -> None:
    path = Path("/proj/my pkg/a#b.go")
    uri = path_to_uri(path)
    assert uri.startswith("file:///proj/my%20pkg/")
    assert uri_to_path(uri) == path
