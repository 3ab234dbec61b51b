"""Minimal stdio LSP client used to lint one document through the server."""

from __future__ import annotations

import json
import select
import subprocess
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from lsprotocol.types import TEXT_DOCUMENT_PUBLISH_DIAGNOSTICS

from golangci_langserver.json_types import JSONObject
from golangci_langserver.uri import path_to_uri


class LspClientError(RuntimeError):
    pass


@dataclass(frozen=True)
class CheckRequest:
    path: Path
    root: Path | None = None
    command: Sequence[str] | None = None
    no_linter_name: bool = False
    language_id: str = "go"


def _wait_readable(stream, deadline: float) -> None:
    read = getattr(stream, "read", None)
    fileno = getattr(stream, "fileno", None)
    if fileno is None:
        if read is None:
            raise LspClientError("LSP stream does not expose fileno")
        if time.monotonic() >= deadline:
            raise LspClientError("LSP response timed out")
        return
    try:
        fd = fileno()
    except (OSError, ValueError) as exc:
        if read is None:
            raise LspClientError("LSP stream fileno failed") from exc
        if time.monotonic() >= deadline:
            raise LspClientError("LSP response timed out")
        return
    timeout = max(0.0, deadline - time.monotonic())
    ready, _, _ = select.select([fd], [], [], timeout)
    if not ready:
        raise LspClientError("LSP response timed out")


def _read_exact(stream, length: int, deadline: float) -> bytes:
    body = bytearray()
    while len(body) < length:
        _wait_readable(stream, deadline)
        chunk = stream.read(length - len(body))
        if not chunk:
            raise LspClientError("LSP stream closed")
        body.extend(chunk)
    return bytes(body)


def read_rpc(stream, deadline: float) -> JSONObject:
    header = b""
    while b"\r\n\r\n" not in header:
        _wait_readable(stream, deadline)
        chunk = stream.read(1)
        if not chunk:
            raise LspClientError("LSP stream closed")
        header += chunk
    head, _, rest = header.partition(b"\r\n\r\n")
    length = 0
    for line in head.split(b"\r\n"):
        if line.lower().startswith(b"content-length:"):
            length = int(line.split(b":", 1)[1].strip())
            break
    if length <= 0:
        raise LspClientError("Invalid LSP Content-Length")
    body = rest
    if len(body) < length:
        body += _read_exact(stream, length - len(body), deadline)
    message = json.loads(body.decode("utf-8"))
    if not isinstance(message, dict):
        raise LspClientError("Invalid LSP message payload")
    return message


def write_rpc(stream, message: JSONObject) -> None:
    payload = json.dumps(message).encode("utf-8")
    header = f"Content-Length: {len(payload)}\r\n\r\n".encode("utf-8")
    stream.write(header + payload)
    stream.flush()


def _read_until(stream, deadline: float, accept: Callable[[JSONObject], bool]) -> JSONObject:
    while True:
        message = read_rpc(stream, deadline)
        if accept(message):
            return message


def _response_to(request_id: int) -> Callable[[JSONObject], bool]:
    def _accept(message: JSONObject) -> bool:
        return message.get("id") == request_id and "method" not in message

    return _accept


def _diagnostics_for(uri: str) -> Callable[[JSONObject], bool]:
    def _accept(message: JSONObject) -> bool:
        if message.get("method") != TEXT_DOCUMENT_PUBLISH_DIAGNOSTICS:
            return False
        params = message.get("params")
        return isinstance(params, dict) and params.get("uri") == uri

    return _accept


def _initialization_options(request: CheckRequest) -> JSONObject:
    options: JSONObject = {}
    if request.command:
        options["command"] = list(request.command)
    if request.no_linter_name:
        options["noLinterName"] = True
    return options


def _exchange(
    proc: subprocess.Popen,
    request: CheckRequest,
    path: Path,
    root: Path,
    uri: str,
    deadline: float,
) -> JSONObject:
    assert proc.stdin is not None
    assert proc.stdout is not None

    write_rpc(
        proc.stdin,
        {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "initialize",
            "params": {
                "processId": None,
                "rootUri": path_to_uri(root),
                "capabilities": {},
                "initializationOptions": _initialization_options(request),
            },
        },
    )
    initialize = _read_until(proc.stdout, deadline, _response_to(1))
    if initialize.get("error"):
        raise LspClientError(f"LSP error: {initialize['error']}")
    write_rpc(proc.stdin, {"jsonrpc": "2.0", "method": "initialized", "params": {}})
    write_rpc(
        proc.stdin,
        {
            "jsonrpc": "2.0",
            "method": "textDocument/didOpen",
            "params": {
                "textDocument": {
                    "uri": uri,
                    "languageId": request.language_id,
                    "version": 1,
                    "text": path.read_text(encoding="utf-8", errors="replace"),
                }
            },
        },
    )
    published = _read_until(proc.stdout, deadline, _diagnostics_for(uri))

    write_rpc(proc.stdin, {"jsonrpc": "2.0", "id": 2, "method": "shutdown"})
    _read_until(proc.stdout, deadline, _response_to(2))
    write_rpc(proc.stdin, {"jsonrpc": "2.0", "method": "exit"})
    remaining = max(1.0, deadline - time.monotonic())
    try:
        _, err = proc.communicate(timeout=remaining)
    except subprocess.TimeoutExpired:
        proc.kill()
        _, err = proc.communicate(timeout=1.0)
    if proc.returncode not in (0, None):
        detail = (err or b"").decode("utf-8", errors="replace").strip()
        raise LspClientError(f"LSP server failed (exit {proc.returncode}): {detail}")
    return published


def lint_document(
    request: CheckRequest,
    *,
    timeout: float = 120.0,
    process_factory: Callable[..., subprocess.Popen] = subprocess.Popen,
) -> list[JSONObject]:
    """Open `request.path` in a fresh server and return its diagnostics."""
    path = request.path.resolve()
    root = (request.root or path.parent).resolve()
    uri = path_to_uri(path)
    deadline = time.monotonic() + timeout
    proc = process_factory(
        [sys.executable, "-m", "golangci_langserver"],
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        bufsize=0,
    )
    try:
        published = _exchange(proc, request, path, root, uri, deadline)
    finally:
        if proc.returncode is None:
            proc.kill()
            proc.wait()

    params = published.get("params")
    diagnostics = params.get("diagnostics") if isinstance(params, dict) else None
    if not isinstance(diagnostics, list):
        raise LspClientError("publishDiagnostics without a diagnostics list")
    return [item for item in diagnostics if isinstance(item, dict)]
