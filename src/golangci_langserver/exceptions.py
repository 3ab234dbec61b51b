"""Error types raised by the language server."""

from __future__ import annotations

from pygls.exceptions import JsonRpcInvalidParams, JsonRpcMethodNotFound


class MethodNotSupported(JsonRpcMethodNotFound):
    """Raised for a protocol method the server does not handle."""

    def __init__(self, method: str):
        super().__init__(message=f"method not supported: {method}")
        self.method = method


class MalformedParams(JsonRpcInvalidParams):
    """Raised when method parameters cannot be deserialized."""

    def __init__(self, method: str, detail: str):
        super().__init__(message=f"invalid params for {method}: {detail}")
        self.method = method
        self.detail = detail


class NeverRaise(RuntimeError):
    """Sentinel exception for code paths that must be unreachable.

    Reaching one is a programming error in the server, not a condition the
    client can recover from.
    """

    def __init__(self, message: str, *, env: dict[str, object] | None = None):
        super().__init__(message)
        self.reason = message
        self.env = dict(env or {})


class NeverThrown(NeverRaise):
    """Alias for NeverRaise used by the explicit never() marker."""
