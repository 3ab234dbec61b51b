from __future__ import annotations

import asyncio
import logging
import subprocess
from typing import Callable

from lsprotocol.types import SHUTDOWN, PublishDiagnosticsParams, TextDocumentSyncKind
from pygls.exceptions import JsonRpcMethodNotFound
from pygls.lsp.server import LanguageServer
from pygls.protocol import LanguageServerProtocol

from golangci_langserver import __version__
from golangci_langserver.exceptions import MethodNotSupported
from golangci_langserver.invoker import Runner
from golangci_langserver.session import SUPPORTED_METHODS, LintSession

SERVER_NAME = "golangci-lint-langserver"
# Upper bound on how long a shutdown request waits for queued lint runs.
SHUTDOWN_DRAIN_SECONDS = 30.0

logger = logging.getLogger(__name__)


class GolangciLintProtocol(LanguageServerProtocol):
    def _get_handler(self, feature_name: str):
        try:
            return super()._get_handler(feature_name)
        except JsonRpcMethodNotFound:
            raise MethodNotSupported(feature_name) from None


class GolangciLintLanguageServer(LanguageServer):
    def __init__(self, session_factory: Callable[["GolangciLintLanguageServer"], LintSession]):
        super().__init__(
            SERVER_NAME,
            __version__,
            text_document_sync_kind=TextDocumentSyncKind.None_,
            protocol_cls=GolangciLintProtocol,
        )
        self.loop: asyncio.AbstractEventLoop | None = None
        self.session = session_factory(self)

    def bind_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        if self.loop is None:
            self.loop = loop

    def publish_diagnostics(self, params: PublishDiagnosticsParams) -> None:
        """Publish from any thread.

        The connection's writer belongs to the event loop, so once a loop is
        bound the send is scheduled on it.
        """
        if self.loop is None:
            self.text_document_publish_diagnostics(params)
        else:
            self.loop.call_soon_threadsafe(self.text_document_publish_diagnostics, params)


def _forward(method: str):
    async def handler(ls: GolangciLintLanguageServer, params=None):
        ls.bind_loop(asyncio.get_running_loop())
        result = ls.session.dispatch(method, params)
        if method == SHUTDOWN:
            # Keep the loop free while the worker finishes, so its publishes go out.
            await asyncio.get_running_loop().run_in_executor(
                None, ls.session.worker.join, SHUTDOWN_DRAIN_SECONDS
            )
        return result

    handler.__name__ = "lsp_" + method.replace("/", "_")
    return handler


def create_server(
    *,
    no_linter_name: bool | None = None,
    runner: Runner = subprocess.run,
) -> GolangciLintLanguageServer:
    """Build a server whose session publishes through the server's connection."""

    def _session(ls: GolangciLintLanguageServer) -> LintSession:
        return LintSession(
            ls.publish_diagnostics,
            no_linter_name=no_linter_name,
            runner=runner,
        )

    server = GolangciLintLanguageServer(_session)
    for method in SUPPORTED_METHODS:
        server.feature(method)(_forward(method))
    return server


def start(
    *,
    no_linter_name: bool | None = None,
    tcp: bool = False,
    host: str = "127.0.0.1",
    port: int = 2087,
    start_fn: Callable[[GolangciLintLanguageServer], None] | None = None,
) -> None:
    """Start the language server on stdio, or on TCP when `tcp` is set."""
    server = create_server(no_linter_name=no_linter_name)
    if start_fn is not None:
        start_fn(server)
    elif tcp:
        logger.info("listening on %s:%d", host, port)
        server.start_tcp(host, port)
    else:
        server.start_io()


if __name__ == "__main__":  # pragma: no cover
    start()  # pragma: no cover
