from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Callable

from cattrs import BaseValidationError
from lsprotocol import converters
from lsprotocol.types import (
    INITIALIZE,
    INITIALIZED,
    SHUTDOWN,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_DID_SAVE,
    WORKSPACE_DID_CHANGE_CONFIGURATION,
    DidChangeConfigurationParams,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    DidSaveTextDocumentParams,
    Diagnostic,
    InitializedParams,
    InitializeParams,
    InitializeResult,
    PublishDiagnosticsParams,
    SaveOptions,
    ServerCapabilities,
    TextDocumentSyncKind,
    TextDocumentSyncOptions,
)
from pydantic import ValidationError

from golangci_langserver.config import DEFAULT_COMMAND, merge_payload, server_defaults
from golangci_langserver.diagnostics import outcome_to_diagnostics
from golangci_langserver.exceptions import MalformedParams, MethodNotSupported
from golangci_langserver.invariants import require_not_none
from golangci_langserver.invoker import Runner, build_invocation, run_lint
from golangci_langserver.schema import InitializationOptions
from golangci_langserver.uri import uri_to_path
from golangci_langserver.worker import LintWorker

logger = logging.getLogger(__name__)

PublishParamsFn = Callable[[PublishDiagnosticsParams], None]

# method -> (handler attribute, params type); None means the method takes no params.
_METHODS: dict[str, tuple[str, type | None]] = {
    INITIALIZE: ("initialize", InitializeParams),
    INITIALIZED: ("initialized", InitializedParams),
    SHUTDOWN: ("shutdown", None),
    TEXT_DOCUMENT_DID_OPEN: ("did_open", DidOpenTextDocumentParams),
    TEXT_DOCUMENT_DID_CLOSE: ("did_close", DidCloseTextDocumentParams),
    TEXT_DOCUMENT_DID_CHANGE: ("did_change", DidChangeTextDocumentParams),
    TEXT_DOCUMENT_DID_SAVE: ("did_save", DidSaveTextDocumentParams),
    WORKSPACE_DID_CHANGE_CONFIGURATION: (
        "did_change_configuration",
        DidChangeConfigurationParams,
    ),
}

SUPPORTED_METHODS = tuple(_METHODS)


def server_capabilities() -> ServerCapabilities:
    # Content is re-read from disk by the linter, so changes are not synced.
    return ServerCapabilities(
        text_document_sync=TextDocumentSyncOptions(
            open_close=True,
            change=TextDocumentSyncKind.None_,
            save=SaveOptions(include_text=False),
        )
    )


class LintSession:
    """State of one client connection.

    Owns the lint queue and its worker; the worker is started here and runs
    until `shutdown`.
    """

    def __init__(
        self,
        publish: PublishParamsFn,
        *,
        no_linter_name: bool | None = None,
        runner: Runner = subprocess.run,
    ):
        self.root_dir: Path | None = None
        self.command: list[str] | None = None
        self.no_linter_name = bool(no_linter_name)
        self._cli_no_linter_name = no_linter_name
        self._publish = publish
        self._runner = runner
        self._converter = converters.get_converter()
        self.worker = LintWorker(self.lint, self.publish_diagnostics)

    @property
    def configured(self) -> bool:
        return self.command is not None

    def dispatch(self, method: str, params: object = None) -> object:
        logger.debug("request: %s", method)
        entry = _METHODS.get(method)
        if entry is None:
            raise MethodNotSupported(method)
        handler_name, params_type = entry
        handler = getattr(self, handler_name)
        if params_type is None:
            return handler()
        return handler(self._structure(method, params, params_type))

    def _structure(self, method: str, params: object, params_type: type) -> object:
        if isinstance(params, params_type):
            return params
        if params is None:
            raise MalformedParams(method, "missing params")
        try:
            return self._converter.structure(params, params_type)
        except (BaseValidationError, KeyError, TypeError, ValueError) as exc:
            raise MalformedParams(method, str(exc)) from exc

    def initialize(self, params: InitializeParams) -> InitializeResult:
        if self.configured:
            logger.warning("ignoring repeated initialize request")
            return InitializeResult(capabilities=server_capabilities())
        try:
            options = InitializationOptions.model_validate(params.initialization_options or {})
        except ValidationError as exc:
            raise MalformedParams(INITIALIZE, str(exc)) from exc

        root_uri = params.root_uri or params.root_path
        root_dir = uri_to_path(root_uri) if root_uri else None
        settings = merge_payload(
            server_defaults(root_dir),
            {"command": list(DEFAULT_COMMAND), "no_linter_name": False},
        )
        settings = merge_payload({"no_linter_name": self._cli_no_linter_name}, settings)
        settings = merge_payload(options.model_dump(exclude_none=True), settings)

        self.root_dir = root_dir
        self.no_linter_name = bool(settings["no_linter_name"])
        self.command = [str(part) for part in settings["command"]]
        logger.info("root=%s command=%s", self.root_dir, json.dumps(self.command))
        return InitializeResult(capabilities=server_capabilities())

    def initialized(self, params: InitializedParams) -> None:
        return None

    def shutdown(self) -> None:
        self.worker.close()

    def did_open(self, params: DidOpenTextDocumentParams) -> None:
        self.enqueue(params.text_document.uri)

    def did_save(self, params: DidSaveTextDocumentParams) -> None:
        self.enqueue(params.text_document.uri)

    # Edits are linted on save; closing leaves published diagnostics as they are.
    def did_close(self, params: DidCloseTextDocumentParams) -> None:
        return None

    def did_change(self, params: DidChangeTextDocumentParams) -> None:
        return None

    def did_change_configuration(self, params: DidChangeConfigurationParams) -> None:
        return None

    def enqueue(self, uri: str) -> None:
        if not self.configured:
            logger.warning("dropping lint request before initialize: %s", uri)
            return
        if self.worker.closed:
            logger.warning("dropping lint request after shutdown: %s", uri)
            return
        self.worker.submit(uri)

    def lint(self, uri: str) -> list[Diagnostic]:
        command = require_not_none(self.command, reason="lint before initialize", uri=uri)
        path = uri_to_path(uri)
        invocation = build_invocation(path, command, self.root_dir)
        outcome = run_lint(invocation, runner=self._runner)
        return outcome_to_diagnostics(
            outcome,
            path,
            invocation.cwd,
            no_linter_name=self.no_linter_name,
        )

    def publish_diagnostics(self, uri: str, diagnostics: list[Diagnostic]) -> None:
        logger.debug("publishing %d diagnostics for %s", len(diagnostics), uri)
        self._publish(PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics))
