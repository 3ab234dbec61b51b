"""Single background worker that runs lint requests one at a time."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable, TypeAlias

from lsprotocol.types import Diagnostic

from golangci_langserver.diagnostics import failure_diagnostic
from golangci_langserver.invariants import never

logger = logging.getLogger(__name__)

LintFn: TypeAlias = Callable[[str], list[Diagnostic]]
PublishFn: TypeAlias = Callable[[str, list[Diagnostic]], None]

_CLOSED = object()


class LintWorker:
    """Drain lint requests in FIFO order on one daemon thread.

    `close()` enqueues an end marker behind pending requests, so everything
    submitted before the close is still linted and published. A lint run that
    raises is published as one error diagnostic and the loop carries on.
    """

    def __init__(self, lint: LintFn, publish: PublishFn, *, name: str = "golangci-lint-worker"):
        self._lint = lint
        self._publish = publish
        self._queue: queue.Queue[object] = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, uri: str) -> None:
        with self._lock:
            if self._closed:
                never("lint request submitted after close", uri=uri)
            self._queue.put_nowait(uri)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                never("lint queue already closed")
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    def join(self, timeout: float | None = None) -> bool:
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def _run(self) -> None:
        for item in iter(self._queue.get, _CLOSED):
            uri = str(item)
            try:
                diagnostics = self._lint(uri)
            except Exception as exc:
                logger.exception("lint run failed for %s", uri)
                diagnostics = [failure_diagnostic(f"lint run failed: {exc}")]
            try:
                self._publish(uri, diagnostics)
            except Exception:
                logger.exception("failed to publish diagnostics for %s", uri)
        logger.debug("lint worker stopped")
