"""golangci-lint language server package root."""

from golangci_langserver.exceptions import MalformedParams, MethodNotSupported, NeverThrown
from golangci_langserver.invariants import never

__all__ = ["__version__", "MalformedParams", "MethodNotSupported", "NeverThrown", "never"]

__version__ = "0.1.0"
