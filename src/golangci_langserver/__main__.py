from golangci_langserver.cli import app

app(prog_name="golangci-lint-langserver")
