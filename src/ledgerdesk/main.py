"""Application entry point for LedgerDesk backend server."""

from ledgerdesk.app import App
from ledgerdesk.config import Config
from ledgerdesk.logging import setup_logging
from ledgerdesk.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
