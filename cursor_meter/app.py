"""Command-line entry point: desktop widget by default, one-shot report with --once."""

import argparse
import getpass
import logging
import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication, QMessageBox

from cursor_meter.cache import EventCache
from cursor_meter.client import CursorUsageClient
from cursor_meter.config import Settings, settings as default_settings
from cursor_meter.credentials import CredentialProvider, SecretStore
from cursor_meter.errors import AuthError, NoCredentialError, attempt
from cursor_meter.formatting import (
    APP_LABEL,
    DISPLAYING,
    NO_TOKEN,
    REFRESH_FAILED,
    DisplayState,
    event_details,
    render_summary,
    status_text,
)
from cursor_meter.orchestrator import AUTH_WARNING, RefreshOrchestrator
from cursor_meter.widget import StatusWidget, WorkspaceWatcher, prompt_for_token

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str, log_file: str = ""):
    kwargs = {"filename": log_file} if log_file else {"stream": sys.stderr}
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, **kwargs)


def terminal_prompt() -> str | None:
    try:
        return getpass.getpass("WorkosCursorSessionToken cookie value: ")
    except (EOFError, KeyboardInterrupt):
        return None


def run_once(settings: Settings, credentials: CredentialProvider, client: CursorUsageClient) -> int:
    """Fetch once, print the status line and the last-request details."""
    try:
        token = credentials.require_token()
    except NoCredentialError:
        print(status_text(DisplayState.error(NO_TOKEN)))
        return 1

    result = attempt(client.fetch_summary, token)
    if not result.ok:
        logger.error("Failed to refresh usage: %s", result.error)
        if isinstance(result.error, AuthError):
            credentials.clear_token()
            print(AUTH_WARNING, file=sys.stderr)
        print(status_text(DisplayState.error(REFRESH_FAILED)))
        return 1

    state = render_summary(result.value)
    print(status_text(state))

    cache = EventCache(client, credentials, ttl=settings.event_cache_ttl_s)
    event = cache.get_or_fetch(force=True, token=token)
    if cache.error:
        print(f"Last request: {cache.error}")
    print("\n".join(event_details(event)))
    return 0 if state.kind == DISPLAYING else 1


def run_gui(settings: Settings, watch: list[Path]) -> int:
    app = QApplication(sys.argv)
    app.setApplicationName(APP_LABEL)
    app.setQuitOnLastWindowClosed(True)

    widget = StatusWidget()
    credentials = CredentialProvider(
        SecretStore(settings.secrets_path),
        prompt=lambda: prompt_for_token(widget),
    )
    client = CursorUsageClient(settings)
    cache = EventCache(client, credentials, ttl=settings.event_cache_ttl_s)
    orchestrator = RefreshOrchestrator(widget, credentials, client, cache, settings=settings)

    widget.refresh_requested.connect(orchestrator.refresh_command)
    widget.set_token_requested.connect(orchestrator.set_token_command)
    if watch:
        watcher = WorkspaceWatcher(watch, parent=orchestrator)
        watcher.document_changed.connect(orchestrator.document_changed)
        watcher.document_saved.connect(orchestrator.document_saved)
    app.aboutToQuit.connect(orchestrator.deactivate)

    widget.show()
    screen = app.primaryScreen().geometry()
    widget.move(screen.width() - widget.width() - 20, 40)

    try:
        orchestrator.activate()
    except Exception as exc:
        logger.exception("Error activating")
        QMessageBox.critical(widget, APP_LABEL, f"{APP_LABEL} activation error: {exc}")

    return app.exec()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cursor-meter",
        description="Show Cursor plan and on-demand usage",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Fetch once, print the usage summary and last request, then exit",
    )
    parser.add_argument(
        "--set-token",
        action="store_true",
        help="Prompt for a new session token and store it",
    )
    parser.add_argument(
        "--clear-token",
        action="store_true",
        help="Forget the stored session token",
    )
    parser.add_argument(
        "--watch",
        action="append",
        default=[],
        metavar="DIR",
        help="Refresh on edits and saves under DIR (repeatable)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: from CURSOR_METER_LOG_LEVEL or INFO)",
    )
    return parser


def main(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = settings or default_settings
    configure_logging(args.log_level or cfg.log_level, cfg.log_file)

    if args.clear_token or args.set_token:
        credentials = CredentialProvider(SecretStore(cfg.secrets_path), prompt=terminal_prompt)
        if args.clear_token:
            credentials.clear_token()
        if args.set_token and not credentials.set_token():
            print("No token entered", file=sys.stderr)
            return 1
        return 0

    if args.once:
        credentials = CredentialProvider(SecretStore(cfg.secrets_path), prompt=terminal_prompt)
        return run_once(cfg, credentials, CursorUsageClient(cfg))

    return run_gui(cfg, [Path(d) for d in args.watch])


if __name__ == "__main__":
    sys.exit(main())
