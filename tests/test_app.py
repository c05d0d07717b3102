"""Tests for the command-line entry point."""

from unittest.mock import patch

from conftest import event_payload, summary_payload
from cursor_meter.app import build_parser, main, run_once
from cursor_meter.credentials import TOKEN_STORAGE_KEY
from cursor_meter.errors import AuthError
from cursor_meter.models import parse_event, parse_summary


class TestRunOnce:
    def test_prints_status_and_details(self, settings, credentials, client, capsys):
        client.fetch_summary.return_value = parse_summary(summary_payload())
        client.fetch_last_events.return_value = [parse_event(event_payload())]
        assert run_once(settings, credentials, client) == 0
        out = capsys.readouterr().out
        assert "Cursor Meter: 595/40000 (1.5%)" in out
        assert "claude-4-sonnet" in out
        assert "Status: INCLUDED" in out

    def test_no_token(self, settings, credentials, client, capsys):
        credentials.clear_token()
        assert run_once(settings, credentials, client) == 1
        assert "No token" in capsys.readouterr().out
        client.fetch_summary.assert_not_called()

    def test_auth_failure_clears_token(self, settings, credentials, client, capsys):
        client.fetch_summary.side_effect = AuthError(401, "")
        assert run_once(settings, credentials, client) == 1
        captured = capsys.readouterr()
        assert "Refresh Failed" in captured.out
        assert "re-enter your token" in captured.err
        assert not credentials.has_token

    def test_plan_disabled_exit_code(self, settings, credentials, client, capsys):
        client.fetch_summary.return_value = parse_summary(
            summary_payload(plan={"enabled": False, "used": 0, "limit": 0})
        )
        client.fetch_last_events.return_value = []
        assert run_once(settings, credentials, client) == 1
        out = capsys.readouterr().out
        assert "Plan disabled" in out
        assert "Last request: Refresh Failed" in out


class TestMain:
    def test_parser_defaults(self):
        args = build_parser().parse_args([])
        assert not args.once
        assert args.watch == []

    def test_watch_is_repeatable(self):
        args = build_parser().parse_args(["--watch", "a", "--watch", "b"])
        assert args.watch == ["a", "b"]

    def test_clear_token(self, settings, store):
        store.store(TOKEN_STORAGE_KEY, "tok")
        assert main(["--clear-token"], settings=settings) == 0
        assert store.get(TOKEN_STORAGE_KEY) is None

    def test_set_token(self, settings, store):
        with patch("cursor_meter.app.getpass.getpass", return_value="typed"):
            assert main(["--set-token"], settings=settings) == 0
        assert store.get(TOKEN_STORAGE_KEY) == "typed"

    def test_set_token_cancelled(self, settings, store):
        with patch("cursor_meter.app.getpass.getpass", side_effect=EOFError):
            assert main(["--set-token"], settings=settings) == 1

    def test_once_dispatch(self, settings):
        with patch("cursor_meter.app.run_once", return_value=0) as run:
            assert main(["--once"], settings=settings) == 0
        run.assert_called_once()
