"""Scenario tests for non-interactive requests (METHOD -u URL)."""

import json
from unittest.mock import patch

from httptmux import core
from httptmux.cli import main
from tests.conftest import make_request_result, make_token

# ── Scenario 1: Ping happy path ───────────────────────────────────────────


class TestPingHappyPath:
    """GET /ping prints the JSON body and records one history entry."""

    @patch("httptmux.executor.execute_request")
    def test_output_and_history(self, mock_exec, runner):
        mock_exec.return_value = make_request_result(status_code=200, body={"ok": True})
        result = runner.invoke(main, ["GET", "-u", "https://api.example.com/ping"])
        assert result.exit_code == 0
        assert "Response received:" in result.output
        assert '"ok": true' in result.output

        entries = json.loads(core.HISTORY_FILE.read_text())
        assert len(entries) == 1
        assert entries[0]["status"] == 200
        assert entries[0]["url"] == "https://api.example.com/ping"
        assert isinstance(entries[0]["duration"], int)
        assert entries[0]["duration"] >= 0

    @patch("httptmux.executor.execute_request")
    def test_correct_args_passed(self, mock_exec, runner):
        mock_exec.return_value = make_request_result(body={})
        runner.invoke(main, ["GET", "--url", "https://api.example.com/ping"])
        mock_exec.assert_called_once()
        _, kwargs = mock_exec.call_args
        assert kwargs["method"] == "GET"
        assert kwargs["url"] == "https://api.example.com/ping"
        assert kwargs["headers"] == {}
        assert kwargs["body"] is None
        assert kwargs["timeout"] is None


# ── Scenario 2: Transport failure ─────────────────────────────────────────


class TestTransportFailure:
    """Failures are printed and recorded but never crash the CLI."""

    @patch("httptmux.executor.execute_request")
    def test_connection_refused(self, mock_exec, runner):
        mock_exec.return_value = make_request_result(
            status_code=0,
            error="Connection error: [Errno 111] Connection refused",
        )
        result = runner.invoke(main, ["GET", "-u", "http://localhost:9999/health"])
        assert result.exit_code == 0
        assert "Request failed: Connection error" in result.output
        entry = json.loads(core.HISTORY_FILE.read_text())[0]
        assert entry["status"] == "ERROR"

    @patch("httptmux.executor.execute_request")
    def test_http_500(self, mock_exec, runner):
        mock_exec.return_value = make_request_result(
            status_code=500,
            body={"error": "Internal server error"},
            error="500 Server Error: Internal Server Error for url: http://x",
        )
        result = runner.invoke(main, ["GET", "-u", "http://x"])
        assert result.exit_code == 0
        entry = json.loads(core.HISTORY_FILE.read_text())[0]
        assert entry["status"] == 500
        assert "duration" not in entry


# ── Scenario 3: Malformed JSON input ──────────────────────────────────────


class TestMalformedInput:
    @patch("httptmux.executor.execute_request")
    def test_bad_headers_warn_and_continue(self, mock_exec, runner):
        mock_exec.return_value = make_request_result(body={})
        result = runner.invoke(main, ["GET", "-u", "https://a", "-h", "{bad json"])
        assert result.exit_code == 0
        assert "Invalid JSON for headers." in result.output
        _, kwargs = mock_exec.call_args
        assert kwargs["headers"] == {}

    @patch("httptmux.executor.execute_request")
    def test_bad_body_becomes_empty_object(self, mock_exec, runner):
        mock_exec.return_value = make_request_result(body={})
        result = runner.invoke(main, ["POST", "-u", "https://a", "-b", "{oops"])
        assert "Invalid JSON for body." in result.output
        _, kwargs = mock_exec.call_args
        assert kwargs["body"] == {}

    @patch("httptmux.executor.execute_request")
    def test_headers_and_body_parsed(self, mock_exec, runner):
        mock_exec.return_value = make_request_result(body={"id": 1})
        runner.invoke(
            main,
            ["POST", "-u", "https://a", "-h", '{"X-Trace": "7"}', "-b", '{"name": "test"}'],
        )
        _, kwargs = mock_exec.call_args
        assert kwargs["headers"] == {"X-Trace": "7"}
        assert kwargs["body"] == {"name": "test"}


# ── Scenario 4: Method handling ───────────────────────────────────────────


class TestMethodHandling:
    @patch("httptmux.executor.execute_request")
    def test_lowercase_uppercased(self, mock_exec, runner):
        mock_exec.return_value = make_request_result(body={})
        runner.invoke(main, ["patch", "-u", "https://a"])
        _, kwargs = mock_exec.call_args
        assert kwargs["method"] == "PATCH"

    @patch("httptmux.executor.execute_request")
    def test_url_without_method_defaults_to_get(self, mock_exec, runner):
        mock_exec.return_value = make_request_result(body={})
        runner.invoke(main, ["-u", "https://a"])
        _, kwargs = mock_exec.call_args
        assert kwargs["method"] == "GET"

    @patch("httptmux.executor.execute_request")
    def test_arbitrary_method_passed_through(self, mock_exec, runner):
        mock_exec.return_value = make_request_result(body={})
        runner.invoke(main, ["PURGE", "-u", "https://a"])
        _, kwargs = mock_exec.call_args
        assert kwargs["method"] == "PURGE"

    def test_method_without_url_is_usage_error(self, runner):
        result = runner.invoke(main, ["GET"])
        assert result.exit_code == 2
        assert "--url" in result.output


# ── Scenario 5: Stored token ──────────────────────────────────────────────


class TestStoredToken:
    @patch("httptmux.executor.execute_request")
    def test_token_attached_and_logged(self, mock_exec, runner):
        token = make_token({"sub": "me"})
        core.TOKEN_FILE.write_text(json.dumps({"token": token}))
        mock_exec.return_value = make_request_result(body={})
        result = runner.invoke(main, ["GET", "-u", "https://a", "--verbose"])
        _, kwargs = mock_exec.call_args
        assert kwargs["headers"]["Authorization"] == f"Bearer {token}"
        assert "Verbose: JWT attached to request headers." in result.output

    @patch("httptmux.executor.execute_request")
    def test_non_string_token_ignored(self, mock_exec, runner):
        core.TOKEN_FILE.write_text(json.dumps({"token": 123}))
        mock_exec.return_value = make_request_result(body={})
        result = runner.invoke(main, ["GET", "-u", "https://a"])
        assert result.exit_code == 0
        _, kwargs = mock_exec.call_args
        assert "Authorization" not in kwargs["headers"]

    @patch("httptmux.executor.execute_request")
    def test_unbounded_exp_still_sends(self, mock_exec, runner):
        token = make_token({"exp": 1e308})
        core.TOKEN_FILE.write_text(json.dumps({"token": token}))
        mock_exec.return_value = make_request_result(body={})
        result = runner.invoke(main, ["GET", "-u", "https://a"])
        assert result.exit_code == 0
        assert "Fatal error" not in result.output
        assert "JWT expires" not in result.output
        _, kwargs = mock_exec.call_args
        assert kwargs["headers"]["Authorization"] == f"Bearer {token}"

    @patch("httptmux.executor.execute_request")
    def test_quiet_without_verbose(self, mock_exec, runner):
        core.TOKEN_FILE.write_text(json.dumps({"token": make_token({"sub": "me"})}))
        mock_exec.return_value = make_request_result(body={})
        result = runner.invoke(main, ["GET", "-u", "https://a"])
        assert "Verbose:" not in result.output


# ── Scenario 6: Config file ───────────────────────────────────────────────


class TestConfigFile:
    @patch("httptmux.executor.execute_request")
    def test_timeout_and_history_path_from_config(self, mock_exec, runner, tmp_path):
        custom_history = tmp_path / "custom-history.json"
        (tmp_path / ".httptmux.yaml").write_text(
            f"defaults:\n  timeout: 7\n  history_file: {custom_history}\n",
        )
        mock_exec.return_value = make_request_result(body={})
        runner.invoke(main, ["GET", "-u", "https://a"])
        _, kwargs = mock_exec.call_args
        assert kwargs["timeout"] == 7.0
        assert len(json.loads(custom_history.read_text())) == 1
        assert not core.HISTORY_FILE.exists()
