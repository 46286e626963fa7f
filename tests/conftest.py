"""Shared fixtures for httptmux tests."""

import base64
import json

import pytest
from click.testing import CliRunner

from httptmux import core
from httptmux.credentials import CredentialStore
from httptmux.executor import RequestResult
from httptmux.history import HistoryStore


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def fake_home(tmp_path, monkeypatch):
    """Point every home-directory file at a temp location and cd into tmp_path."""
    home = tmp_path / "fake_home"
    home.mkdir()
    monkeypatch.setattr(core, "HOME_DIR", home)
    monkeypatch.setattr(core, "GLOBAL_DIR", home / ".httptmux")
    monkeypatch.setattr(core, "GLOBAL_CONFIG", home / ".httptmux" / "config.yaml")
    monkeypatch.setattr(core, "HISTORY_FILE", home / ".api-cli-history.json")
    monkeypatch.setattr(core, "TOKEN_FILE", home / ".api-cli-jwt.json")
    monkeypatch.setattr(core, "EXPORT_FILE", home / "httptmux-history-export.json")
    monkeypatch.chdir(tmp_path)
    return home


@pytest.fixture
def history(fake_home):
    return HistoryStore(core.HISTORY_FILE)


@pytest.fixture
def credentials(fake_home):
    return CredentialStore(core.TOKEN_FILE)


def make_token(claims, urlsafe=True):
    """Build an unsigned JWT-shaped token carrying the given claims."""
    header = base64.urlsafe_b64encode(b'{"alg":"none"}').rstrip(b"=").decode()
    raw = json.dumps(claims).encode()
    if urlsafe:
        payload = base64.urlsafe_b64encode(raw).rstrip(b"=").decode()
    else:
        payload = base64.b64encode(raw).decode()
    return f"{header}.{payload}.sig"


def make_entry(status=200, method="GET", url="https://api.example.com/ping", timestamp=None):
    entry = {
        "timestamp": timestamp or "2024-01-15T10:00:00.000Z",
        "method": method,
        "url": url,
        "headers": {},
        "body": None,
        "status": status,
    }
    if status == "ERROR" or (isinstance(status, int) and status >= 400):
        entry["error"] = "failed"
    else:
        entry["duration"] = 12
    return entry


def make_request_result(
    status_code=200,
    body=None,
    headers=None,
    elapsed_ms=42.0,
    error=None,
    raw_text="",
):
    """Factory for mock RequestResult objects."""
    r = RequestResult()
    r.status_code = status_code
    r.headers = headers or {}
    r.body = body
    r.is_json = isinstance(body, dict | list)
    r.elapsed_ms = elapsed_ms
    r.error = error
    r.raw_text = raw_text or (
        json.dumps(body) if isinstance(body, dict | list) else str(body or "")
    )
    return r
