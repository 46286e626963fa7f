"""httptmux core - file locations, config loading, input parsing."""

import json
from pathlib import Path
from typing import Any

import yaml

__version__ = "1.2.0"

HOME_DIR = Path.home()
GLOBAL_DIR = HOME_DIR / ".httptmux"
GLOBAL_CONFIG = GLOBAL_DIR / "config.yaml"

HISTORY_FILE = HOME_DIR / ".api-cli-history.json"
TOKEN_FILE = HOME_DIR / ".api-cli-jwt.json"
EXPORT_FILE = HOME_DIR / "httptmux-history-export.json"

CWD_CONFIG_CANDIDATES = [
    ".httptmux.yaml",
    ".httptmux.yml",
]

HTTP_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]
BODY_METHODS = ("POST", "PUT", "PATCH")


def resolve_path(
    candidates: list[Path],
    default: Path | None = None,
) -> Path | None:
    """Return the first existing path from candidates, else default."""
    for p in candidates:
        if p.exists():
            return p.resolve()
    return default


def resolve_config_path(config_file: str | None) -> Path | None:
    """Find the config file to use.

    Resolution order:
      1. Explicit --config flag (hard — no fallthrough if missing)
      2. .httptmux.yaml / .httptmux.yml in CWD
      3. ~/.httptmux/config.yaml
    """
    if config_file:
        return resolve_path([Path(config_file)])
    return resolve_path([Path(c) for c in CWD_CONFIG_CANDIDATES] + [GLOBAL_CONFIG])


def load_config(config_path: str | Path | None) -> dict:
    """Load YAML config file. Returns an empty defaults section if not found."""
    if config_path is None:
        return {"defaults": {}}
    path = Path(config_path)
    if not path.exists():
        return {"defaults": {}}
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        return {"defaults": {}}
    return {"defaults": data.get("defaults") or {}}


def resolve_file(defaults: dict, key: str, fallback: Path) -> Path:
    """Return the configured path for key (with ~ expanded), else fallback."""
    value = defaults.get(key)
    if value:
        return Path(str(value)).expanduser()
    return fallback


def resolve_timeout(defaults: dict) -> float | None:
    """Configured request timeout in seconds; None waits on the transport."""
    value = defaults.get("timeout")
    if value in (None, "", 0):
        return None
    return float(value)


def parse_json_input(text: str | None) -> tuple[Any, str | None]:
    """Parse user-typed JSON.

    Returns (value, error). Blank input is (None, None); malformed input is
    (None, message) so callers can pick between warning and aborting.
    """
    if text is None or not text.strip():
        return None, None
    try:
        return json.loads(text), None
    except json.JSONDecodeError as e:
        return None, str(e)


def format_entry(index: int, entry: dict) -> str:
    """One-line summary of a history entry, numbered from 1."""
    return (
        f"{index}. [{entry.get('timestamp', '')}] "
        f"{entry.get('method', '?')} {entry.get('url', '?')} "
        f"(status: {entry.get('status', '?')})"
    )
