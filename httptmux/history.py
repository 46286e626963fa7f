"""httptmux history - persisted log of request outcomes."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from httptmux import core
from httptmux.filters import filter_entries, search_entries


def now_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def make_entry(
    method: str,
    url: str,
    headers: dict | None,
    body: Any,
    status: int | str,
    duration: int | None = None,
    error: str | None = None,
) -> dict:
    """Build a history entry. The Authorization header is never persisted."""
    safe = {k: v for k, v in (headers or {}).items() if k.lower() != "authorization"}
    entry: dict[str, Any] = {
        "timestamp": now_timestamp(),
        "method": method,
        "url": url,
        "headers": safe,
        "body": body,
        "status": status,
    }
    if duration is not None:
        entry["duration"] = duration
    if error is not None:
        entry["error"] = error
    return entry


class HistoryStore:
    """Insertion-ordered JSON array of history entries on disk.

    Each mutation loads the whole file, changes it and writes it back. There
    is no locking: concurrent processes writing the same file lose updates.
    """

    def __init__(self, path: Path, export_path: Path | None = None):
        self.path = Path(path)
        self.export_path = Path(export_path) if export_path else None

    def load_all(self) -> list[dict]:
        try:
            if self.path.exists():
                data = json.loads(self.path.read_text())
                if isinstance(data, list):
                    return [e for e in data if isinstance(e, dict)]
        except (OSError, ValueError):
            pass
        return []

    def _write(self, entries: list[dict]) -> None:
        self.path.write_text(json.dumps(entries, indent=2))

    def append(self, entry: dict) -> None:
        entries = self.load_all()
        entries.append(entry)
        self._write(entries)

    def clear(self) -> None:
        self._write([])

    def get(self, index: int) -> dict:
        entries = self.load_all()
        if index < 0 or index >= len(entries):
            raise IndexError(f"No history entry at index {index}")
        return entries[index]

    def filter(self, status: str | None = None, since: str | None = None) -> list[dict]:
        return filter_entries(self.load_all(), status=status, since=since)

    def search(self, keyword: str) -> list[dict]:
        return search_entries(self.load_all(), keyword)

    def export(self, path: str | Path | None = None) -> Path:
        """Write the full history to path (or the default export file)."""
        if path:
            target = Path(path).expanduser()
        elif self.export_path:
            target = self.export_path
        else:
            target = core.EXPORT_FILE
        target.write_text(json.dumps(self.load_all(), indent=2))
        return target
