"""httptmux filters - history predicates and response rendering."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

FILTER_KEYS = ("status", "since")


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 date or timestamp. Naive values are taken as UTC.

    Returns None for anything that does not parse.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_since(value: str) -> datetime:
    """Parse a since-date, raising ValueError if it is not a valid date."""
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ValueError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")
    return parsed


def parse_filter_spec(spec: str) -> dict[str, str]:
    """Parse the 'status=404 since=2024-01-01' mini-syntax.

    Returns a dict with any of the keys 'status' and 'since'.
    Raises ValueError on unknown keys, tokens without '=' or a bad date.
    """
    result: dict[str, str] = {}
    for token in spec.split():
        if "=" not in token:
            raise ValueError(f"Invalid filter token (expected key=value): {token}")
        key, value = token.split("=", 1)
        key = key.strip().lower()
        if key not in FILTER_KEYS:
            raise ValueError(
                f"Unknown filter key: {key} (expected one of: {', '.join(FILTER_KEYS)})",
            )
        result[key] = value.strip()
    if result.get("since"):
        parse_since(result["since"])
    return result


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def filter_entries(
    entries: list[dict],
    status: str | None = None,
    since: str | datetime | None = None,
) -> list[dict]:
    """Keep entries matching status and/or timestamp >= since.

    Status compares against the string form of the stored status, so
    "404" and "ERROR" both work. Entries with an unreadable timestamp never
    pass a since filter.
    """
    results = entries
    if status:
        results = [e for e in results if str(e.get("status")) == status]
    if since:
        cutoff = since if isinstance(since, datetime) else parse_since(since)
        if cutoff.tzinfo is None:
            cutoff = cutoff.replace(tzinfo=timezone.utc)
        kept = []
        for e in results:
            ts = parse_timestamp(e.get("timestamp"))
            if ts is not None and ts >= cutoff:
                kept.append(e)
        results = kept
    return results


def search_entries(entries: list[dict], keyword: str) -> list[dict]:
    """Keyword search over method, url and status.

    The method is compared against the upper-cased keyword while url and
    status are matched case-sensitively.
    """
    upper = keyword.upper()
    return [
        e
        for e in entries
        if upper in str(e.get("method", ""))
        or keyword in str(e.get("url", ""))
        or keyword in str(e.get("status"))
    ]


# ---------------------------------------------------------------------------
# Response rendering
# ---------------------------------------------------------------------------


def _header(headers: dict[str, str], name: str) -> str | None:
    lower = name.lower()
    for k, v in headers.items():
        if k.lower() == lower:
            return v
    return None


def _dump_headers(headers: dict[str, str]) -> str:
    return json.dumps(dict(headers), indent=2)


def format_output(result, method: str) -> str:
    """Render a successful RequestResult for the terminal.

    HEAD shows only the response headers, OPTIONS shows the Allow header
    (or every header when the server sent none), anything else shows the
    body as indented JSON, or raw text when it is not JSON.
    """
    method = method.upper()
    headers = result.headers or {}

    if method == "HEAD":
        return _dump_headers(headers)

    if method == "OPTIONS":
        allow = _header(headers, "Allow")
        if allow is not None:
            return f"Allow: {allow}"
        return _dump_headers(headers)

    body = result.body
    if isinstance(body, dict | list) or result.is_json:
        return json.dumps(body, indent=2)
    return str(body) if body is not None else ""
