"""httptmux credentials - stored bearer token and JWT expiry."""

import base64
import binascii
import json
import math
import time
from pathlib import Path
from typing import Any


class CredentialStore:
    """A single bearer token persisted as {"token": ...} in a JSON file.

    Every call goes back to disk; nothing is cached between calls.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> str | None:
        try:
            if self.path.exists():
                data = json.loads(self.path.read_text())
                if isinstance(data, dict):
                    token = data.get("token")
                    if isinstance(token, str) and token:
                        return token
        except (OSError, ValueError):
            pass
        return None

    def save(self, token: str) -> None:
        self.path.write_text(json.dumps({"token": token}, indent=2))

    def remove(self) -> bool:
        """Delete the token file. Returns True if a file was removed."""
        if self.path.exists():
            self.path.unlink()
            return True
        return False


def is_plausible_token(token: str | None) -> bool:
    """Cheap shape check before saving: non-empty and dot-delimited."""
    return bool(token) and "." in token


def token_preview(token: str) -> str:
    return f"{token[:12]}..."


def decode_token(token: str | None) -> Any:
    """Decode the payload (second) segment of a JWT.

    Accepts both the standard and URL-safe base64 alphabets, with or without
    padding. Returns None if the segment is missing or not base64 JSON.
    """
    if not token:
        return None
    parts = token.split(".")
    if len(parts) < 2 or not parts[1]:
        return None
    segment = parts[1].replace("-", "+").replace("_", "/")
    segment += "=" * (-len(segment) % 4)
    try:
        raw = base64.b64decode(segment)
        return json.loads(raw.decode("utf-8"))
    except (binascii.Error, ValueError):
        return None


def expiry_status(token: str | None, now: float | None = None) -> tuple[bool, int] | None:
    """Return (expired, minutes_left) from the token's exp claim.

    now is epoch seconds and defaults to the current time. minutes_left is
    round((exp*1000 - now_ms) / 60000), rounding halves up. Returns None when
    the token has no readable exp claim; a zero or non-finite exp counts as
    unreadable.
    """
    claims = decode_token(token)
    if not isinstance(claims, dict):
        return None
    exp = claims.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, int | float) or not exp:
        return None
    try:
        exp_ms = float(exp) * 1000
    except OverflowError:
        return None
    if not math.isfinite(exp_ms):
        return None

    now_ms = (time.time() if now is None else now) * 1000
    remaining_ms = exp_ms - now_ms
    if remaining_ms < 0:
        return (True, 0)
    return (False, math.floor(remaining_ms / 60000 + 0.5))


def describe_expiry(status: tuple[bool, int] | None) -> str | None:
    if status is None:
        return None
    expired, minutes_left = status
    if expired:
        return "JWT token has expired."
    return f"JWT expires in {minutes_left} minutes."
