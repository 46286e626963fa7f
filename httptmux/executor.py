"""httptmux executor - HTTP request execution and history recording."""

import json
import time
from typing import Any

import click
import requests

from httptmux.core import parse_json_input
from httptmux.credentials import CredentialStore, describe_expiry, expiry_status
from httptmux.filters import format_output
from httptmux.history import HistoryStore, make_entry
from httptmux.log import get_logger

logger = get_logger("executor")


class RequestResult:
    """Result of an HTTP request."""

    def __init__(self):
        self.status_code: int = 0  # 0 when no response was received
        self.headers: dict[str, str] = {}
        self.body: Any = None  # parsed JSON or raw text
        self.is_json: bool = False
        self.elapsed_ms: float = 0
        self.error: str | None = None
        self.raw_text: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None


def execute_request(
    method: str,
    url: str,
    headers: dict[str, str] | None = None,
    body: Any = None,
    timeout: float | None = None,
) -> RequestResult:
    """Execute an HTTP request and return structured result.

    - Sends body as JSON whenever it is not None, whatever the method
    - Non-2xx responses are failures that keep their status code and body
    - Never raises - always returns RequestResult with error field set
    """
    result = RequestResult()

    try:
        kwargs: dict[str, Any] = {
            "method": method.upper(),
            "url": url,
            "headers": headers,
            "timeout": timeout,
            "allow_redirects": True,
        }
        if body is not None:
            kwargs["json"] = body

        start = time.monotonic()
        resp = requests.request(**kwargs)
        result.elapsed_ms = (time.monotonic() - start) * 1000

        result.status_code = resp.status_code
        result.headers = dict(resp.headers)
        result.raw_text = resp.text

        try:
            result.body = resp.json()
            result.is_json = True
        except ValueError:
            result.body = resp.text

        resp.raise_for_status()

    except requests.exceptions.HTTPError as e:
        result.error = str(e)
    except requests.exceptions.Timeout:
        result.error = f"Request timed out after {timeout}s" if timeout else "Request timed out"
    except requests.exceptions.ConnectionError as e:
        result.error = f"Connection error: {e}"
    except requests.exceptions.RequestException as e:
        result.error = f"Request failed: {e}"
    except Exception as e:
        result.error = f"Unexpected error: {e}"

    return result


def read_headers(text: str | None) -> dict[str, str]:
    """Headers typed as JSON. Malformed or non-object input warns and yields {}."""
    value, error = parse_json_input(text)
    if error is not None or (value is not None and not isinstance(value, dict)):
        click.secho("Invalid JSON for headers.", fg="yellow")
        return {}
    return value or {}


def read_body(text: str | None) -> Any:
    """Body typed as JSON. Blank input is no body; malformed input warns and yields {}."""
    value, error = parse_json_input(text)
    if error is not None:
        click.secho("Invalid JSON for body.", fg="yellow")
        return {}
    return value


def report_expiry(token: str) -> None:
    """Print the token's expiry status, if it carries one."""
    status = expiry_status(token)
    message = describe_expiry(status)
    if message is None:
        return
    expired, _ = status
    click.secho(message, fg="red" if expired else "yellow")


def attach_token(headers: dict[str, str], token: str) -> dict[str, str]:
    """Return a copy of headers with the bearer token replacing any Authorization."""
    merged = {k: v for k, v in headers.items() if k.lower() != "authorization"}
    merged["Authorization"] = f"Bearer {token}"
    return merged


def run_request(
    method: str,
    url: str,
    headers: dict[str, str] | None,
    body: Any,
    history: HistoryStore,
    credentials: CredentialStore,
    timeout: float | None = None,
) -> RequestResult:
    """Send one request, print the outcome and record it in history.

    Transport failures are printed and recorded, never raised.
    """
    method = method.upper()
    headers = dict(headers or {})

    token = credentials.load()
    if token:
        headers = attach_token(headers, token)
        logger.debug("JWT attached to request headers.")
        report_expiry(token)

    result = execute_request(
        method=method,
        url=url,
        headers=headers,
        body=body,
        timeout=timeout,
    )

    if result.ok:
        duration = int(result.elapsed_ms)
        click.secho("\nResponse received:", fg="green")
        click.echo(format_output(result, method))
        logger.debug("Request completed in %d ms", duration)
        logger.debug("Status code: %s", result.status_code)
        history.append(
            make_entry(method, url, headers, body, result.status_code, duration=duration),
        )
        return result

    status = result.status_code or "ERROR"
    click.secho(f"\nRequest failed: {result.error}", fg="red", err=True)
    if result.status_code and result.body not in (None, ""):
        details = result.body if not result.is_json else json.dumps(result.body, indent=2)
        logger.debug("Error details → %s", details)
    history.append(make_entry(method, url, headers, body, status, error=result.error))
    return result
