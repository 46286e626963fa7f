"""httptmux shell - interactive menu loop."""

import enum
import json

import click

from httptmux import executor
from httptmux.core import BODY_METHODS, HTTP_METHODS, __version__, format_entry
from httptmux.credentials import (
    CredentialStore,
    decode_token,
    is_plausible_token,
    token_preview,
)
from httptmux.filters import parse_since
from httptmux.history import HistoryStore
from httptmux.log import get_logger

logger = get_logger("shell")


class Action(enum.Enum):
    """Menu actions, in display order."""

    REQUEST = "Make new request"
    VIEW = "View history"
    RERUN = "Re-run from history"
    SEARCH = "Search history"
    CLEAR = "Clear history"
    EXPORT = "Export history"
    FILTER = "Filter history"
    TOKEN = "Set JWT token"
    HELP = "Help"
    VERSION = "Version"
    EXIT = "Exit"


class TokenAction(enum.Enum):
    SET = "Set new token"
    REMOVE = "Remove token"
    BACK = "Back"


def choose(message: str, options: list[str]) -> int:
    """Show a numbered list and return the 0-based index picked."""
    click.echo()
    for i, option in enumerate(options, 1):
        click.echo(f"  {i}. {option}")
    picked = click.prompt(
        click.style(message, fg="blue"),
        type=click.IntRange(1, len(options)),
    )
    return picked - 1


def ask(message: str, fg: str = "blue") -> str:
    """Free-text prompt that accepts an empty answer."""
    return click.prompt(click.style(message, fg=fg), default="", show_default=False)


def print_entries(entries: list[dict], title: str | None = None) -> None:
    if title:
        click.secho(f"\n{title}", fg="cyan")
    for i, entry in enumerate(entries, 1):
        click.secho(format_entry(i, entry), fg="bright_black")


class Shell:
    """Interactive front end over the history and credential stores."""

    def __init__(
        self,
        history: HistoryStore,
        credentials: CredentialStore,
        timeout: float | None = None,
        help_text: str = "",
    ):
        self.history = history
        self.credentials = credentials
        self.timeout = timeout
        self.help_text = help_text
        self.running = False
        self.handlers = {
            Action.REQUEST: self.make_request,
            Action.VIEW: self.view_history,
            Action.RERUN: self.rerun_history,
            Action.SEARCH: self.search_history,
            Action.CLEAR: self.clear_history,
            Action.EXPORT: self.export_history,
            Action.FILTER: self.filter_history,
            Action.TOKEN: self.token_menu,
            Action.HELP: self.show_help,
            Action.VERSION: self.show_version,
            Action.EXIT: self.exit,
        }

    def run(self) -> None:
        click.secho("httptmux", fg="cyan")
        self.running = True
        actions = list(Action)
        while self.running:
            index = choose("Choose an action", [a.value for a in actions])
            self.handlers[actions[index]]()
        logger.debug("Program finished.")
        click.secho("\nExiting httptmux. Goodbye!", fg="cyan")

    def exit(self) -> None:
        self.running = False

    # ── Requests ────────────────────────────────────────────────────────

    def make_request(self) -> None:
        method = HTTP_METHODS[choose("Select HTTP method", HTTP_METHODS)]
        url = click.prompt(click.style("Enter API URL", fg="blue"))
        headers_input = ask("Enter headers as JSON (or leave empty)", fg="yellow")
        body_input = ""
        if method in BODY_METHODS:
            body_input = ask("Enter request body as JSON (or leave empty)", fg="yellow")

        headers = executor.read_headers(headers_input)
        body = executor.read_body(body_input)
        executor.run_request(
            method,
            url,
            headers,
            body,
            self.history,
            self.credentials,
            timeout=self.timeout,
        )

    def rerun_history(self) -> None:
        entries = self.history.load_all()
        if not entries:
            click.secho("No history found.", fg="yellow")
            return
        labels = [format_entry(i, e) for i, e in enumerate(entries, 1)]
        entry = entries[choose("Select a request to re-run", labels)]
        click.secho(f"\nRe-running: {entry.get('method')} {entry.get('url')}", fg="cyan")
        executor.run_request(
            entry.get("method", "GET"),
            entry.get("url", ""),
            entry.get("headers") or {},
            entry.get("body"),
            self.history,
            self.credentials,
            timeout=self.timeout,
        )

    # ── History ─────────────────────────────────────────────────────────

    def view_history(self) -> None:
        entries = self.history.load_all()
        if not entries:
            click.secho("No history found.", fg="yellow")
            return
        print_entries(entries)

    def search_history(self) -> None:
        if not self.history.load_all():
            click.secho("No history found.", fg="yellow")
            return
        keyword = ask("Enter keyword to search (method, URL, status)")
        results = self.history.search(keyword)
        if not results:
            click.secho("No matching entries.", fg="yellow")
            return
        print_entries(results, "Search Results:")

    def clear_history(self) -> None:
        self.history.clear()
        click.secho("History cleared.", fg="green")

    def export_history(self) -> None:
        path = ask("Export file path (default in HOME)").strip()
        target = self.history.export(path or None)
        click.secho(f"History exported to {target}", fg="green")

    def filter_history(self) -> None:
        if not self.history.load_all():
            click.secho("No history found.", fg="yellow")
            return
        status = ask("Filter by status code (or leave empty)").strip()
        since = ask("Filter by date (YYYY-MM-DD or leave empty)").strip()
        if since:
            try:
                parse_since(since)
            except ValueError as e:
                click.secho(str(e), fg="yellow")
                return
        results = self.history.filter(status=status or None, since=since or None)
        if not results:
            click.secho("No matching entries.", fg="yellow")
            return
        print_entries(results, "Filtered Results:")

    # ── Token ───────────────────────────────────────────────────────────

    def token_menu(self) -> None:
        current = self.credentials.load()
        if current:
            click.secho("Current JWT:", fg="cyan")
            summary = {"tokenPreview": token_preview(current), "payload": decode_token(current)}
            click.secho(json.dumps(summary, indent=2), fg="bright_black")
            executor.report_expiry(current)

        actions = list(TokenAction)
        action = actions[choose("JWT actions", [a.value for a in actions])]
        if action is TokenAction.SET:
            token = ask("Enter JWT token").strip()
            if not is_plausible_token(token):
                click.secho("Invalid JWT format.", fg="red")
                return
            self.credentials.save(token)
            click.secho("JWT saved successfully.", fg="green")
            executor.report_expiry(token)
        elif action is TokenAction.REMOVE:
            self.credentials.remove()
            click.secho("JWT removed.", fg="green")

    # ── Static text ─────────────────────────────────────────────────────

    def show_help(self) -> None:
        click.secho("\nhttptmux CLI Help", fg="cyan")
        click.echo(self.help_text)

    def show_version(self) -> None:
        click.secho(f"\nhttptmux v{__version__}", fg="cyan")
