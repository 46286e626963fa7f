"""httptmux CLI - interactive and scriptable HTTP client with request history."""

import sys

import click

from httptmux import core, executor
from httptmux.credentials import CredentialStore, is_plausible_token
from httptmux.filters import parse_filter_spec
from httptmux.history import HistoryStore
from httptmux.log import configure_logging, get_logger

logger = get_logger("cli")

TOOL_HELP = """\
httptmux — HTTP client with JWT auth and request history.

Run without request flags for the interactive menu, or pass flags to
send a request or manage history in one shot.

\b
MODES
─────
  Interactive:      httptmux
  Non-interactive:  httptmux METHOD -u URL [-h HEADERS] [-b BODY]

\b
REQUESTS
────────
  httptmux GET -u https://api.example.com/ping
  httptmux POST -u https://api.example.com/users -b '{"name":"test"}'
  httptmux DELETE -u https://api.example.com/users/1 -h '{"X-Trace":"1"}'

  Headers and body are JSON strings. Malformed JSON prints a warning
  and is replaced by an empty object. A stored JWT is always sent as
  "Authorization: Bearer <token>".

\b
HISTORY
───────
  httptmux --history                      List recorded requests
  httptmux -r 3                           Replay entry 3 from the list
  httptmux -s users                       Search method, URL and status
  httptmux -f "status=404 since=2024-01-01"
  httptmux -c                             Clear history
  httptmux -e [PATH]                      Export (default ~/httptmux-history-export.json)

\b
JWT
───
  httptmux --set-token eyJhbGciOi...      Store a bearer token
  httptmux --remove-token                 Forget the stored token

\b
INTERACTIVE MENU
────────────────
  Make new request, View history, Re-run from history, Search history,
  Clear history, Export history, Filter history, Set JWT token, Help,
  Version, Exit

\b
CONFIG FILE (.httptmux.yaml or ~/.httptmux/config.yaml)
──────────────────────────────────────────────────────
  defaults:
    timeout: 30                     # seconds; unset waits indefinitely
    history_file: ~/.api-cli-history.json
    token_file: ~/.api-cli-jwt.json
    export_file: ~/httptmux-history-export.json
"""


@click.command(
    help=TOOL_HELP,
    context_settings={"max_content_width": 88, "help_option_names": ["--help"]},
)
@click.argument("method", required=False)
@click.option("-u", "--url", default=None, help="Target URL.")
@click.option("-h", "--headers", default=None, help="Request headers as a JSON object string.")
@click.option("-b", "--body", default=None, help="Request body as a JSON string.")
@click.option(
    "-c",
    "--clear-history",
    is_flag=True,
    default=False,
    help="Delete all recorded history.",
)
@click.option(
    "-e",
    "--export-history",
    "export_path",
    is_flag=False,
    flag_value="",
    default=None,
    metavar="[PATH]",
    help="Export history as JSON. Default: ~/httptmux-history-export.json.",
)
@click.option(
    "-f",
    "--filter-history",
    "filter_spec",
    default=None,
    metavar="SPEC",
    help="Filter history, e.g. 'status=404 since=2024-01-01'.",
)
@click.option(
    "-s",
    "--search-history",
    "keyword",
    default=None,
    help="Search history by method, URL or status.",
)
@click.option("--history", "show_history", is_flag=True, default=False, help="List request history.")
@click.option(
    "-r",
    "--replay",
    type=int,
    default=None,
    metavar="N",
    help="Replay history entry N (as numbered by --history).",
)
@click.option("--set-token", default=None, metavar="TOKEN", help="Store a JWT bearer token.")
@click.option("--remove-token", is_flag=True, default=False, help="Remove the stored JWT.")
@click.option(
    "--config",
    "config_file",
    default=None,
    help="Config file path. Default: .httptmux.yaml in CWD, then ~/.httptmux/config.yaml.",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable verbose logging.")
@click.version_option(
    core.__version__,
    "-V",
    "--version",
    prog_name="httptmux",
    message="httptmux v%(version)s",
)
def main(
    method,
    url,
    headers,
    body,
    clear_history,
    export_path,
    filter_spec,
    keyword,
    show_history,
    replay,
    set_token,
    remove_token,
    config_file,
    verbose,
):
    """Send HTTP requests and manage their history."""
    configure_logging(verbose)

    try:
        config = core.load_config(core.resolve_config_path(config_file))
        defaults = config.get("defaults", {})
        history = HistoryStore(
            core.resolve_file(defaults, "history_file", core.HISTORY_FILE),
            export_path=core.resolve_file(defaults, "export_file", core.EXPORT_FILE),
        )
        credentials = CredentialStore(core.resolve_file(defaults, "token_file", core.TOKEN_FILE))
        timeout = core.resolve_timeout(defaults)

        non_interactive = any(
            [
                method,
                url,
                headers is not None,
                body is not None,
                clear_history,
                export_path is not None,
                filter_spec is not None,
                keyword is not None,
                show_history,
                replay is not None,
                set_token is not None,
                remove_token,
            ],
        )

        if not non_interactive:
            from httptmux.shell import Shell

            help_text = TOOL_HELP.replace("\b\n", "")
            Shell(history, credentials, timeout=timeout, help_text=help_text).run()
            return

        if export_path is not None:
            _cmd_export(history, export_path)
        if filter_spec is not None:
            _cmd_filter(history, filter_spec)
        if keyword is not None:
            _cmd_search(history, keyword)
        if show_history:
            _cmd_history(history)
        if clear_history:
            _cmd_clear(history)
        if set_token is not None:
            _cmd_set_token(credentials, set_token)
        if remove_token:
            _cmd_remove_token(credentials)
        if replay is not None:
            _cmd_replay(history, credentials, replay, timeout)
        if method or url or headers is not None or body is not None:
            _cmd_request(history, credentials, method, url, headers, body, timeout)

        logger.debug("Program finished.")
    except (click.ClickException, click.exceptions.Abort, click.exceptions.Exit):
        raise
    except Exception as e:
        click.secho(f"Fatal error: {e}", fg="red", err=True)
        sys.exit(1)


# ── Subcommand implementations ──────────────────────────────────────────


def _cmd_request(history, credentials, method, url, headers, body, timeout):
    if not url:
        raise click.UsageError("Missing option '-u' / '--url'.")
    executor.run_request(
        method or "GET",
        url,
        executor.read_headers(headers),
        executor.read_body(body),
        history,
        credentials,
        timeout=timeout,
    )


def _cmd_clear(history):
    history.clear()
    click.secho("History cleared.", fg="green")


def _cmd_export(history, path):
    target = history.export(path or None)
    click.secho(f"History exported to {target}", fg="green")


def _print_entries(entries, title):
    if not entries:
        click.secho("No matching entries.", fg="yellow")
        return
    click.secho(f"\n{title}", fg="cyan")
    for i, entry in enumerate(entries, 1):
        click.echo(core.format_entry(i, entry))


def _cmd_filter(history, spec):
    try:
        criteria = parse_filter_spec(spec)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="'-f' / '--filter-history'") from e
    if not history.load_all():
        click.secho("No history found.", fg="yellow")
        return
    results = history.filter(status=criteria.get("status"), since=criteria.get("since"))
    _print_entries(results, "Filtered Results:")


def _cmd_search(history, keyword):
    if not history.load_all():
        click.secho("No history found.", fg="yellow")
        return
    _print_entries(history.search(keyword), "Search Results:")


def _cmd_history(history):
    entries = history.load_all()
    if not entries:
        click.secho("No history found.", fg="yellow")
        return
    click.secho("\nRequest History:", fg="cyan")
    for i, entry in enumerate(entries, 1):
        click.echo(core.format_entry(i, entry))


def _cmd_set_token(credentials, token):
    token = token.strip()
    if not is_plausible_token(token):
        click.secho("Invalid JWT format.", fg="red", err=True)
        sys.exit(1)
    credentials.save(token)
    click.secho("JWT saved successfully.", fg="green")
    executor.report_expiry(token)


def _cmd_remove_token(credentials):
    credentials.remove()
    click.secho("JWT removed.", fg="green")


def _cmd_replay(history, credentials, number, timeout):
    try:
        entry = history.get(number - 1)
    except IndexError:
        click.echo(f"Invalid history entry {number}. Use --history to list.", err=True)
        sys.exit(1)
    click.secho(f"\nRe-running: {entry.get('method')} {entry.get('url')}", fg="cyan")
    executor.run_request(
        entry.get("method", "GET"),
        entry.get("url", ""),
        entry.get("headers") or {},
        entry.get("body"),
        history,
        credentials,
        timeout=timeout,
    )
