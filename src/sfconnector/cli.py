from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Iterator, Optional

import click

from . import __version__
from .client import SalesforceClient
from .config import SFConfig
from .env_loader import load_env_files
from .logging_config import configure_logging
from .models import ModificationType
from .transport import RequestsTransport

_logger = logging.getLogger(__name__)

# Load .env very early, so everything else sees env vars
load_env_files()


def _build_client() -> SalesforceClient:
    cfg = SFConfig.from_env()
    return SalesforceClient(cfg, transport=RequestsTransport(timeout=cfg.timeout))


@contextmanager
def _session() -> Iterator[SalesforceClient]:
    """Log in for the duration of a command and always try to log out."""
    client = _build_client()
    client.log_in()
    if not client.is_logged_in:
        raise click.ClickException("Login did not produce a session.")
    try:
        yield client
    finally:
        try:
            client.log_out()
        except Exception as e:
            _logger.warning("Logout failed: %s", e)


@click.group(
    context_settings={"help_option_names": ["-h", "--help"]},
    invoke_without_command=True,
)
@click.version_option(__version__, "--version", prog_name="sfconnector")
@click.option(
    "-v",
    "--verbose",
    "loglevel",
    flag_value=logging.INFO,
    default=None,
    help="Enable INFO logs.",
)
@click.option(
    "-vv",
    "--very-verbose",
    "loglevel",
    flag_value=logging.DEBUG,
    help="Enable DEBUG logs.",
)
@click.pass_context
def cli(ctx: click.Context, loglevel: Optional[int]) -> None:
    """Salesforce connector CLI. Use subcommands like 'login', 'query' or 'modify'."""
    configure_logging(loglevel)
    _logger.debug("CLI start, version=%s", __version__)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command("login")
def cmd_login() -> None:
    """Check the configured credentials by logging in and out again."""
    try:
        with _session() as client:
            token = client.messages.session_id or ""
            click.echo("✅  Logged in to Salesforce.")
            click.echo(f"Instance URL: {client.messages.request_endpoint}")
            click.echo(f"API Version : {client.cfg.api_version}")
            click.echo(f"Session     : {token[:10]}...{token[-6:]}")
    except Exception as e:
        click.echo(f"❌  Login failed: {e}", err=True)
        raise click.Abort() from None


@cli.command("query")
@click.argument("soql")
@click.option("--pretty", is_flag=True, help="Pretty-print JSON.")
def cmd_query(soql: str, pretty: bool) -> None:
    """Run a SOQL query, following every result page."""
    try:
        with _session() as client:
            records = client.query_data(soql)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        raise click.Abort() from None
    click.echo(json.dumps(records, indent=2 if pretty else None))


@cli.command("modify")
@click.argument(
    "operation",
    type=click.Choice([m.value for m in ModificationType], case_sensitive=False),
)
@click.argument("records_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--all-or-none/--partial",
    "all_or_none",
    default=None,
    help="Roll back the whole chunk on any failure (default: SF_ALL_OR_NONE).",
)
@click.option("--progress", is_flag=True, help="Show a progress bar per chunk.")
def cmd_modify(
    operation: str,
    records_file: Path,
    all_or_none: Optional[bool],
    progress: bool,
) -> None:
    """Insert, update or delete the records in a JSON array file."""
    try:
        records = json.loads(records_file.read_text(encoding="utf-8"))
    except ValueError as e:
        raise click.BadParameter(f"Invalid JSON: {e}", param_hint="RECORDS_FILE") from None
    if not isinstance(records, list):
        raise click.BadParameter("Expected a JSON array of records.", param_hint="RECORDS_FILE")

    try:
        with _session() as client:
            results = client.modify_data(
                records,
                ModificationType(operation.lower()),
                all_or_none,
                show_progress=progress,
            )
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        raise click.Abort() from None

    click.echo(json.dumps([asdict(r) for r in results], indent=2))
    failed = sum(1 for r in results if not r.success)
    if failed:
        click.echo(f"{failed} of {len(results)} records failed.", err=True)
