"""Flask CLI commands for token and session maintenance."""

from __future__ import annotations

import logging

import click
from flask.cli import with_appcontext

from authcore.api.deps import get_services

LOGGER = logging.getLogger(__name__)


def _echo_summary(results: dict[str, int]) -> None:
    """Pretty-print purged counts per sweep task."""
    click.echo("Sweep summary:")
    if not results:
        click.echo("  (no tasks)")
        return
    width = max(len(name) for name in results)
    for name, count in sorted(results.items()):
        click.echo(f"  {name.ljust(width)}  purged={count:>4}")


@click.group("tokens")
def tokens_cli() -> None:
    """Token lifecycle maintenance commands."""


@tokens_cli.command("sweep")
@with_appcontext
def sweep_command() -> None:
    """Purge expired revocation entries, single-use markers and stale sessions."""
    results = get_services().sweeper.run_once()
    if results is None:
        raise click.ClickException("A sweep is already running; try again later.")
    _echo_summary(results)


@tokens_cli.command("revoke-user")
@click.argument("user_id")
@click.option("--reason", default="admin_revoke", show_default=True, help="Recorded revocation reason.")
@with_appcontext
def revoke_user_command(user_id: str, reason: str) -> None:
    """Revoke every active session of USER_ID."""
    count = get_services().sessions.revoke_all(user_id, reason)
    LOGGER.info("Sessions revoked from CLI", extra={"user_id": user_id, "count": count})
    click.echo(f"Revoked {count} session(s) for user {user_id}.")


@tokens_cli.command("stats")
@with_appcontext
def stats_command() -> None:
    """Show how many revocations, single-use tokens and sessions are held."""
    stats = get_services().stats()
    width = max(len(name) for name in stats)
    click.echo("Token stats:")
    for name, count in sorted(stats.items()):
        click.echo(f"  {name.ljust(width)}  {count:>6}")
