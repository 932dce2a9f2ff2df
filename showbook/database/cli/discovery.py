"""
Discovery Commands
-------------------

Ingestion of scraped venue calendars.

Commands:
    - check: Report which scraped events are already imported
    - import: Import a JSON file of scraped events
"""
import json
from pathlib import Path

import click

from showbook.core.logging_manager import handle_cli_error
from showbook.core.exceptions import ShowbookError, ValidationError
from showbook.pipeline.actor import require_admin
from showbook.pipeline.discovery import events_from_payload
from . import get_actor, get_service


def _load_events(file):
    try:
        payload = json.loads(Path(file).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in {file}: {e}") from e
    return events_from_payload(payload)


@click.group()
@click.pass_context
def discovery(ctx: click.Context) -> None:
    """Import events discovered on venue websites."""
    pass


@discovery.command("check")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def check(ctx, file):
    """Show which events in FILE were already imported."""
    try:
        require_admin(get_actor(ctx), "check discovered events")
        events = _load_events(file)
        statuses = get_service(ctx).check_events([event.key for event in events])

        for event in events:
            status = statuses.get(event.external_id or "")
            if status is None:
                click.echo(f"  ⚠️  {event.title}: missing id or venue slug")
            elif status.exists:
                click.echo(f"  ✔ {event.title}: show #{status.show_id} ({status.status})")
            else:
                click.echo(f"  ➕ {event.title}: not imported")
    except ShowbookError as e:
        handle_cli_error(ctx, e, "check_events", {"file": file})


@discovery.command("import")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--dry-run", is_flag=True, help="Classify events without writing")
@click.option(
    "--allow-updates",
    is_flag=True,
    help="Refresh already-imported events instead of skipping them",
)
@click.pass_context
def import_events(ctx, file, dry_run, allow_updates):
    """Import scraped events from a JSON file."""
    try:
        require_admin(get_actor(ctx), "import discovered events")
        events = _load_events(file)
        result = get_service(ctx).import_events(
            events, dry_run=dry_run, allow_updates=allow_updates
        )

        if dry_run:
            click.echo("🔍 Dry run: nothing was written\n")
        for message in result.messages:
            click.echo(f"  {message}")

        click.echo("\n📊 Summary:")
        click.echo(f"   Total: {result.total}")
        click.echo(f"   Imported: {result.imported}")
        click.echo(f"   Updated: {result.updated}")
        click.echo(f"   Duplicates: {result.duplicates}")
        click.echo(f"   Rejected: {result.rejected}")
        click.echo(f"   Pending review: {result.pending_review}")
        click.echo(f"   Errors: {result.errors}")
    except ShowbookError as e:
        handle_cli_error(ctx, e, "import_events", {"file": file, "dry_run": dry_run})
