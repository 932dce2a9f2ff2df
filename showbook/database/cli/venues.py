"""
Venue Commands
---------------

Venue verification and the venue edit queue.

Commands:
    - verify: Verify a venue (admin)
    - unverified: List venues awaiting verification (admin)
    - edit: Edit a venue (admin) or propose an edit (submitter)
    - edits: List pending edits (admin)
    - approve-edit / reject-edit: Review a pending edit (admin)
    - cancel-edit: Withdraw your own pending edit
"""
import click

from showbook.core.logging_manager import handle_cli_error
from showbook.core.exceptions import ShowbookError
from showbook.database.managers.venue_manager import EDITABLE_VENUE_FIELDS
from . import get_actor, get_service


@click.group()
@click.pass_context
def venue(ctx: click.Context) -> None:
    """Verify and edit venues."""
    pass


@venue.command("verify")
@click.argument("venue_id", type=int)
@click.pass_context
def verify(ctx, venue_id):
    """Mark a venue verified."""
    try:
        summary = get_service(ctx).verify_venue(venue_id, get_actor(ctx))
        click.echo(f"✅ Venue #{summary.id} verified: {summary.name}")
    except ShowbookError as e:
        handle_cli_error(ctx, e, "verify_venue", {"venue_id": venue_id})


@venue.command("unverified")
@click.option("--limit", type=int, default=50, show_default=True)
@click.option("--offset", type=int, default=0, show_default=True)
@click.pass_context
def unverified(ctx, limit, offset):
    """List venues awaiting verification."""
    try:
        venues, total = get_service(ctx).list_unverified_venues(
            get_actor(ctx), limit=limit, offset=offset
        )
        click.echo(f"\n🏛️  Unverified venues ({total}):\n")
        for item in venues:
            click.echo(f"  #{item.id}  {item.name}, {item.city}, {item.state}")
    except ShowbookError as e:
        handle_cli_error(ctx, e, "list_unverified_venues")


@venue.command("edit")
@click.argument("venue_id", type=int)
@click.option(
    "--set",
    "assignments",
    multiple=True,
    metavar="FIELD=VALUE",
    help=f"Field to change; one of: {', '.join(EDITABLE_VENUE_FIELDS)}",
)
@click.pass_context
def edit(ctx, venue_id, assignments):
    """Edit a venue or queue the edit for review."""
    try:
        changes = {}
        for assignment in assignments:
            if "=" not in assignment:
                raise click.BadParameter(
                    f"Expected FIELD=VALUE, got '{assignment}'", param_hint="--set"
                )
            field_name, value = assignment.split("=", 1)
            changes[field_name.strip()] = value

        outcome = get_service(ctx).propose_venue_edit(venue_id, get_actor(ctx), changes)
        if outcome.is_pending:
            click.echo(f"📝 Edit #{outcome.edit.id} queued for review")
        else:
            fields = ", ".join(outcome.changed_fields) or "nothing"
            click.echo(f"✅ Venue #{outcome.venue.id} updated: {fields}")
    except ShowbookError as e:
        handle_cli_error(ctx, e, "propose_venue_edit", {"venue_id": venue_id})


@venue.command("edits")
@click.option("--limit", type=int, default=50, show_default=True)
@click.option("--offset", type=int, default=0, show_default=True)
@click.pass_context
def edits(ctx, limit, offset):
    """List pending venue edits."""
    try:
        pending, total = get_service(ctx).list_pending_venue_edits(
            get_actor(ctx), limit=limit, offset=offset
        )
        click.echo(f"\n📝 Pending venue edits ({total}):\n")
        for item in pending:
            fields = ", ".join(sorted(item.proposed_changes))
            click.echo(
                f"  #{item.id}  venue {item.venue_id}  by user {item.submitted_by}: {fields}"
            )
    except ShowbookError as e:
        handle_cli_error(ctx, e, "list_pending_venue_edits")


@venue.command("approve-edit")
@click.argument("edit_id", type=int)
@click.pass_context
def approve_edit(ctx, edit_id):
    """Apply a pending venue edit."""
    try:
        summary = get_service(ctx).approve_venue_edit(edit_id, get_actor(ctx))
        click.echo(f"✅ Edit #{edit_id} applied to venue #{summary.id}: {summary.name}")
    except ShowbookError as e:
        handle_cli_error(ctx, e, "approve_venue_edit", {"edit_id": edit_id})


@venue.command("reject-edit")
@click.argument("edit_id", type=int)
@click.option("--reason", required=True, help="Reason shown to the proposer")
@click.pass_context
def reject_edit(ctx, edit_id, reason):
    """Reject a pending venue edit."""
    try:
        get_service(ctx).reject_venue_edit(edit_id, get_actor(ctx), reason)
        click.echo(f"✅ Edit #{edit_id} rejected")
    except ShowbookError as e:
        handle_cli_error(ctx, e, "reject_venue_edit", {"edit_id": edit_id})


@venue.command("cancel-edit")
@click.argument("edit_id", type=int)
@click.pass_context
def cancel_edit(ctx, edit_id):
    """Withdraw your own pending venue edit."""
    try:
        get_service(ctx).cancel_venue_edit(edit_id, get_actor(ctx))
        click.echo(f"🗑️  Edit #{edit_id} cancelled")
    except ShowbookError as e:
        handle_cli_error(ctx, e, "cancel_venue_edit", {"edit_id": edit_id})
