"""
Show Moderation Commands
-------------------------

Lifecycle and flag commands for shows.

Commands:
    - approve: Approve a pending show (admin)
    - reject: Reject a pending show with a reason (admin)
    - publish: Publish a private show
    - unpublish: Send an approved show back to review
    - private: Make a pending show private
    - sold-out: Set or clear the sold-out flag
    - cancelled: Set or clear the cancelled flag
    - delete: Soft (default) or hard delete a show
"""
import click

from showbook.core.logging_manager import handle_cli_error
from showbook.core.exceptions import ShowbookError
from . import get_actor, get_service


def _echo_show(summary, verb: str) -> None:
    click.echo(f"✅ Show #{summary.id} {verb}: {summary.title}")
    click.echo(f"   Status: {summary.status}")


@click.group()
@click.pass_context
def show(ctx: click.Context) -> None:
    """Moderate shows."""
    pass


@show.command("approve")
@click.argument("show_id", type=int)
@click.option("--verify-venues", is_flag=True, help="Also verify the show's venues")
@click.pass_context
def approve(ctx, show_id, verify_venues):
    """Approve a pending show."""
    try:
        summary = get_service(ctx).approve_show(
            show_id, get_actor(ctx), verify_venues=verify_venues
        )
        _echo_show(summary, "approved")
    except ShowbookError as e:
        handle_cli_error(ctx, e, "approve_show", {"show_id": show_id})


@show.command("reject")
@click.argument("show_id", type=int)
@click.option("--reason", required=True, help="Reason shown to the submitter")
@click.pass_context
def reject(ctx, show_id, reason):
    """Reject a pending show."""
    try:
        summary = get_service(ctx).reject_show(show_id, get_actor(ctx), reason)
        _echo_show(summary, "rejected")
    except ShowbookError as e:
        handle_cli_error(ctx, e, "reject_show", {"show_id": show_id})


@show.command("publish")
@click.argument("show_id", type=int)
@click.pass_context
def publish(ctx, show_id):
    """Publish a private show."""
    try:
        _echo_show(get_service(ctx).publish_show(show_id, get_actor(ctx)), "published")
    except ShowbookError as e:
        handle_cli_error(ctx, e, "publish_show", {"show_id": show_id})


@show.command("unpublish")
@click.argument("show_id", type=int)
@click.pass_context
def unpublish(ctx, show_id):
    """Send an approved show back to pending."""
    try:
        _echo_show(get_service(ctx).unpublish_show(show_id, get_actor(ctx)), "unpublished")
    except ShowbookError as e:
        handle_cli_error(ctx, e, "unpublish_show", {"show_id": show_id})


@show.command("private")
@click.argument("show_id", type=int)
@click.pass_context
def make_private(ctx, show_id):
    """Make a pending show private."""
    try:
        _echo_show(get_service(ctx).make_private_show(show_id, get_actor(ctx)), "made private")
    except ShowbookError as e:
        handle_cli_error(ctx, e, "make_private_show", {"show_id": show_id})


@show.command("sold-out")
@click.argument("show_id", type=int)
@click.option("--clear", is_flag=True, help="Clear the flag instead of setting it")
@click.pass_context
def sold_out(ctx, show_id, clear):
    """Mark a show sold out."""
    try:
        summary = get_service(ctx).set_show_sold_out(show_id, get_actor(ctx), not clear)
        _echo_show(summary, "no longer sold out" if clear else "marked sold out")
    except ShowbookError as e:
        handle_cli_error(ctx, e, "set_show_sold_out", {"show_id": show_id})


@show.command("cancelled")
@click.argument("show_id", type=int)
@click.option("--clear", is_flag=True, help="Clear the flag instead of setting it")
@click.pass_context
def cancelled(ctx, show_id, clear):
    """Mark a show cancelled."""
    try:
        summary = get_service(ctx).set_show_cancelled(show_id, get_actor(ctx), not clear)
        _echo_show(summary, "no longer cancelled" if clear else "marked cancelled")
    except ShowbookError as e:
        handle_cli_error(ctx, e, "set_show_cancelled", {"show_id": show_id})


@show.command("delete")
@click.argument("show_id", type=int)
@click.option("--hard", is_flag=True, help="Remove the row instead of soft deleting")
@click.option("--reason", default=None, help="Reason recorded with a soft delete")
@click.pass_context
def delete(ctx, show_id, hard, reason):
    """Delete a show."""
    try:
        get_service(ctx).delete_show(show_id, get_actor(ctx), hard=hard, reason=reason)
        click.echo(f"🗑️  Show #{show_id} {'deleted' if hard else 'soft deleted'}")
    except ShowbookError as e:
        handle_cli_error(ctx, e, "delete_show", {"show_id": show_id})
