"""
Markdown Import Commands
-------------------------

Two-step import of show files: preview what would happen, then confirm.

Commands:
    - preview: Preview one show file
    - confirm: Import one show file
    - bulk-preview: Preview several show files
    - bulk-confirm: Import several show files, one transaction each
"""
from pathlib import Path
from typing import List

import click

from showbook.core.logging_manager import handle_cli_error
from showbook.core.exceptions import ShowbookError
from . import get_actor, get_service


def _echo_preview(preview, label: str = "") -> None:
    title = preview.show.get("title") or "(untitled)"
    click.echo(f"\n🎫 {label}{title}")
    if preview.show.get("event_date"):
        click.echo(f"   Date: {preview.show['event_date'].isoformat()}")

    for match in preview.venues:
        marker = "➕ new" if match.will_create else f"✔ #{match.existing_id}"
        click.echo(f"   📍 {match.name} ({match.city}, {match.state}) {marker}")
    for match in preview.artists:
        marker = "➕ new" if match.will_create else f"✔ #{match.existing_id}"
        click.echo(f"   🎤 {match.position}. {match.name} [{match.set_type}] {marker}")
    for warning in preview.warnings:
        click.echo(f"   ⚠️  {warning}")

    click.echo("   ✅ Ready to import" if preview.can_import else "   ❌ Cannot import")


def _read_files(paths) -> List[bytes]:
    return [Path(path).read_bytes() for path in paths]


@click.group("import")
@click.pass_context
def import_group(ctx: click.Context) -> None:
    """Import shows from markdown files."""
    pass


@import_group.command("preview")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def preview(ctx, file):
    """Preview importing one show file."""
    try:
        result = get_service(ctx).preview_show_import(Path(file).read_bytes(), get_actor(ctx))
        _echo_preview(result)
    except ShowbookError as e:
        handle_cli_error(ctx, e, "preview_show_import", {"file": file})


@import_group.command("confirm")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def confirm(ctx, file):
    """Import one show file."""
    try:
        result = get_service(ctx).confirm_show_import(Path(file).read_bytes(), get_actor(ctx))
        click.echo(f"✅ Imported show #{result.show.id}: {result.show.title}")
        click.echo(f"   Status: {result.show.status}")
        click.echo(
            f"   New venues: {len(result.new_venue_ids)}, "
            f"new artists: {len(result.new_artist_ids)}"
        )
    except ShowbookError as e:
        handle_cli_error(ctx, e, "confirm_show_import", {"file": file})


@import_group.command("bulk-preview")
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def bulk_preview(ctx, files):
    """Preview importing several show files."""
    try:
        result = get_service(ctx).preview_bulk_import(_read_files(files), get_actor(ctx))
        for index, item in enumerate(result.previews, 1):
            _echo_preview(item, label=f"[{index}] ")

        summary = result.summary
        click.echo("\n📊 Summary:")
        click.echo(f"   Shows: {summary.total_shows}")
        click.echo(
            f"   Venues: {summary.new_venues} new, {summary.existing_venues} existing"
        )
        click.echo(
            f"   Artists: {summary.new_artists} new, {summary.existing_artists} existing"
        )
        click.echo(f"   Warnings: {summary.warning_count}")
        click.echo(
            "   ✅ All shows can be imported"
            if summary.can_import_all
            else "   ⚠️  Some shows cannot be imported"
        )
    except ShowbookError as e:
        handle_cli_error(ctx, e, "preview_bulk_import", {"files": list(files)})


@import_group.command("bulk-confirm")
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def bulk_confirm(ctx, files):
    """Import several show files."""
    try:
        result = get_service(ctx).confirm_bulk_import(_read_files(files), get_actor(ctx))
        for file, item in zip(files, result.results):
            if item.success:
                click.echo(f"✅ {file}: show #{item.show.id} ({item.show.status})")
            else:
                click.echo(f"❌ {file}: {item.error}")
        click.echo(f"\n📊 {result.success_count} imported, {result.error_count} failed")
    except ShowbookError as e:
        handle_cli_error(ctx, e, "confirm_bulk_import", {"files": list(files)})
