"""
Markdown Export Commands
-------------------------

Commands:
    - export: Write one or more shows to markdown files
"""
from pathlib import Path

import click

from showbook.core.logging_manager import handle_cli_error
from showbook.core.exceptions import ShowbookError
from showbook.core.paths import EXPORT_DIR
from . import get_service


@click.command()
@click.argument("show_ids", nargs=-1, required=True, type=int)
@click.option(
    "-o",
    "--output-dir",
    type=click.Path(file_okay=False),
    default=str(EXPORT_DIR),
    show_default=True,
    help="Directory to write markdown files to",
)
@click.pass_context
def export(ctx, show_ids, output_dir):
    """Export shows to markdown."""
    try:
        service = get_service(ctx)
        if len(show_ids) == 1:
            exports = [service.export_show(show_ids[0])]
        else:
            exports = service.export_shows(list(show_ids))

        output = Path(output_dir)
        output.mkdir(parents=True, exist_ok=True)
        for content, filename in exports:
            target = output / filename
            target.write_bytes(content)
            click.echo(f"📄 {target}")

        click.echo(f"✅ Exported {len(exports)} show(s)")
    except ShowbookError as e:
        handle_cli_error(ctx, e, "export", {"show_ids": list(show_ids)})
