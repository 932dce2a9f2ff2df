"""
Setup & Initialization Commands
--------------------------------

Commands:
    - init: Create or migrate the database schema
"""
import click

from showbook.core.logging_manager import handle_cli_error
from showbook.core.exceptions import DatabaseError
from . import get_db


@click.command()
@click.pass_context
def init(ctx):
    """Initialize the database (create tables or run pending migrations)."""
    try:
        click.echo("🚀 Initializing Showbook database...")
        db = get_db(ctx)
        db.initialize_schema()

        history = db.get_migration_history()
        click.echo(f"🗄️  Database: {db.db_path}")
        click.echo(f"📌 Revision: {history.get('current_revision') or 'none'}")
        click.echo("✅ Database ready!")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "init")
