#!/usr/bin/env python3
"""
Showbook Management CLI
------------------------

Command-line interface for moderating and importing shows.

This module provides the main CLI group and shared context setup
for all commands.

Command Structure:
    - Setup (init)
    - Show moderation (show approve|reject|publish|unpublish|private|
      sold-out|cancelled|delete)
    - Venues (venue verify|edit|edits|approve-edit|reject-edit|cancel-edit)
    - Markdown import (import preview|confirm|bulk-preview|bulk-confirm)
    - Markdown export (export)
    - Discovery (discovery check|import)

Identity:
    Commands act as the user given by --user-id; --admin grants admin
    rights. Both go before the command name.

Usage:
    # Get general help
    showbook --help

    # Approve a show as admin 1, verifying its venues
    showbook --user-id 1 --admin show approve 42 --verify-venues

    # Dry-run a discovery file
    showbook --user-id 1 --admin discovery import events.json --dry-run
"""
import logging
from pathlib import Path
from typing import Optional

import click

from showbook.core.config import ShowbookConfig
from showbook.core.logging_manager import ShowbookLogger
from showbook.database.manager import ShowbookDB
from showbook.pipeline.actor import Actor
from showbook.pipeline.events import EventBus
from showbook.pipeline.service import ShowService


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    default=None,
    help="Path to database file (overrides config)",
)
@click.option(
    "--log-dir",
    type=click.Path(),
    default=None,
    help="Path to log directory (overrides config)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(),
    default=None,
    help="Path to showbook.yaml",
)
@click.option("--user-id", type=int, default=None, help="Act as this user id")
@click.option("--admin", is_flag=True, help="Act with admin rights")
@click.option(
    "--verbose",
    is_flag=True,
    help="Show detailed errors and tracebacks",
)
@click.pass_context
def cli(ctx, db_path, log_dir, config_path, user_id, admin, verbose):
    """Showbook Management CLI"""

    # Suppress Alembic INFO logging by default
    logging.getLogger("alembic").setLevel(logging.WARNING)

    ctx.ensure_object(dict)
    config = ShowbookConfig.load(config_path)
    if db_path:
        config.db_path = Path(db_path)
    if log_dir:
        config.log_dir = Path(log_dir)

    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose
    ctx.obj["logger"] = ShowbookLogger(config.log_dir, component_name="cli")
    ctx.obj["actor"] = Actor(user_id=user_id, is_admin=admin) if user_id is not None else None


def get_db(ctx) -> ShowbookDB:
    """Get or create database instance from context."""
    if "db" not in ctx.obj:
        config: ShowbookConfig = ctx.obj["config"]
        logger = ctx.obj["logger"]
        ctx.obj["db"] = ShowbookDB(
            db_path=config.db_path,
            alembic_dir=config.alembic_dir,
            logger=logger.child("database"),
            event_bus=EventBus.with_logging(logger),
        )
    return ctx.obj["db"]


def get_service(ctx) -> ShowService:
    """Get or create the ShowService bound to the context's database."""
    if "service" not in ctx.obj:
        ctx.obj["service"] = ShowService(
            get_db(ctx), config=ctx.obj["config"], logger=ctx.obj["logger"]
        )
    return ctx.obj["service"]


def get_actor(ctx) -> Optional[Actor]:
    return ctx.obj.get("actor")


# Import and register command modules
# These imports must come after CLI group definition
from .setup import init  # noqa: E402
from .shows import show  # noqa: E402
from .venues import venue  # noqa: E402
from .imports import import_group  # noqa: E402
from .export import export  # noqa: E402
from .discovery import discovery  # noqa: E402

# Register top-level commands
cli.add_command(init)
cli.add_command(export)

# Register command groups
cli.add_command(show)
cli.add_command(venue)
cli.add_command(import_group)
cli.add_command(discovery)


if __name__ == "__main__":
    cli(obj={})
