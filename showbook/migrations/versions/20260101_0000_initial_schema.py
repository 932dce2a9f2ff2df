"""initial schema

Revision ID: 3c1f9a7e2b10
Revises:
Create Date: 2026-01-01 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c1f9a7e2b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SOCIAL_COLUMNS = (
    "instagram",
    "facebook",
    "twitter",
    "youtube",
    "spotify",
    "soundcloud",
    "bandcamp",
    "website",
)


def _social_columns():
    return [sa.Column(name, sa.String(length=500), nullable=True) for name in SOCIAL_COLUMNS]


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "venues",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=300), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column("city", sa.String(length=255), nullable=False),
        sa.Column("state", sa.String(length=50), nullable=False),
        sa.Column("zipcode", sa.String(length=20), nullable=True),
        sa.Column("verified", sa.Boolean(), server_default="0", nullable=False),
        sa.Column("submitted_by", sa.Integer(), nullable=True),
        *_social_columns(),
        *_timestamps(),
        sa.CheckConstraint("name != ''", name="ck_venue_non_empty_name"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_index("ix_venues_name", "venues", ["name"])
    op.create_index("ix_venues_submitted_by", "venues", ["submitted_by"])
    op.create_index(
        "uq_venues_identity",
        "venues",
        [sa.text("lower(name)"), sa.text("lower(city)"), sa.text("lower(state)")],
        unique=True,
    )

    op.create_table(
        "artists",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=300), nullable=False),
        sa.Column("city", sa.String(length=255), nullable=True),
        sa.Column("state", sa.String(length=50), nullable=True),
        *_social_columns(),
        *_timestamps(),
        sa.CheckConstraint("name != ''", name="ck_artist_non_empty_name"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_index("ix_artists_name", "artists", ["name"])
    op.create_index("uq_artists_name", "artists", [sa.text("lower(name)")], unique=True)

    op.create_table(
        "shows",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("slug", sa.String(length=500), nullable=True),
        sa.Column("event_date", sa.DateTime(), nullable=False),
        sa.Column("city", sa.String(length=255), nullable=True),
        sa.Column("state", sa.String(length=50), nullable=True),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("age_requirement", sa.String(length=50), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "pending", "approved", "rejected", "private",
                name="show_status", create_constraint=True,
            ),
            nullable=False,
        ),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("is_sold_out", sa.Boolean(), nullable=False),
        sa.Column("is_cancelled", sa.Boolean(), nullable=False),
        sa.Column("submitted_by", sa.Integer(), nullable=True),
        sa.Column(
            "source",
            sa.Enum("user", "discovery", name="show_source", create_constraint=True),
            nullable=False,
        ),
        sa.Column("source_venue", sa.String(length=300), nullable=True),
        sa.Column("source_event_id", sa.String(length=300), nullable=True),
        sa.Column("scraped_at", sa.DateTime(), nullable=True),
        sa.Column("duplicate_of_show_id", sa.Integer(), nullable=True),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("deleted_by", sa.Integer(), nullable=True),
        sa.Column("deletion_reason", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("title != ''", name="ck_show_non_empty_title"),
        sa.ForeignKeyConstraint(
            ["duplicate_of_show_id"], ["shows.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
        sa.UniqueConstraint(
            "source_venue", "source_event_id", name="uq_show_source_event"
        ),
    )
    op.create_index("ix_shows_event_date", "shows", ["event_date"])
    op.create_index("ix_shows_status", "shows", ["status"])
    op.create_index("ix_shows_submitted_by", "shows", ["submitted_by"])
    op.create_index("ix_shows_status_date", "shows", ["status", "event_date"])

    op.create_table(
        "show_venues",
        sa.Column("show_id", sa.Integer(), nullable=False),
        sa.Column("venue_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["show_id"], ["shows.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["venue_id"], ["venues.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("show_id", "venue_id"),
    )
    op.create_index("ix_show_venues_venue_id", "show_venues", ["venue_id"])

    op.create_table(
        "show_artists",
        sa.Column("show_id", sa.Integer(), nullable=False),
        sa.Column("artist_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column(
            "set_type",
            sa.Enum(
                "headliner", "opener", "performer",
                name="set_type", create_constraint=True,
            ),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["show_id"], ["shows.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["artist_id"], ["artists.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("show_id", "artist_id"),
    )
    op.create_index("ix_show_artists_artist_id", "show_artists", ["artist_id"])

    op.create_table(
        "pending_venue_edits",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("venue_id", sa.Integer(), nullable=False),
        sa.Column("submitted_by", sa.Integer(), nullable=False),
        sa.Column("proposed_changes", sa.JSON(), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "pending", "approved", "rejected",
                name="venue_edit_status", create_constraint=True,
            ),
            nullable=False,
        ),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("reviewed_by", sa.Integer(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["venue_id"], ["venues.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_pending_venue_edits_venue_id", "pending_venue_edits", ["venue_id"])
    op.create_index(
        "ix_pending_venue_edits_submitted_by", "pending_venue_edits", ["submitted_by"]
    )
    op.create_index("ix_pending_venue_edits_status", "pending_venue_edits", ["status"])
    op.create_index(
        "uq_pending_venue_edit_per_user",
        "pending_venue_edits",
        ["venue_id", "submitted_by"],
        unique=True,
        sqlite_where=sa.text("status = 'pending'"),
    )


def downgrade() -> None:
    op.drop_table("pending_venue_edits")
    op.drop_table("show_artists")
    op.drop_table("show_venues")
    op.drop_table("shows")
    op.drop_table("artists")
    op.drop_table("venues")
