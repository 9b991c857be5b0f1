"""create inventory tables

Revision ID: 5c0e7a91d2b4
Revises:
Create Date: 2026-10-18 09:12:04.518233

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5c0e7a91d2b4"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


CATEGORY_VALUES = ("declarations", "reglements", "mails_simples")
STATUS_VALUES = ("arrived", "read", "treated", "deleted")
ACTIVITY_VALUES = (
    "arrived",
    "read",
    "unread",
    "reclassified",
    "treated",
    "untreated_flag",
    "deleted",
    "gap",
)


def upgrade() -> None:
    # Create enum types first (values match Python enum string values); the
    # category type is shared by three tables so columns must not recreate it
    sa.Enum(*CATEGORY_VALUES, name="category").create(op.get_bind(), checkfirst=True)
    sa.Enum(*STATUS_VALUES, name="itemstatus").create(op.get_bind(), checkfirst=True)
    sa.Enum(*ACTIVITY_VALUES, name="activitytype").create(op.get_bind(), checkfirst=True)

    category_enum = postgresql.ENUM(*CATEGORY_VALUES, name="category", create_type=False)
    status_enum = postgresql.ENUM(*STATUS_VALUES, name="itemstatus", create_type=False)
    activity_enum = postgresql.ENUM(*ACTIVITY_VALUES, name="activitytype", create_type=False)

    op.create_table(
        "tracked_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("identity", sa.String(length=512), nullable=False),
        sa.Column("location", sa.String(length=1024), nullable=False),
        sa.Column("location_key", sa.String(length=1024), nullable=False),
        sa.Column("category", category_enum, nullable=False),
        sa.Column("status", status_enum, nullable=False),
        sa.Column("arrived_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("arrival_week", sa.String(length=8), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column("treated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("treated_week", sa.String(length=8), nullable=True),
        sa.Column("is_treated", sa.Boolean(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_tracked_items_id"), "tracked_items", ["id"], unique=False)
    op.create_index(op.f("ix_tracked_items_identity"), "tracked_items", ["identity"], unique=True)
    op.create_index(
        op.f("ix_tracked_items_location_key"), "tracked_items", ["location_key"], unique=False
    )
    op.create_index(op.f("ix_tracked_items_category"), "tracked_items", ["category"], unique=False)
    op.create_index(
        op.f("ix_tracked_items_arrival_week"), "tracked_items", ["arrival_week"], unique=False
    )
    op.create_index(
        op.f("ix_tracked_items_treated_week"), "tracked_items", ["treated_week"], unique=False
    )

    op.create_table(
        "item_activity",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("identity", sa.String(length=512), nullable=False),
        sa.Column("activity_type", activity_enum, nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_item_activity_id"), "item_activity", ["id"], unique=False)
    op.create_index(op.f("ix_item_activity_identity"), "item_activity", ["identity"], unique=False)

    op.create_table(
        "category_config",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("location", sa.String(length=1024), nullable=False),
        sa.Column("category", category_enum, nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("location"),
    )
    op.create_index(op.f("ix_category_config_id"), "category_config", ["id"], unique=False)

    op.create_table(
        "app_settings",
        sa.Column("key", sa.String(length=100), nullable=False),
        sa.Column("value", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("key"),
    )

    op.create_table(
        "weekly_aggregates",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("week_identifier", sa.String(length=8), nullable=False),
        sa.Column("category", category_enum, nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("week_number", sa.Integer(), nullable=False),
        sa.Column("week_start", sa.Date(), nullable=False),
        sa.Column("week_end", sa.Date(), nullable=False),
        sa.Column("received_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("treated_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("manual_adjustment_total", sa.Integer(), server_default="0", nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("last_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("week_identifier", "category", name="uq_weekly_week_category"),
    )
    op.create_index(op.f("ix_weekly_aggregates_id"), "weekly_aggregates", ["id"], unique=False)
    op.create_index(
        op.f("ix_weekly_aggregates_week_identifier"),
        "weekly_aggregates",
        ["week_identifier"],
        unique=False,
    )
    op.create_index("ix_weekly_year_week", "weekly_aggregates", ["year", "week_number"])


def downgrade() -> None:
    op.drop_index("ix_weekly_year_week", table_name="weekly_aggregates")
    op.drop_index(op.f("ix_weekly_aggregates_week_identifier"), table_name="weekly_aggregates")
    op.drop_index(op.f("ix_weekly_aggregates_id"), table_name="weekly_aggregates")
    op.drop_table("weekly_aggregates")
    op.drop_table("app_settings")
    op.drop_index(op.f("ix_category_config_id"), table_name="category_config")
    op.drop_table("category_config")
    op.drop_index(op.f("ix_item_activity_identity"), table_name="item_activity")
    op.drop_index(op.f("ix_item_activity_id"), table_name="item_activity")
    op.drop_table("item_activity")
    op.drop_index(op.f("ix_tracked_items_treated_week"), table_name="tracked_items")
    op.drop_index(op.f("ix_tracked_items_arrival_week"), table_name="tracked_items")
    op.drop_index(op.f("ix_tracked_items_category"), table_name="tracked_items")
    op.drop_index(op.f("ix_tracked_items_location_key"), table_name="tracked_items")
    op.drop_index(op.f("ix_tracked_items_identity"), table_name="tracked_items")
    op.drop_index(op.f("ix_tracked_items_id"), table_name="tracked_items")
    op.drop_table("tracked_items")

    # Drop enum types
    sa.Enum(name="activitytype").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="itemstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="category").drop(op.get_bind(), checkfirst=True)
