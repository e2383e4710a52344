"""Initial database schema.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def upgrade() -> None:
    user_role = sa.Enum("user", "admin", name="user_role")

    # Create users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, autoincrement=True, nullable=False),
        sa.Column("open_id", sa.String(64), nullable=False),
        sa.Column("name", sa.Text, nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("login_method", sa.String(64), nullable=True),
        sa.Column("role", user_role, nullable=False, server_default="user"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _timestamp("last_signed_in"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("open_id"),
    )

    # Create analytics tables
    op.create_table(
        "analytics_sessions",
        sa.Column("id", sa.Integer, autoincrement=True, nullable=False),
        sa.Column("session_id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.Integer, nullable=True),
        sa.Column("user_agent", sa.Text, nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("country", sa.String(2), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("device", sa.String(50), nullable=True),
        sa.Column("browser", sa.String(50), nullable=True),
        sa.Column("os", sa.String(50), nullable=True),
        sa.Column("referrer", sa.Text, nullable=True),
        sa.Column("landing_page", sa.Text, nullable=True),
        _timestamp("created_at"),
        _timestamp("last_activity"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("session_id"),
    )

    op.create_table(
        "analytics_pageviews",
        sa.Column("id", sa.Integer, autoincrement=True, nullable=False),
        sa.Column("session_id", sa.String(64), nullable=False),
        sa.Column("path", sa.Text, nullable=False),
        sa.Column("title", sa.Text, nullable=True),
        sa.Column("referrer", sa.Text, nullable=True),
        sa.Column("duration", sa.Integer, nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_analytics_pageviews_session_id", "analytics_pageviews", ["session_id"]
    )

    op.create_table(
        "analytics_events",
        sa.Column("id", sa.Integer, autoincrement=True, nullable=False),
        sa.Column("session_id", sa.String(64), nullable=False),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("event_name", sa.String(100), nullable=True),
        sa.Column("element_id", sa.String(100), nullable=True),
        sa.Column("element_class", sa.Text, nullable=True),
        sa.Column("element_text", sa.Text, nullable=True),
        sa.Column("path", sa.Text, nullable=False),
        sa.Column("metadata", sa.Text, nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_analytics_events_session_id", "analytics_events", ["session_id"])

    op.create_table(
        "analytics_heatmap",
        sa.Column("id", sa.Integer, autoincrement=True, nullable=False),
        sa.Column("session_id", sa.String(64), nullable=False),
        sa.Column("path", sa.Text, nullable=False),
        sa.Column("event_type", sa.String(20), nullable=False),
        sa.Column("x", sa.Integer, nullable=True),
        sa.Column("y", sa.Integer, nullable=True),
        sa.Column("scroll_depth", sa.Integer, nullable=True),
        sa.Column("viewport_width", sa.Integer, nullable=True),
        sa.Column("viewport_height", sa.Integer, nullable=True),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_analytics_heatmap_session_id", "analytics_heatmap", ["session_id"])


def downgrade() -> None:
    op.drop_table("analytics_heatmap")
    op.drop_table("analytics_events")
    op.drop_table("analytics_pageviews")
    op.drop_table("analytics_sessions")
    op.drop_table("users")

    op.execute("DROP TYPE IF EXISTS user_role")
