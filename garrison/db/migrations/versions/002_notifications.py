"""Create notifications and the recipient view of users.

Revision ID: 002
Revises: 001
Create Date: 2025-06-09

Tables: users, notifications
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create users (contact fields only) and notifications."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("email", sa.String(255)),
        sa.Column("phone", sa.String(32)),
        sa.Column("locale", sa.String(8), nullable=False, server_default="ar"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("NOW()")),
    )

    op.create_table(
        "notifications",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("recipient_id", sa.String(64), nullable=False),
        sa.Column("sender_id", sa.String(64)),
        sa.Column("title_ar", sa.Text, nullable=False),
        sa.Column("title_en", sa.Text, nullable=False),
        sa.Column("message_ar", sa.Text, nullable=False),
        sa.Column("message_en", sa.Text, nullable=False),
        sa.Column("priority", sa.String(16), nullable=False, server_default="MEDIUM"),
        sa.Column("channels", sa.ARRAY(sa.String(16)), nullable=False),
        sa.Column("metadata", JSONB),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("read_at", sa.TIMESTAMP(timezone=True)),
        sa.Column("scheduled_at", sa.TIMESTAMP(timezone=True)),
        sa.Column("expires_at", sa.TIMESTAMP(timezone=True)),
        sa.Column("sent_at", sa.TIMESTAMP(timezone=True)),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )

    op.create_index(
        "idx_notifications_recipient",
        "notifications",
        ["recipient_id", sa.text("created_at DESC")],
    )
    op.create_index(
        "idx_notifications_unread",
        "notifications",
        ["recipient_id"],
        postgresql_where=sa.text("is_read = false"),
    )


def downgrade() -> None:
    """Drop notifications and users."""
    op.drop_table("notifications")
    op.drop_table("users")
