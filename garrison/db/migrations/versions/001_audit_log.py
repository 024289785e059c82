"""Create the hash-chained audit log.

Revision ID: 001
Revises:
Create Date: 2025-06-02

Tables: audit_log
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create audit_log with chain constraints and append-only trigger."""
    op.create_table(
        "audit_log",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("sequence", sa.BigInteger, nullable=False),
        sa.Column("actor_id", sa.String(64), nullable=False),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("entity", sa.String(100), nullable=False),
        sa.Column("entity_id", sa.String(64)),
        sa.Column("ip", sa.String(64)),
        sa.Column("metadata", JSONB),
        sa.Column("ts", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("previous_hash", sa.String(64), nullable=False),
        sa.Column("immutable_hash", sa.String(64), nullable=False),
        sa.CheckConstraint("sequence >= 1", name="ck_audit_log_sequence_positive"),
        sa.UniqueConstraint("sequence", name="uq_audit_log_sequence"),
        sa.UniqueConstraint("previous_hash", name="uq_audit_log_previous_hash"),
        sa.UniqueConstraint("immutable_hash", name="uq_audit_log_immutable_hash"),
    )

    op.create_index("idx_audit_log_ts", "audit_log", [sa.text("ts DESC")])
    op.create_index("idx_audit_log_actor", "audit_log", ["actor_id", sa.text("ts DESC")])
    op.create_index("idx_audit_log_entity", "audit_log", ["entity", "entity_id"])

    # Append-only: reject UPDATE and DELETE at the database level
    op.execute(
        """
        CREATE OR REPLACE FUNCTION audit_log_reject_mutation() RETURNS trigger AS $$
        BEGIN
            RAISE EXCEPTION 'audit_log is append-only';
        END;
        $$ LANGUAGE plpgsql;
        """
    )
    op.execute(
        """
        CREATE TRIGGER audit_log_append_only
        BEFORE UPDATE OR DELETE ON audit_log
        FOR EACH ROW EXECUTE FUNCTION audit_log_reject_mutation();
        """
    )


def downgrade() -> None:
    """Drop audit_log."""
    op.execute("DROP TRIGGER IF EXISTS audit_log_append_only ON audit_log")
    op.execute("DROP FUNCTION IF EXISTS audit_log_reject_mutation()")
    op.drop_table("audit_log")
