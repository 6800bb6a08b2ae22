"""add_file_table

Revision ID: 3f9c2a71b8d4
Revises:
Create Date: 2026-03-02 10:41:07.118204

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f9c2a71b8d4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "file",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("size", sa.BigInteger(), nullable=False),
        sa.Column("content_type", sa.String(length=255), nullable=False),
        sa.Column("storage_key", sa.String(length=512), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("hash", sa.String(length=64), nullable=True),
        sa.Column("upload_id", sa.String(length=255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("storage_key", name="uq_file_storage_key"),
        sa.CheckConstraint(
            "status IN ('pending', 'uploading', 'completed', 'failed')",
            name="ck_file_status",
        ),
        sa.CheckConstraint("size >= 0", name="ck_file_size_non_negative"),
    )
    op.create_index("ix_file_status", "file", ["status"])
    op.create_index("ix_file_deleted_at", "file", ["deleted_at"])
    op.create_index("ix_file_status_created_at", "file", ["status", "created_at"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_file_status_created_at", table_name="file")
    op.drop_index("ix_file_deleted_at", table_name="file")
    op.drop_index("ix_file_status", table_name="file")
    op.drop_table("file")
