"""Create yellow_books table

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the `yellow_books` table for business directory entries.
How:   Portable column types (Integer identity key, TEXT, timezone-aware
       timestamps) so the same revision runs on PostgreSQL and SQLite.

Rollback: downgrade() drops the table (all entries lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the yellow_books table and its created_at index."""
    op.create_table(
        "yellow_books",
        sa.Column(
            "id",
            sa.Integer(),
            autoincrement=True,
            nullable=False,
            comment="System-assigned identifier, immutable",
        ),
        sa.Column("business_name", sa.Text(), nullable=False),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("phone_number", sa.Text(), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),

        # NULL = absent, '' = present but empty
        sa.Column(
            "description",
            sa.Text(),
            nullable=True,
            comment="NULL = absent, '' = present but empty",
        ),
        sa.Column(
            "website",
            sa.Text(),
            nullable=True,
            comment="Absolute URL, '' or NULL",
        ),

        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            comment="When this entry was created (UTC)",
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            comment="Last mutation time (UTC), >= created_at",
        ),

        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index(
        "idx_yellow_books_created_at",
        "yellow_books",
        ["created_at"],
    )


def downgrade() -> None:
    """Drop the yellow_books table (destructive)."""
    op.drop_index("idx_yellow_books_created_at", table_name="yellow_books")
    op.drop_table("yellow_books")
