"""Create relationship table

Revision ID: 002
Revises: 001
Create Date: 2026-10-18

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "relationship",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("follower_id", sa.Integer(), nullable=False),
        sa.Column("followed_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["follower_id"], ["user.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["followed_id"], ["user.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("follower_id", "followed_id", name="uq_relationship_follower_followed"),
        sa.CheckConstraint("follower_id <> followed_id", name="ck_relationship_not_self"),
    )
    op.create_index(op.f("ix_relationship_follower_id"), "relationship", ["follower_id"], unique=False)
    op.create_index(op.f("ix_relationship_followed_id"), "relationship", ["followed_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_relationship_followed_id"), table_name="relationship")
    op.drop_index(op.f("ix_relationship_follower_id"), table_name="relationship")
    op.drop_table("relationship")
