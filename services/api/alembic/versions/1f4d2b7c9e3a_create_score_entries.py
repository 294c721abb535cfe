"""create_score_entries

Revision ID: 1f4d2b7c9e3a
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "1f4d2b7c9e3a"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "score_entries",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("cpf", sa.Text(), nullable=False),
        sa.Column("score", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )

    op.create_index(op.f("ix_score_entries_score"), "score_entries", ["score"], unique=False)
    op.create_index(op.f("ix_score_entries_deleted_at"), "score_entries", ["deleted_at"], unique=False)
    # One live row per CPF; soft-deleted rows are excluded.
    op.create_index(
        "uq_score_entries_cpf_active",
        "score_entries",
        ["cpf"],
        unique=True,
        postgresql_where=sa.text("deleted_at IS NULL"),
        sqlite_where=sa.text("deleted_at IS NULL"),
    )


def downgrade() -> None:
    op.drop_index("uq_score_entries_cpf_active", table_name="score_entries")
    op.drop_index(op.f("ix_score_entries_deleted_at"), table_name="score_entries")
    op.drop_index(op.f("ix_score_entries_score"), table_name="score_entries")
    op.drop_table("score_entries")
