"""create registry_entries

Revision ID: 3b7e91c4d2a0
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b7e91c4d2a0"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "registry_entries",
        sa.Column("kind", sa.String(length=32), nullable=False),
        sa.Column("ident", sa.Text(), nullable=False),
        sa.Column("value", postgresql.JSONB(), nullable=False),
        sa.PrimaryKeyConstraint("kind", "ident"),
    )
    op.create_index("ix_registry_entries_kind", "registry_entries", ["kind"])


def downgrade() -> None:
    op.drop_index("ix_registry_entries_kind", table_name="registry_entries")
    op.drop_table("registry_entries")
