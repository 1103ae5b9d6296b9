"""Index change records by organization and creation time.

Revision ID: 0002_change_record_created_at
Revises: 0001_initial
Create Date: 2026-10-19 15:30:00

"""

from __future__ import annotations

from collections.abc import Sequence

from alembic import op

revision: str = "0002_change_record_created_at"
down_revision: str | None = "0001_initial"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_index(
        "ix_change_record_org_created",
        "change_record",
        ["organization_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_change_record_org_created", table_name="change_record")
