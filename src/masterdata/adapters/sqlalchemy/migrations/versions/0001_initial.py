"""Initial reconciliation schema.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 12:00:00

"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

OPEN_CONFLICT_PREDICATE = "status IN ('pending', 'escalated')"


def upgrade() -> None:
    op.create_table(
        "master_record",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("entity_type", sa.String(), nullable=False),
        sa.Column("external_id", sa.String(), nullable=True),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=8), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("quality_score", sa.Integer(), nullable=False),
        sa.Column("sources", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_master_record"),
        sa.UniqueConstraint(
            "organization_id",
            "entity_type",
            "external_id",
            name="uq_master_record_external_id",
        ),
    )
    op.create_index(
        "ix_master_record_org_status", "master_record", ["organization_id", "status"]
    )

    op.create_table(
        "master_record_version",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("master_record_id", sa.Uuid(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=8), nullable=False),
        sa.Column("quality_score", sa.Integer(), nullable=False),
        sa.Column("changed_by", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["master_record_id"],
            ["master_record.id"],
            name="fk_master_record_version_master_record_id_master_record",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_master_record_version"),
        sa.UniqueConstraint(
            "master_record_id",
            "version",
            name="uq_master_record_version_record_version",
        ),
    )

    op.create_table(
        "data_conflict",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("master_record_id", sa.Uuid(), nullable=False),
        sa.Column("source_id", sa.String(), nullable=False),
        sa.Column("source_name", sa.String(), nullable=False),
        sa.Column("conflict_type", sa.String(length=16), nullable=False),
        sa.Column("field", sa.String(), nullable=True),
        sa.Column("master_value", sa.JSON(none_as_null=True), nullable=True),
        sa.Column("source_value", sa.JSON(none_as_null=True), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=9), nullable=False),
        sa.Column("resolution", sa.String(length=13), nullable=True),
        sa.Column("detected_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolved_by", sa.String(), nullable=True),
        sa.Column("resolution_notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["master_record_id"],
            ["master_record.id"],
            name="fk_data_conflict_master_record_id_master_record",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_data_conflict"),
    )
    op.create_index(
        "uq_data_conflict_open_key",
        "data_conflict",
        ["organization_id", "master_record_id", "source_id", "field"],
        unique=True,
        sqlite_where=sa.text(OPEN_CONFLICT_PREDICATE),
        postgresql_where=sa.text(OPEN_CONFLICT_PREDICATE),
    )
    op.create_index(
        "ix_data_conflict_org_status", "data_conflict", ["organization_id", "status"]
    )

    op.create_table(
        "change_record",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("master_record_id", sa.Uuid(), nullable=False),
        sa.Column("change_type", sa.String(length=6), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("previous_version", sa.Integer(), nullable=True),
        sa.Column("changed_fields", sa.JSON(), nullable=False),
        sa.Column("previous_data", sa.JSON(), nullable=False),
        sa.Column("new_data", sa.JSON(), nullable=False),
        sa.Column("changed_by", sa.String(), nullable=False),
        sa.Column("source", sa.String(), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_change_record"),
    )
    op.create_index(
        "ix_change_record_org_record",
        "change_record",
        ["organization_id", "master_record_id"],
    )

    op.create_table(
        "organization_settings",
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column("reconciliation_enabled", sa.Boolean(), nullable=False),
        sa.Column("conflict_resolution", sa.String(length=15), nullable=False),
        sa.Column("source_priority", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("organization_id", name="pk_organization_settings"),
    )


def downgrade() -> None:
    op.drop_table("organization_settings")
    op.drop_index("ix_change_record_org_record", table_name="change_record")
    op.drop_table("change_record")
    op.drop_index("ix_data_conflict_org_status", table_name="data_conflict")
    op.drop_index("uq_data_conflict_open_key", table_name="data_conflict")
    op.drop_table("data_conflict")
    op.drop_table("master_record_version")
    op.drop_index("ix_master_record_org_status", table_name="master_record")
    op.drop_table("master_record")
