"""SQLAlchemy mapping metadata for the masterdata domain model."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from enum import StrEnum
from functools import cache
from typing import Any, cast

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
    text,
)
from sqlalchemy.orm import configure_mappers

from masterdata.domain.model import (
    AutoResolutionPolicy,
    ChangeRecord,
    ChangeType,
    ConflictStatus,
    ConflictType,
    DataConflict,
    MasterRecord,
    MasterRecordVersion,
    OrganizationSettings,
    RecordSource,
    RecordStatus,
    ResolutionStrategy,
    SourceKey,
    SyncStatus,
    stored_value,
)

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]

OPEN_CONFLICT_PREDICATE = "status IN ('pending', 'escalated')"


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class JSONValueType(TypeDecorator[Any]):
    """JSON column holding field values or metadata bags."""

    impl = JSON
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        _ = dialect
        return stored_value(value)


class RecordSourcesType(TypeDecorator[dict[SourceKey, RecordSource]]):
    """Keyed source attributions, stored as a JSON list ordered by key."""

    impl = JSON
    cache_ok = True

    def process_bind_param(
        self, value: Mapping[SourceKey, RecordSource] | None, dialect: Dialect
    ) -> list[dict[str, Any]] | None:
        _ = dialect
        if value is None:
            return []
        return [_source_to_json(value[key]) for key in sorted(value)]

    def process_result_value(
        self, value: Any, dialect: Dialect
    ) -> dict[SourceKey, RecordSource]:
        _ = dialect
        if not isinstance(value, list):
            return {}
        sources: dict[SourceKey, RecordSource] = {}
        for item in cast(list[Any], value):
            if isinstance(item, dict):
                source = _source_from_json(cast(dict[str, Any], item))
                sources[source.key] = source
        return sources


def _source_to_json(source: RecordSource) -> dict[str, Any]:
    return {
        "source_id": source.source_id,
        "source_name": source.source_name,
        "source_type": source.source_type,
        "external_id": source.external_id,
        "last_synced_at": (
            source.last_synced_at.isoformat() if source.last_synced_at is not None else None
        ),
        "sync_status": source.sync_status.value,
        "field_contributions": dict(source.field_contributions),
    }


def _source_from_json(payload: dict[str, Any]) -> RecordSource:
    last_synced_at = payload.get("last_synced_at")
    return RecordSource(
        source_id=str(payload["source_id"]),
        source_name=str(payload.get("source_name", "")),
        source_type=str(payload.get("source_type", "")),
        external_id=str(payload["external_id"]),
        last_synced_at=(
            datetime.fromisoformat(last_synced_at) if isinstance(last_synced_at, str) else None
        ),
        sync_status=SyncStatus(payload.get("sync_status", SyncStatus.PENDING)),
        field_contributions={
            str(key): bool(flag)
            for key, flag in cast(dict[str, Any], payload.get("field_contributions") or {}).items()
        },
    )


def _enum(enum_cls: type[StrEnum]) -> Enum:
    # Persist values rather than member names so raw SQL predicates can use them.
    return Enum(
        enum_cls,
        native_enum=False,
        values_callable=lambda members: [member.value for member in members],
    )


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Core tables -----------------------------------------------------------------

master_record_table = Table(
    "master_record",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("organization_id", String, nullable=False),
    Column("entity_type", String, nullable=False),
    Column("external_id", String, nullable=True),
    Column("data", JSONValueType, nullable=False),
    Column("metadata", JSONValueType, key="_metadata", nullable=False),
    Column("status", _enum(RecordStatus), nullable=False),
    Column("version", Integer, nullable=False),
    Column("quality_score", Integer, nullable=False),
    Column("sources", RecordSourcesType, key="_sources", nullable=False),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
    Column("last_synced_at", UTCDateTime(), nullable=True),
    UniqueConstraint(
        "organization_id",
        "entity_type",
        "external_id",
        name="uq_master_record_external_id",
    ),
    Index("ix_master_record_org_status", "organization_id", "status"),
)

master_record_version_table = Table(
    "master_record_version",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "master_record_id",
        UUIDColumnType,
        ForeignKey("master_record.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("organization_id", String, nullable=False),
    Column("version", Integer, nullable=False),
    Column("data", JSONValueType, nullable=False),
    Column("metadata", JSONValueType, key="_metadata", nullable=False),
    Column("status", _enum(RecordStatus), nullable=False),
    Column("quality_score", Integer, nullable=False),
    Column("changed_by", String, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    UniqueConstraint(
        "master_record_id",
        "version",
        name="uq_master_record_version_record_version",
    ),
)

data_conflict_table = Table(
    "data_conflict",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("organization_id", String, nullable=False),
    Column(
        "master_record_id",
        UUIDColumnType,
        ForeignKey("master_record.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("source_id", String, nullable=False),
    Column("source_name", String, nullable=False),
    Column("conflict_type", _enum(ConflictType), nullable=False),
    Column("field", String, nullable=True),
    Column("master_value", JSONValueType(none_as_null=True), nullable=True),
    Column("source_value", JSONValueType(none_as_null=True), nullable=True),
    Column("metadata", JSONValueType, key="_metadata", nullable=False),
    Column("status", _enum(ConflictStatus), nullable=False),
    Column("resolution", _enum(ResolutionStrategy), nullable=True),
    Column("detected_at", UTCDateTime(), nullable=False),
    Column("resolved_at", UTCDateTime(), nullable=True),
    Column("resolved_by", String, nullable=True),
    Column("resolution_notes", Text, nullable=True),
    Index(
        "uq_data_conflict_open_key",
        "organization_id",
        "master_record_id",
        "source_id",
        "field",
        unique=True,
        sqlite_where=text(OPEN_CONFLICT_PREDICATE),
        postgresql_where=text(OPEN_CONFLICT_PREDICATE),
    ),
    Index("ix_data_conflict_org_status", "organization_id", "status"),
)

change_record_table = Table(
    "change_record",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("organization_id", String, nullable=False),
    Column("master_record_id", UUIDColumnType, nullable=False),
    Column("change_type", _enum(ChangeType), nullable=False),
    Column("version", Integer, nullable=False),
    Column("previous_version", Integer, nullable=True),
    Column("changed_fields", JSONValueType, nullable=False),
    Column("previous_data", JSONValueType, nullable=False),
    Column("new_data", JSONValueType, nullable=False),
    Column("changed_by", String, nullable=False),
    Column("source", String, nullable=True),
    Column("reason", Text, nullable=True),
    Column("metadata", JSONValueType, key="_metadata", nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Index("ix_change_record_org_record", "organization_id", "master_record_id"),
    Index("ix_change_record_org_created", "organization_id", "created_at"),
)

organization_settings_table = Table(
    "organization_settings",
    mapper_registry.metadata,
    Column("organization_id", String, primary_key=True),
    Column("reconciliation_enabled", Boolean, nullable=False),
    Column("conflict_resolution", _enum(AutoResolutionPolicy), nullable=False),
    Column("source_priority", JSONValueType, nullable=False),
)


@cache
def start_mappers() -> orm.registry:
    """Map domain dataclasses onto their tables (idempotent)."""

    log.debug("Starting mappers")

    mapper_registry.map_imperatively(
        MasterRecord,
        master_record_table,
        version_id_col=master_record_table.c.version,
        version_id_generator=False,
    )

    mapper_registry.map_imperatively(
        MasterRecordVersion,
        master_record_version_table,
    )

    mapper_registry.map_imperatively(
        DataConflict,
        data_conflict_table,
    )

    mapper_registry.map_imperatively(
        ChangeRecord,
        change_record_table,
    )

    mapper_registry.map_imperatively(
        OrganizationSettings,
        organization_settings_table,
    )

    configure_mappers()
    return mapper_registry

