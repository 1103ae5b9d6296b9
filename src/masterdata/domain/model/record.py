"""Master record aggregate, its source attributions and version snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from masterdata.domain.model.enums import RecordStatus, SyncStatus
from masterdata.domain.model.quality import score
from masterdata.domain.model.values import stored_data

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from masterdata.domain.model.values import FieldValue, RecordData

type SourceKey = tuple[str, str]
"""``(source_id, external_id)`` identity of a source attribution."""


def new_id() -> UUID:
    return uuid4()


@dataclass(frozen=True, kw_only=True)
class RecordSource:
    """Attribution of a master record to one record in an external system."""

    source_id: str
    source_name: str
    source_type: str
    external_id: str
    last_synced_at: datetime | None = None
    sync_status: SyncStatus = SyncStatus.PENDING
    field_contributions: Mapping[str, bool] = field(default_factory=dict[str, bool])

    @property
    def key(self) -> SourceKey:
        return (self.source_id, self.external_id)


@dataclass(eq=False, kw_only=True)
class MasterRecord:
    """Canonical, versioned representation of one entity within an organization.

    ``data`` is only ever replaced, never mutated in place, so the persistence
    layer can detect changes by identity. Values are kept in their stored form,
    so a ``date`` reads back as the same ISO string it was saved as.
    """

    organization_id: str
    entity_type: str
    data: RecordData = field(default_factory=dict[str, "FieldValue"])
    external_id: str | None = None
    id: UUID = field(default_factory=new_id)
    status: RecordStatus = RecordStatus.ACTIVE
    version: int = 1
    quality_score: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_synced_at: datetime | None = None

    _metadata: dict[str, object] = field(default_factory=dict[str, object], repr=False)
    _sources: dict[SourceKey, RecordSource] = field(
        default_factory=dict[SourceKey, RecordSource], repr=False
    )

    def __post_init__(self) -> None:
        self.data = stored_data(self.data)
        self.quality_score = score(self.entity_type, self.data)

    # metadata ---------------------------------------------------------------

    @property
    def metadata(self) -> Mapping[str, object]:
        return self._metadata

    @property
    def tags(self) -> tuple[str, ...]:
        raw = self._metadata.get("tags")
        if not isinstance(raw, list | tuple):
            return ()
        return tuple(str(tag) for tag in raw)  # pyright: ignore[reportUnknownVariableType, reportUnknownArgumentType]

    @property
    def is_deleted(self) -> bool:
        return self.status == RecordStatus.DELETED

    # sources ----------------------------------------------------------------

    @property
    def sources(self) -> tuple[RecordSource, ...]:
        return tuple(self._sources.values())

    def get_source(self, source_id: str, external_id: str) -> RecordSource | None:
        return self._sources.get((source_id, external_id))

    def upsert_source(self, source: RecordSource, *, now: datetime) -> None:
        """Add ``source`` or replace the attribution sharing its key."""

        self._sources = {**self._sources, source.key: source}
        self.last_synced_at = now
        self.updated_at = now

    def remove_source(self, source_id: str, external_id: str, *, now: datetime) -> bool:
        key = (source_id, external_id)
        if key not in self._sources:
            return False
        self._sources = {k: v for k, v in self._sources.items() if k != key}
        self.updated_at = now
        return True

    def mark_source_synced(self, source_id: str, *, now: datetime) -> bool:
        """Flag every attribution of ``source_id`` as synced; ``False`` if none match."""

        if not any(key[0] == source_id for key in self._sources):
            return False
        self._sources = {
            key: (
                replace(source, sync_status=SyncStatus.SYNCED, last_synced_at=now)
                if key[0] == source_id
                else source
            )
            for key, source in self._sources.items()
        }
        self.last_synced_at = now
        return True

    # mutations --------------------------------------------------------------

    def snapshot(self, *, changed_by: str, now: datetime) -> MasterRecordVersion:
        """Capture the current state before a mutation is applied."""

        return MasterRecordVersion(
            master_record_id=self.id,
            organization_id=self.organization_id,
            version=self.version,
            data=dict(self.data),
            _metadata=dict(self._metadata),
            status=self.status,
            quality_score=self.quality_score,
            changed_by=changed_by,
            created_at=now,
        )

    def apply_update(
        self,
        *,
        actor_id: str,
        now: datetime,
        data: Mapping[str, FieldValue] | None = None,
        metadata: Mapping[str, object] | None = None,
        status: RecordStatus | None = None,
    ) -> None:
        """Shallow-merge ``data``/``metadata`` and advance the version by one.

        Nested values in ``data`` are replaced wholesale.
        """

        if data is not None:
            self.data = {**self.data, **stored_data(data)}
        self._metadata = {**self._metadata, **(metadata or {}), "last_modified_by": actor_id}
        if status is not None:
            self.status = status
        self.quality_score = score(self.entity_type, self.data)
        self.version += 1
        self.updated_at = now

    def mark_deleted(self, *, actor_id: str, now: datetime) -> None:
        self._metadata = {
            **self._metadata,
            "last_modified_by": actor_id,
            "deleted_at": now.isoformat(),
        }
        self.status = RecordStatus.DELETED
        self.version += 1
        self.updated_at = now

    def restore_from(self, snapshot: MasterRecordVersion, *, actor_id: str, now: datetime) -> None:
        self.data = stored_data(snapshot.data)
        self._metadata = {
            **snapshot.metadata,
            "last_modified_by": actor_id,
            "restored_at": now.isoformat(),
            "restored_from_version": snapshot.version,
        }
        self.quality_score = score(self.entity_type, self.data)
        self.version += 1
        self.updated_at = now


@dataclass(eq=False, kw_only=True)
class MasterRecordVersion:
    """Immutable snapshot of a master record taken before a mutation."""

    master_record_id: UUID
    organization_id: str
    version: int
    data: RecordData
    status: RecordStatus
    quality_score: int
    changed_by: str
    created_at: datetime
    id: UUID = field(default_factory=new_id)
    _metadata: dict[str, object] = field(default_factory=dict[str, object], repr=False)

    @property
    def metadata(self) -> Mapping[str, object]:
        return self._metadata
