"""Ports for persisting reconciliation aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from masterdata.domain.model import (
    ChangeRecord,
    DataConflict,
    MasterRecord,
    MasterRecordVersion,
    OrganizationSettings,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from datetime import datetime
    from uuid import UUID

    from masterdata.domain.model import ConflictKey
    from masterdata.domain.queries import (
        ChangeQuery,
        ChangeStats,
        ConflictQuery,
        ConflictStats,
        RecordQuery,
        RecordStats,
    )


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class MasterRecordRepository(Repository[MasterRecord], Protocol):
    def get(self, organization_id: str, record_id: UUID) -> MasterRecord | None: ...

    def get_by_external_id(
        self, organization_id: str, entity_type: str, external_id: str
    ) -> MasterRecord | None: ...

    def query(
        self, organization_id: str, criteria: RecordQuery
    ) -> tuple[Sequence[MasterRecord], int]: ...

    def stats(self, organization_id: str) -> RecordStats: ...


@runtime_checkable
class VersionHistoryRepository(Repository[MasterRecordVersion], Protocol):
    """Append-only store of pre-mutation snapshots."""

    def get(
        self, organization_id: str, master_record_id: UUID, version: int
    ) -> MasterRecordVersion | None: ...

    def list_for_record(
        self, organization_id: str, master_record_id: UUID
    ) -> Sequence[MasterRecordVersion]: ...


@runtime_checkable
class ConflictRepository(Repository[DataConflict], Protocol):
    def get(self, organization_id: str, conflict_id: UUID) -> DataConflict | None: ...

    def find_open(self, organization_id: str, key: ConflictKey) -> DataConflict | None: ...

    def list_pending(
        self, organization_id: str, conflict_ids: Collection[UUID] | None = None
    ) -> Sequence[DataConflict]: ...

    def query(
        self, organization_id: str, criteria: ConflictQuery
    ) -> tuple[Sequence[DataConflict], int]: ...

    def stats(self, organization_id: str) -> ConflictStats: ...


@runtime_checkable
class ChangeRecordRepository(Repository[ChangeRecord], Protocol):
    def history(
        self, organization_id: str, master_record_id: UUID, *, limit: int, offset: int
    ) -> Sequence[ChangeRecord]: ...

    def query(
        self, organization_id: str, criteria: ChangeQuery
    ) -> tuple[Sequence[ChangeRecord], int]: ...

    def stats(
        self,
        organization_id: str,
        *,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> ChangeStats: ...


@runtime_checkable
class OrganizationSettingsRepository(Repository[OrganizationSettings], Protocol):
    def get(self, organization_id: str) -> OrganizationSettings | None: ...
