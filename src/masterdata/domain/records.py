"""Master record store: canonical entity state with versioning and attribution."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from masterdata.domain.changes import notify_change
from masterdata.domain.clock import utcnow
from masterdata.domain.errors import (
    DuplicateKeyError,
    FeatureDisabledError,
    InvalidInputError,
    NotFoundError,
    VersionConflictError,
)
from masterdata.domain.model import ChangeType, MasterRecord, RecordStatus
from masterdata.domain.queries import RecordQuery

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from uuid import UUID

    from masterdata.domain.clock import Clock
    from masterdata.domain.history import VersionHistory
    from masterdata.domain.model import FieldValue, RecordSource
    from masterdata.domain.ports import (
        ChangeTracker,
        OrganizationSettingsProvider,
        ReconciliationRepositories,
        ReconciliationUnitOfWork,
        UnitOfWorkFactory,
    )
    from masterdata.domain.queries import RecordStats

log = logging.getLogger(__name__)

DEFAULT_SOURCE_PAGE_SIZE = 100


@dataclass(slots=True, kw_only=True)
class RecordInput:
    """Payload for creating a master record.

    ``metadata`` may carry ``source_system``, ``tags`` and ``custom``.
    """

    entity_type: str
    data: Mapping[str, FieldValue] = field(default_factory=dict[str, "FieldValue"])
    external_id: str | None = None
    metadata: Mapping[str, object] | None = None
    sources: Sequence[RecordSource] = ()


@dataclass(slots=True, kw_only=True)
class RecordUpdate:
    """Patch for a master record.

    ``data`` and ``metadata`` are shallow-merged over the current values.
    ``expected_version`` enables an optimistic concurrency check.
    """

    data: Mapping[str, FieldValue] | None = None
    metadata: Mapping[str, object] | None = None
    status: RecordStatus | None = None
    expected_version: int | None = None


@dataclass(slots=True)
class MasterRecordStore:
    unit_of_work_factory: UnitOfWorkFactory
    settings: OrganizationSettingsProvider
    history: VersionHistory
    change_tracker: ChangeTracker | None = None
    clock: Clock = utcnow

    # create / read ----------------------------------------------------------

    def create(self, organization_id: str, record_input: RecordInput, actor_id: str) -> MasterRecord:
        if not organization_id or not organization_id.strip():
            raise InvalidInputError("organization_id is required")
        if not self.settings.settings_for(organization_id).reconciliation_enabled:
            raise FeatureDisabledError(organization_id)
        if not record_input.entity_type or not record_input.entity_type.strip():
            raise InvalidInputError("entity_type is required")

        now = self.clock()
        extra = dict(record_input.metadata or {})
        record = MasterRecord(
            organization_id=organization_id,
            entity_type=record_input.entity_type,
            external_id=record_input.external_id,
            data=dict(record_input.data),
            created_at=now,
            updated_at=now,
            _metadata={
                "created_by": actor_id,
                "last_modified_by": actor_id,
                "source_system": extra.get("source_system"),
                "tags": list(extra.get("tags") or []),  # pyright: ignore[reportArgumentType]
                "custom": dict(extra.get("custom") or {}),  # pyright: ignore[reportArgumentType]
            },
        )
        for source in record_input.sources:
            record.upsert_source(source, now=now)
        record.updated_at = now

        try:
            with self.unit_of_work_factory() as uow:
                records = uow.repositories.records
                if record.external_id is not None and records.get_by_external_id(
                    organization_id, record.entity_type, record.external_id
                ):
                    raise InvalidInputError(
                        f"external_id {record.external_id!r} already used for "
                        f"{record.entity_type} records"
                    )
                records.add(record)
                uow.commit()
        except DuplicateKeyError as exc:
            raise InvalidInputError(str(exc)) from exc

        log.info(
            "Created %s master record %s (quality=%s)",
            record.entity_type,
            record.id,
            record.quality_score,
        )
        notify_change(
            self.change_tracker,
            organization_id,
            record.id,
            ChangeType.CREATE,
            None,
            record.data,
            actor_id,
        )
        return record

    def get_by_id(self, organization_id: str, record_id: UUID) -> MasterRecord | None:
        with self.unit_of_work_factory() as uow:
            return uow.repositories.records.get(organization_id, record_id)

    def require(self, organization_id: str, record_id: UUID) -> MasterRecord:
        record = self.get_by_id(organization_id, record_id)
        if record is None:
            raise NotFoundError("Master record", record_id)
        return record

    def get_by_external_id(
        self, organization_id: str, entity_type: str, external_id: str
    ) -> MasterRecord | None:
        with self.unit_of_work_factory() as uow:
            return uow.repositories.records.get_by_external_id(
                organization_id, entity_type, external_id
            )

    def query(
        self, organization_id: str, criteria: RecordQuery | None = None
    ) -> tuple[list[MasterRecord], int]:
        with self.unit_of_work_factory() as uow:
            records, total = uow.repositories.records.query(
                organization_id, criteria or RecordQuery()
            )
            return list(records), total

    def records_by_source(
        self,
        organization_id: str,
        source_id: str,
        *,
        limit: int = DEFAULT_SOURCE_PAGE_SIZE,
        offset: int = 0,
    ) -> list[MasterRecord]:
        records, _total = self.query(
            organization_id, RecordQuery(source_id=source_id, limit=limit, offset=offset)
        )
        return records

    def stats(self, organization_id: str) -> RecordStats:
        with self.unit_of_work_factory() as uow:
            return uow.repositories.records.stats(organization_id)

    # versioned mutations ----------------------------------------------------

    def update(
        self,
        organization_id: str,
        record_id: UUID,
        patch: RecordUpdate,
        actor_id: str,
    ) -> MasterRecord:
        """Apply ``patch``, snapshotting the pre-update state in the same transaction."""

        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            record = _require(repositories, organization_id, record_id)
            if patch.expected_version is not None and patch.expected_version != record.version:
                raise VersionConflictError(
                    f"Record {record_id} is at version {record.version}, "
                    f"expected {patch.expected_version}"
                )
            self.history.snapshot(repositories, record, actor_id)
            record.apply_update(
                actor_id=actor_id,
                now=self.clock(),
                data=patch.data,
                metadata=patch.metadata,
                status=patch.status,
            )
            _commit_versioned(uow, record_id)

        log.debug("Updated record %s to version %s", record.id, record.version)
        return record

    def soft_delete(self, organization_id: str, record_id: UUID, actor_id: str) -> MasterRecord:
        """Mark a record deleted; deleting an already deleted record changes nothing."""

        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            record = _require(repositories, organization_id, record_id)
            if record.is_deleted:
                return record
            self.history.snapshot(repositories, record, actor_id)
            record.mark_deleted(actor_id=actor_id, now=self.clock())
            _commit_versioned(uow, record_id)

        log.info("Soft-deleted record %s", record.id)
        notify_change(
            self.change_tracker,
            organization_id,
            record.id,
            ChangeType.DELETE,
            record.data,
            record.data,
            actor_id,
        )
        return record

    def restore_version(
        self,
        organization_id: str,
        record_id: UUID,
        target_version: int,
        actor_id: str,
    ) -> MasterRecord:
        """Bring back the data and metadata of an earlier snapshot as a new version."""

        with self.unit_of_work_factory() as uow:
            repositories = uow.repositories
            record = _require(repositories, organization_id, record_id)
            target = repositories.versions.get(organization_id, record_id, target_version)
            if target is None:
                raise NotFoundError("Version", f"{record_id}@{target_version}")
            previous_data = dict(record.data)
            self.history.snapshot(repositories, record, actor_id)
            record.restore_from(target, actor_id=actor_id, now=self.clock())
            _commit_versioned(uow, record_id)

        notify_change(
            self.change_tracker,
            organization_id,
            record.id,
            ChangeType.UPDATE,
            previous_data,
            record.data,
            actor_id,
            reason=f"Restored to version {target_version}",
            metadata={"restored_from_version": target_version},
        )
        return record

    # source attribution -----------------------------------------------------

    def add_source(
        self,
        organization_id: str,
        record_id: UUID,
        source: RecordSource,
        actor_id: str,
    ) -> MasterRecord:
        with self.unit_of_work_factory() as uow:
            record = _require(uow.repositories, organization_id, record_id)
            record.upsert_source(source, now=self.clock())
            uow.commit()

        log.info(
            "Attached source %s/%s to record %s (by %s)",
            source.source_id,
            source.external_id,
            record_id,
            actor_id,
        )
        return record

    def remove_source(
        self,
        organization_id: str,
        record_id: UUID,
        source_id: str,
        external_id: str,
    ) -> MasterRecord:
        with self.unit_of_work_factory() as uow:
            record = _require(uow.repositories, organization_id, record_id)
            if record.remove_source(source_id, external_id, now=self.clock()):
                uow.commit()
        return record

    def mark_synced(self, organization_id: str, record_id: UUID, source_id: str) -> None:
        with self.unit_of_work_factory() as uow:
            record = _require(uow.repositories, organization_id, record_id)
            if record.mark_source_synced(source_id, now=self.clock()):
                uow.commit()


def _require(
    repositories: ReconciliationRepositories, organization_id: str, record_id: UUID
) -> MasterRecord:
    record = repositories.records.get(organization_id, record_id)
    if record is None:
        raise NotFoundError("Master record", record_id)
    return record


def _commit_versioned(uow: ReconciliationUnitOfWork, record_id: UUID) -> None:
    """Commit a snapshot plus version bump; a clashing snapshot means a lost race."""

    try:
        uow.commit()
    except DuplicateKeyError as exc:
        raise VersionConflictError(f"Record {record_id} was modified concurrently") from exc
