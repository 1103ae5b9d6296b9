"""Append-only version history of master records."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from masterdata.domain.clock import utcnow
from masterdata.domain.errors import NotFoundError
from masterdata.domain.model import diff_data

if TYPE_CHECKING:
    from uuid import UUID

    from masterdata.domain.clock import Clock
    from masterdata.domain.model import FieldChange, MasterRecord, MasterRecordVersion
    from masterdata.domain.ports import ReconciliationRepositories, UnitOfWorkFactory

log = logging.getLogger(__name__)


@dataclass(slots=True)
class VersionComparison:
    version1: MasterRecordVersion | None
    version2: MasterRecordVersion | None
    differences: list[FieldChange]


@dataclass(slots=True)
class VersionHistory:
    """Writes pre-mutation snapshots and reads them back.

    ``snapshot`` only stages the entry in the caller's unit of work, so it
    commits atomically with the mutation it precedes.
    """

    unit_of_work_factory: UnitOfWorkFactory
    clock: Clock = utcnow

    def snapshot(
        self,
        repositories: ReconciliationRepositories,
        record: MasterRecord,
        actor_id: str,
    ) -> MasterRecordVersion:
        entry = record.snapshot(changed_by=actor_id, now=self.clock())
        repositories.versions.add(entry)
        log.debug("Snapshot of record %s at version %s", record.id, entry.version)
        return entry

    def get_version(
        self, organization_id: str, master_record_id: UUID, version: int
    ) -> MasterRecordVersion:
        with self.unit_of_work_factory() as uow:
            entry = uow.repositories.versions.get(organization_id, master_record_id, version)
        if entry is None:
            raise NotFoundError("Version", f"{master_record_id}@{version}")
        return entry

    def list_versions(
        self, organization_id: str, master_record_id: UUID
    ) -> list[MasterRecordVersion]:
        """Return all snapshots of a record, newest first."""

        with self.unit_of_work_factory() as uow:
            return list(uow.repositories.versions.list_for_record(organization_id, master_record_id))

    def compare_versions(
        self,
        organization_id: str,
        master_record_id: UUID,
        version1: int,
        version2: int,
    ) -> VersionComparison:
        with self.unit_of_work_factory() as uow:
            versions = uow.repositories.versions
            first = versions.get(organization_id, master_record_id, version1)
            second = versions.get(organization_id, master_record_id, version2)

        differences: list[FieldChange] = []
        if first is not None and second is not None:
            differences = diff_data(first.data, second.data)
        return VersionComparison(version1=first, version2=second, differences=differences)
