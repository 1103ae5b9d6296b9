"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from masterdata.adapters.payloads import read_detection_batch, read_record_inputs
from masterdata.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyReconciliationUnitOfWork,
    is_started,
    startup,
)
from masterdata.config import get_reconciliation_config
from masterdata.domain.changes import RepositoryChangeTracker
from masterdata.domain.clock import utcnow
from masterdata.domain.errors import ReconciliationError
from masterdata.domain.history import VersionHistory
from masterdata.domain.model import OrganizationSettings
from masterdata.domain.queries import ConflictQuery
from masterdata.domain.reconciliation import (
    AutoResolutionRunner,
    ConflictDetector,
    ConflictStore,
    ResolutionEngine,
)
from masterdata.domain.records import MasterRecordStore
from masterdata.domain.settings import RepositoryOrganizationSettings, StaticOrganizationSettings

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from datetime import datetime
    from pathlib import Path
    from uuid import UUID

    from masterdata.config import ReconciliationConfig
    from masterdata.domain.clock import Clock
    from masterdata.domain.model import (
        AutoResolutionPolicy,
        ConflictStatus,
        DataConflict,
        MasterRecord,
        ResolutionStrategy,
    )
    from masterdata.domain.ports import UnitOfWorkFactory
    from masterdata.domain.queries import ChangeStats, ConflictStats, RecordStats
    from masterdata.domain.reconciliation import (
        BatchDetectionResult,
        BulkResolutionResult,
        ResolutionOptions,
        ResolutionResult,
    )

log = getLogger(__name__)


@dataclass(slots=True)
class ReconciliationServices:
    """The reconciliation services wired against one unit-of-work factory."""

    settings: RepositoryOrganizationSettings
    records: MasterRecordStore
    history: VersionHistory
    changes: RepositoryChangeTracker
    conflicts: ConflictStore
    detector: ConflictDetector
    engine: ResolutionEngine
    auto_resolver: AutoResolutionRunner
    query_limit: int


@dataclass(slots=True)
class OrganizationStats:
    records: RecordStats
    conflicts: ConflictStats


def build_services(
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    config: ReconciliationConfig | None = None,
    clock: Clock = utcnow,
) -> ReconciliationServices:
    """Wire every service against ``unit_of_work_factory``.

    Organizations without stored settings fall back to ``config``.
    """

    effective_config = config or get_reconciliation_config()
    settings = RepositoryOrganizationSettings(
        unit_of_work_factory=unit_of_work_factory,
        fallback=StaticOrganizationSettings(
            reconciliation_enabled=effective_config.reconciliation_enabled,
            conflict_resolution=effective_config.conflict_resolution,
            source_priority=effective_config.source_priority,
        ),
    )
    history = VersionHistory(unit_of_work_factory, clock)
    changes = RepositoryChangeTracker(unit_of_work_factory, clock)
    records = MasterRecordStore(unit_of_work_factory, settings, history, changes, clock)
    conflicts = ConflictStore(unit_of_work_factory, clock)
    engine = ResolutionEngine(conflicts, records, changes)
    return ReconciliationServices(
        settings=settings,
        records=records,
        history=history,
        changes=changes,
        conflicts=conflicts,
        detector=ConflictDetector(unit_of_work_factory, conflicts),
        engine=engine,
        auto_resolver=AutoResolutionRunner(unit_of_work_factory, settings, engine),
        query_limit=effective_config.query_limit,
    )


def default_services() -> ReconciliationServices:
    """Start the SQLAlchemy adapter if needed and wire services against it."""

    if not is_started():
        startup()
    return build_services(unit_of_work_factory=SqlAlchemyReconciliationUnitOfWork)


def configure_organization(
    organization_id: str,
    *,
    enabled: bool,
    policy: AutoResolutionPolicy,
    source_priority: Sequence[str] = (),
    services: ReconciliationServices | None = None,
) -> OrganizationSettings:
    effective = services or default_services()
    stored = effective.settings.save(
        OrganizationSettings(
            organization_id=organization_id,
            reconciliation_enabled=enabled,
            conflict_resolution=policy,
            source_priority=list(source_priority),
        )
    )
    log.info(
        "Configured %s: enabled=%s, policy=%s, priority=%s",
        organization_id,
        stored.reconciliation_enabled,
        stored.conflict_resolution,
        ",".join(stored.source_priority) or "-",
    )
    return stored


def import_records(
    organization_id: str,
    path: Path,
    *,
    actor_id: str,
    services: ReconciliationServices | None = None,
) -> list[MasterRecord]:
    """Create a master record for every entry of a record import file.

    Entries that fail are logged and skipped.
    """

    effective = services or default_services()
    created: list[MasterRecord] = []
    for record_input in read_record_inputs(path):
        try:
            created.append(effective.records.create(organization_id, record_input, actor_id))
        except ReconciliationError as exc:
            log.warning(
                "Skipped %s record %r: %s",
                record_input.entity_type,
                record_input.external_id,
                exc,
            )
    log.info("Imported %d record(s) into %s", len(created), organization_id)
    return created


def detect_conflicts_from_file(
    organization_id: str,
    path: Path,
    *,
    services: ReconciliationServices | None = None,
) -> BatchDetectionResult:
    effective = services or default_services()
    result = effective.detector.detect_batch(organization_id, read_detection_batch(path))
    log.info(
        "Detection finished for %s: conflicts=%d, failed=%d",
        organization_id,
        len(result.conflicts),
        result.failed,
    )
    return result


def resolve_conflict(
    organization_id: str,
    conflict_id: UUID,
    strategy: ResolutionStrategy,
    *,
    actor_id: str,
    options: ResolutionOptions | None = None,
    services: ReconciliationServices | None = None,
) -> ResolutionResult:
    effective = services or default_services()
    return effective.engine.resolve(organization_id, conflict_id, strategy, actor_id, options)


def auto_resolve_conflicts(
    organization_id: str,
    conflict_ids: Collection[UUID] | None = None,
    *,
    services: ReconciliationServices | None = None,
) -> BulkResolutionResult:
    effective = services or default_services()
    return effective.auto_resolver.auto_resolve(organization_id, conflict_ids)


def list_conflicts(
    organization_id: str,
    *,
    status: ConflictStatus | None = None,
    limit: int | None = None,
    services: ReconciliationServices | None = None,
) -> tuple[list[DataConflict], int]:
    effective = services or default_services()
    return effective.conflicts.query(
        organization_id,
        ConflictQuery(status=status, limit=limit or effective.query_limit),
    )


def organization_stats(
    organization_id: str, *, services: ReconciliationServices | None = None
) -> OrganizationStats:
    effective = services or default_services()
    return OrganizationStats(
        records=effective.records.stats(organization_id),
        conflicts=effective.conflicts.stats(organization_id),
    )


def ignore_conflict(
    organization_id: str,
    conflict_id: UUID,
    *,
    actor_id: str,
    reason: str | None = None,
    services: ReconciliationServices | None = None,
) -> DataConflict:
    effective = services or default_services()
    return effective.conflicts.ignore_conflict(organization_id, conflict_id, actor_id, reason)


def escalate_conflict(
    organization_id: str,
    conflict_id: UUID,
    *,
    actor_id: str,
    reason: str | None = None,
    services: ReconciliationServices | None = None,
) -> DataConflict:
    effective = services or default_services()
    return effective.conflicts.escalate_conflict(organization_id, conflict_id, actor_id, reason)


def change_stats(
    organization_id: str,
    *,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    services: ReconciliationServices | None = None,
) -> ChangeStats:
    effective = services or default_services()
    return effective.changes.stats(organization_id, from_date=from_date, to_date=to_date)
