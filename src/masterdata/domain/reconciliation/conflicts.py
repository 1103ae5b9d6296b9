"""Conflict store: deduplicated creation, lookup and lifecycle transitions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from masterdata.domain.clock import utcnow
from masterdata.domain.errors import DuplicateKeyError, NotFoundError
from masterdata.domain.model import DataConflict
from masterdata.domain.queries import ConflictQuery

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime
    from uuid import UUID

    from masterdata.domain.clock import Clock
    from masterdata.domain.model import ResolutionStrategy
    from masterdata.domain.ports import ConflictRepository, UnitOfWorkFactory
    from masterdata.domain.queries import ConflictStats

    from .contracts import ConflictInput

log = logging.getLogger(__name__)


@dataclass(slots=True)
class ConflictStore:
    """Persist conflicts so that each dedup key has at most one open conflict.

    Concurrent detections of the same key race on a partial unique index. The
    loser sees ``DuplicateKeyError`` and retries once, which then finds and
    refreshes the winner's row.
    """

    unit_of_work_factory: UnitOfWorkFactory
    clock: Clock = utcnow

    def create(self, organization_id: str, conflict_input: ConflictInput) -> DataConflict:
        try:
            return self._create_or_refresh(organization_id, conflict_input)
        except DuplicateKeyError:
            log.debug(
                "Lost insert race for conflict on %s/%s/%s, refreshing",
                conflict_input.master_record_id,
                conflict_input.source_id,
                conflict_input.field,
            )
            return self._create_or_refresh(organization_id, conflict_input)

    def _create_or_refresh(
        self, organization_id: str, conflict_input: ConflictInput
    ) -> DataConflict:
        now = self.clock()
        key = (conflict_input.master_record_id, conflict_input.source_id, conflict_input.field)
        with self.unit_of_work_factory() as uow:
            conflicts = uow.repositories.conflicts
            existing = conflicts.find_open(organization_id, key)
            if existing is not None:
                existing.refresh(conflict_input.source_value, now=now)
                uow.commit()
                return existing

            conflict = DataConflict(
                organization_id=organization_id,
                master_record_id=conflict_input.master_record_id,
                source_id=conflict_input.source_id,
                source_name=conflict_input.source_name,
                conflict_type=conflict_input.conflict_type,
                field=conflict_input.field,
                master_value=conflict_input.master_value,
                source_value=conflict_input.source_value,
                detected_at=now,
                _metadata=dict(conflict_input.metadata or {}),
            )
            conflicts.add(conflict)
            uow.commit()
        log.info(
            "Recorded %s conflict %s on field %r from source %s",
            conflict.conflict_type,
            conflict.id,
            conflict.field,
            conflict.source_id,
        )
        return conflict

    def get_by_id(self, organization_id: str, conflict_id: UUID) -> DataConflict | None:
        with self.unit_of_work_factory() as uow:
            return uow.repositories.conflicts.get(organization_id, conflict_id)

    def require(self, organization_id: str, conflict_id: UUID) -> DataConflict:
        conflict = self.get_by_id(organization_id, conflict_id)
        if conflict is None:
            raise NotFoundError("Conflict", conflict_id)
        return conflict

    def query(
        self, organization_id: str, criteria: ConflictQuery | None = None
    ) -> tuple[list[DataConflict], int]:
        with self.unit_of_work_factory() as uow:
            conflicts, total = uow.repositories.conflicts.query(
                organization_id, criteria or ConflictQuery()
            )
            return list(conflicts), total

    def stats(self, organization_id: str) -> ConflictStats:
        with self.unit_of_work_factory() as uow:
            return uow.repositories.conflicts.stats(organization_id)

    # transitions ------------------------------------------------------------

    def mark_resolved(
        self,
        organization_id: str,
        conflict_id: UUID,
        resolution: ResolutionStrategy,
        resolved_by: str,
        *,
        notes: str | None = None,
    ) -> DataConflict:
        return self._transition(
            organization_id,
            conflict_id,
            lambda conflict, now: conflict.resolve(
                resolution, resolved_by=resolved_by, now=now, notes=notes
            ),
        )

    def ignore_conflict(
        self,
        organization_id: str,
        conflict_id: UUID,
        ignored_by: str,
        reason: str | None = None,
    ) -> DataConflict:
        return self._transition(
            organization_id,
            conflict_id,
            lambda conflict, now: conflict.ignore(ignored_by=ignored_by, now=now, reason=reason),
        )

    def escalate_conflict(
        self,
        organization_id: str,
        conflict_id: UUID,
        escalated_by: str,
        reason: str | None = None,
    ) -> DataConflict:
        return self._transition(
            organization_id,
            conflict_id,
            lambda conflict, now: conflict.escalate(
                escalated_by=escalated_by, now=now, reason=reason
            ),
        )

    def deescalate_conflict(
        self,
        organization_id: str,
        conflict_id: UUID,
        actor_id: str,
        reason: str | None = None,
    ) -> DataConflict:
        return self._transition(
            organization_id,
            conflict_id,
            lambda conflict, now: conflict.deescalate(actor_id=actor_id, now=now, reason=reason),
        )

    def _transition(
        self,
        organization_id: str,
        conflict_id: UUID,
        apply: Callable[[DataConflict, datetime], None],
    ) -> DataConflict:
        with self.unit_of_work_factory() as uow:
            conflict = _require(uow.repositories.conflicts, organization_id, conflict_id)
            apply(conflict, self.clock())
            uow.commit()
        log.info("Conflict %s is now %s", conflict.id, conflict.status)
        return conflict


def _require(
    conflicts: ConflictRepository, organization_id: str, conflict_id: UUID
) -> DataConflict:
    conflict = conflicts.get(organization_id, conflict_id)
    if conflict is None:
        raise NotFoundError("Conflict", conflict_id)
    return conflict
