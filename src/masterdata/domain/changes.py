"""Change tracking for applied master record mutations.

The reconciliation core reports changes through the ``ChangeTracker`` port and
never lets a tracker failure undo or block the mutation itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from masterdata.domain.clock import utcnow
from masterdata.domain.model import ChangeRecord, ChangeType, changed_fields
from masterdata.domain.queries import ChangeQuery

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime
    from uuid import UUID

    from masterdata.domain.clock import Clock
    from masterdata.domain.model import FieldValue
    from masterdata.domain.ports import ChangeTracker, UnitOfWorkFactory
    from masterdata.domain.queries import ChangeStats

log = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50


@dataclass(slots=True)
class RepositoryChangeTracker:
    """Persist change records through the reconciliation unit of work."""

    unit_of_work_factory: UnitOfWorkFactory
    clock: Clock = utcnow

    def track(
        self,
        organization_id: str,
        master_record_id: UUID,
        change_type: ChangeType,
        previous_data: Mapping[str, FieldValue] | None,
        new_data: Mapping[str, FieldValue],
        actor_id: str,
        *,
        source: str | None = None,
        reason: str | None = None,
        metadata: Mapping[str, object] | None = None,
    ) -> None:
        fields = (
            changed_fields(previous_data, new_data)
            if previous_data is not None
            else list(new_data)
        )
        with self.unit_of_work_factory() as uow:
            record = uow.repositories.records.get(organization_id, master_record_id)
            version = record.version if record is not None else 1
            uow.repositories.changes.add(
                ChangeRecord(
                    organization_id=organization_id,
                    master_record_id=master_record_id,
                    change_type=change_type,
                    version=version,
                    previous_version=None if change_type is ChangeType.CREATE else version - 1,
                    changed_fields=fields,
                    previous_data=dict(previous_data or {}),
                    new_data=dict(new_data),
                    changed_by=actor_id,
                    source=source,
                    reason=reason,
                    created_at=self.clock(),
                    _metadata=dict(metadata or {}),
                )
            )
            uow.commit()

    def history(
        self,
        organization_id: str,
        master_record_id: UUID,
        *,
        limit: int = DEFAULT_HISTORY_LIMIT,
        offset: int = 0,
    ) -> list[ChangeRecord]:
        """Return tracked changes of a record, newest first."""

        with self.unit_of_work_factory() as uow:
            return list(
                uow.repositories.changes.history(
                    organization_id, master_record_id, limit=limit, offset=offset
                )
            )

    def query(
        self, organization_id: str, criteria: ChangeQuery | None = None
    ) -> tuple[list[ChangeRecord], int]:
        """Return one page of the organization's changes, newest first, and the total."""

        with self.unit_of_work_factory() as uow:
            changes, total = uow.repositories.changes.query(
                organization_id, criteria or ChangeQuery()
            )
            return list(changes), total

    def stats(
        self,
        organization_id: str,
        *,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> ChangeStats:
        with self.unit_of_work_factory() as uow:
            return uow.repositories.changes.stats(
                organization_id, from_date=from_date, to_date=to_date
            )


def notify_change(
    tracker: ChangeTracker | None,
    organization_id: str,
    master_record_id: UUID,
    change_type: ChangeType,
    previous_data: Mapping[str, FieldValue] | None,
    new_data: Mapping[str, FieldValue],
    actor_id: str,
    *,
    source: str | None = None,
    reason: str | None = None,
    metadata: Mapping[str, object] | None = None,
) -> None:
    """Report a change, logging and swallowing any tracker failure."""

    if tracker is None:
        return
    try:
        tracker.track(
            organization_id,
            master_record_id,
            change_type,
            previous_data,
            new_data,
            actor_id,
            source=source,
            reason=reason,
            metadata=metadata,
        )
    except Exception:
        log.warning(
            "Change tracking failed for record %s (%s)",
            master_record_id,
            change_type,
            exc_info=True,
        )
