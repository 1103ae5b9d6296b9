"""Apply a resolution strategy to one conflict and close it."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from masterdata.domain.changes import notify_change
from masterdata.domain.errors import AlreadyResolvedError, InvalidInputError
from masterdata.domain.model import ChangeType, ResolutionStrategy
from masterdata.domain.records import RecordUpdate

from .contracts import ResolutionOptions, ResolutionResult

if TYPE_CHECKING:
    from uuid import UUID

    from masterdata.domain.model import DataConflict, FieldValue, MasterRecord
    from masterdata.domain.ports import ChangeTracker
    from masterdata.domain.records import MasterRecordStore

    from .conflicts import ConflictStore

log = logging.getLogger(__name__)

CONFLICT_RESOLUTION_REASON = "Conflict resolution"
MERGE_SOURCE_LABEL = "merge"


@dataclass(slots=True)
class ResolutionEngine:
    """Resolve conflicts by strategy.

    The record change and the conflict closure commit separately. If the
    process stops in between, the conflict stays open and resolving it again
    reapplies the same value, which leaves the data unchanged but still bumps
    the record version.
    """

    conflicts: ConflictStore
    records: MasterRecordStore
    change_tracker: ChangeTracker | None = None

    def resolve(
        self,
        organization_id: str,
        conflict_id: UUID,
        strategy: ResolutionStrategy | str,
        actor_id: str,
        options: ResolutionOptions | None = None,
    ) -> ResolutionResult:
        options = options or ResolutionOptions()
        strategy = _parse_strategy(strategy)
        conflict = self.conflicts.require(organization_id, conflict_id)
        if not conflict.is_open:
            raise AlreadyResolvedError(conflict.id, conflict.status)

        master_record: MasterRecord | None = None
        applied_changes = False
        if strategy == ResolutionStrategy.ACCEPT_SOURCE:
            field_name = _require_field(conflict, strategy)
            master_record = self.apply_field_change(
                organization_id,
                conflict.master_record_id,
                field_name,
                conflict.source_value,
                actor_id,
                conflict.source_id,
            )
            applied_changes = True
        elif strategy == ResolutionStrategy.MERGE:
            field_name = _require_field(conflict, strategy)
            if not options.has_merged_value:
                raise InvalidInputError("Strategy 'merge' requires a merged value")
            master_record = self.apply_field_change(
                organization_id,
                conflict.master_record_id,
                field_name,
                options.merged_value,  # pyright: ignore[reportArgumentType]
                actor_id,
                MERGE_SOURCE_LABEL,
            )
            applied_changes = True

        resolved = self.conflicts.mark_resolved(
            organization_id, conflict_id, strategy, actor_id, notes=options.notes
        )
        return ResolutionResult(
            conflict=resolved, master_record=master_record, applied_changes=applied_changes
        )

    def apply_field_change(
        self,
        organization_id: str,
        master_record_id: UUID,
        field_name: str,
        new_value: FieldValue,
        actor_id: str,
        source_label: str,
    ) -> MasterRecord:
        """Set one field on the current record state and report the change.

        The write is guarded by the version that was read, so a concurrent
        update surfaces as ``VersionConflictError``.
        """

        current = self.records.require(organization_id, master_record_id)
        previous_data = dict(current.data)
        updated = self.records.update(
            organization_id,
            master_record_id,
            RecordUpdate(data={field_name: new_value}, expected_version=current.version),
            actor_id,
        )
        notify_change(
            self.change_tracker,
            organization_id,
            master_record_id,
            ChangeType.UPDATE,
            previous_data,
            updated.data,
            actor_id,
            source=source_label,
            reason=CONFLICT_RESOLUTION_REASON,
        )
        log.debug(
            "Applied %r from %s to record %s (version %s)",
            field_name,
            source_label,
            master_record_id,
            updated.version,
        )
        return updated


def _parse_strategy(strategy: ResolutionStrategy | str) -> ResolutionStrategy:
    try:
        return ResolutionStrategy(strategy)
    except ValueError as exc:
        raise InvalidInputError(f"Unknown resolution strategy: {strategy!r}") from exc


def _require_field(conflict: DataConflict, strategy: ResolutionStrategy) -> str:
    if conflict.field is None:
        raise InvalidInputError(f"Strategy {strategy!s} requires a conflict with a field")
    return conflict.field
