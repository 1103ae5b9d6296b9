"""Data conflicts and their lifecycle."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import TYPE_CHECKING

from masterdata.domain.errors import AlreadyResolvedError
from masterdata.domain.model.enums import (
    OPEN_CONFLICT_STATUSES,
    ConflictStatus,
    ConflictType,
    ResolutionStrategy,
)
from masterdata.domain.model.record import new_id

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime
    from uuid import UUID

    from masterdata.domain.model.values import FieldValue

type ConflictKey = tuple[UUID, str, str | None]
"""``(master_record_id, source_id, field)`` deduplication key."""


@dataclass(eq=False, kw_only=True)
class DataConflict:
    """Disagreement between a source's value and the master record's value.

    State machine::

        pending ──► resolved | ignored
           ▲ │
           │ ▼
        escalated ──► resolved | ignored
    """

    organization_id: str
    master_record_id: UUID
    source_id: str
    source_name: str
    detected_at: datetime
    conflict_type: ConflictType = ConflictType.FIELD_VALUE
    field: str | None = None
    master_value: FieldValue = None
    source_value: FieldValue = None
    id: UUID = dataclasses.field(default_factory=new_id)
    status: ConflictStatus = ConflictStatus.PENDING
    resolution: ResolutionStrategy | None = None
    resolved_at: datetime | None = None
    resolved_by: str | None = None
    resolution_notes: str | None = None

    _metadata: dict[str, object] = dataclasses.field(
        default_factory=dict[str, object], repr=False
    )

    @property
    def metadata(self) -> Mapping[str, object]:
        return self._metadata

    @property
    def key(self) -> ConflictKey:
        return (self.master_record_id, self.source_id, self.field)

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_CONFLICT_STATUSES

    def refresh(self, source_value: FieldValue, *, now: datetime) -> None:
        """Record a repeated detection in place."""

        self.source_value = source_value
        self.detected_at = now

    def resolve(
        self,
        resolution: ResolutionStrategy,
        *,
        resolved_by: str,
        now: datetime,
        notes: str | None = None,
    ) -> None:
        self._require_open()
        self.status = ConflictStatus.RESOLVED
        self.resolution = resolution
        self.resolved_by = resolved_by
        self.resolved_at = now
        self.resolution_notes = notes

    def ignore(self, *, ignored_by: str, now: datetime, reason: str | None = None) -> None:
        self._require_open()
        self.status = ConflictStatus.IGNORED
        self.resolved_by = ignored_by
        self.resolved_at = now
        self.resolution_notes = reason or "Ignored by user"

    def escalate(self, *, escalated_by: str, now: datetime, reason: str | None = None) -> None:
        """Flag for review; an escalated conflict stays resolvable."""

        self._require_open()
        entry: dict[str, object] = {
            "escalated_by": escalated_by,
            "escalated_at": now.isoformat(),
            "escalation_reason": reason,
        }
        history = self._metadata.get("escalations")
        previous: list[object] = list(history) if isinstance(history, list) else []  # pyright: ignore[reportUnknownArgumentType]
        self._metadata = {**self._metadata, **entry, "escalations": [*previous, entry]}
        self.status = ConflictStatus.ESCALATED

    def deescalate(self, *, actor_id: str, now: datetime, reason: str | None = None) -> None:
        if self.status != ConflictStatus.ESCALATED:
            raise AlreadyResolvedError(self.id, self.status)
        self._metadata = {
            **self._metadata,
            "deescalated_by": actor_id,
            "deescalated_at": now.isoformat(),
            "deescalation_reason": reason,
        }
        self.status = ConflictStatus.PENDING

    def _require_open(self) -> None:
        if not self.is_open:
            raise AlreadyResolvedError(self.id, self.status)
