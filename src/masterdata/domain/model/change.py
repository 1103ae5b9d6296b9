"""Audit trail of applied master record changes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from masterdata.domain.model.enums import ChangeType, FieldChangeKind
from masterdata.domain.model.record import new_id
from masterdata.domain.model.values import values_equal

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime
    from uuid import UUID

    from masterdata.domain.model.values import FieldValue, RecordData


@dataclass(eq=False, kw_only=True)
class ChangeRecord:
    organization_id: str
    master_record_id: UUID
    change_type: ChangeType
    version: int
    new_data: RecordData
    changed_by: str
    created_at: datetime
    previous_version: int | None = None
    changed_fields: list[str] = field(default_factory=list[str])
    previous_data: RecordData = field(default_factory=dict[str, "FieldValue"])
    source: str | None = None
    reason: str | None = None
    id: UUID = field(default_factory=new_id)
    _metadata: dict[str, object] = field(default_factory=dict[str, object], repr=False)

    @property
    def metadata(self) -> Mapping[str, object]:
        return self._metadata


@dataclass(frozen=True, slots=True)
class FieldChange:
    field: str
    previous_value: FieldValue
    new_value: FieldValue
    kind: FieldChangeKind


def changed_fields(previous: Mapping[str, object], new: Mapping[str, object]) -> list[str]:
    """Names of fields whose values differ, in first-seen order."""

    names = dict.fromkeys([*previous, *new])
    return [name for name in names if not values_equal(previous.get(name), new.get(name))]


def diff_data(previous: Mapping[str, FieldValue], new: Mapping[str, FieldValue]) -> list[FieldChange]:
    """Classify per-field differences between two data snapshots."""

    differences: list[FieldChange] = []
    for name in dict.fromkeys([*previous, *new]):
        if name not in previous:
            differences.append(FieldChange(name, None, new[name], FieldChangeKind.ADDED))
        elif name not in new:
            differences.append(FieldChange(name, previous[name], None, FieldChangeKind.REMOVED))
        elif not values_equal(previous[name], new[name]):
            differences.append(
                FieldChange(name, previous[name], new[name], FieldChangeKind.MODIFIED)
            )
    return differences
