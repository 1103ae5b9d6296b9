"""Inputs and outcomes shared by detection, resolution and auto-resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Final, Literal

from masterdata.domain.model import ConflictType

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID

    from masterdata.domain.model import DataConflict, FieldValue, MasterRecord


class _Missing(Enum):
    MISSING = "missing"

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Final = _Missing.MISSING
"""Marks an absent merged value; ``None`` is a legitimate value to merge."""

type MaybeValue = FieldValue | Literal[_Missing.MISSING]


@dataclass(slots=True, kw_only=True)
class ResolutionOptions:
    merged_value: MaybeValue = MISSING
    notes: str | None = None

    @property
    def has_merged_value(self) -> bool:
        return self.merged_value is not MISSING


@dataclass(slots=True)
class ResolutionResult:
    """Outcome of resolving one conflict.

    ``master_record`` is the record after the change, or ``None`` when the
    strategy left the record untouched.
    """

    conflict: DataConflict
    master_record: MasterRecord | None
    applied_changes: bool


@dataclass(slots=True, kw_only=True)
class ItemError:
    """Failure of one item within a batch operation."""

    item_id: UUID | str
    error: str


@dataclass(slots=True)
class BulkResolutionResult:
    resolved: int = 0
    failed: int = 0
    errors: list[ItemError] = field(default_factory=list[ItemError])


@dataclass(slots=True, kw_only=True)
class SourcePayload:
    """One source record already linked to a master record."""

    master_record_id: UUID
    source_id: str
    source_name: str
    data: Mapping[str, FieldValue] | None


@dataclass(slots=True)
class BatchDetectionResult:
    conflicts: list[DataConflict] = field(default_factory=list["DataConflict"])
    failed: int = 0
    errors: list[ItemError] = field(default_factory=list[ItemError])


@dataclass(slots=True, kw_only=True)
class ConflictInput:
    """A detected disagreement to record, keyed by ``(master_record_id, source_id, field)``."""

    master_record_id: UUID
    source_id: str
    source_name: str
    field: str | None
    master_value: FieldValue
    source_value: FieldValue
    conflict_type: ConflictType = ConflictType.FIELD_VALUE
    metadata: Mapping[str, object] | None = None
