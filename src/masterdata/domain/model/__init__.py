"""Public domain model surface."""

from __future__ import annotations

from masterdata.domain.model.change import ChangeRecord, FieldChange, changed_fields, diff_data
from masterdata.domain.model.conflict import ConflictKey, DataConflict
from masterdata.domain.model.enums import (
    OPEN_CONFLICT_STATUSES,
    AutoResolutionPolicy,
    ChangeType,
    ConflictStatus,
    ConflictType,
    EntityType,
    FieldChangeKind,
    RecordStatus,
    ResolutionStrategy,
    SyncStatus,
)
from masterdata.domain.model.organization import OrganizationSettings
from masterdata.domain.model.quality import REQUIRED_FIELDS, score
from masterdata.domain.model.record import MasterRecord, MasterRecordVersion, RecordSource, SourceKey
from masterdata.domain.model.values import (
    FieldValue,
    RecordData,
    is_blank,
    stored_data,
    stored_value,
    values_equal,
)

__all__ = [  # noqa: RUF022
    # records
    "MasterRecord",
    "MasterRecordVersion",
    "RecordSource",
    "SourceKey",
    # conflicts
    "ConflictKey",
    "DataConflict",
    # audit
    "ChangeRecord",
    "FieldChange",
    "changed_fields",
    "diff_data",
    # organization
    "OrganizationSettings",
    # quality
    "REQUIRED_FIELDS",
    "score",
    # values
    "FieldValue",
    "RecordData",
    "is_blank",
    "stored_data",
    "stored_value",
    "values_equal",
    # enums
    "OPEN_CONFLICT_STATUSES",
    "AutoResolutionPolicy",
    "ChangeType",
    "ConflictStatus",
    "ConflictType",
    "EntityType",
    "FieldChangeKind",
    "RecordStatus",
    "ResolutionStrategy",
    "SyncStatus",
]
