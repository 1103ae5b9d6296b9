"""Query criteria and aggregate statistics shared by services and repositories."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Collection
    from datetime import datetime
    from uuid import UUID

    from masterdata.domain.model import ChangeType, ConflictStatus, ConflictType, RecordStatus

DEFAULT_PAGE_SIZE: Final[int] = 50
TOP_CHANGE_ACTORS: Final[int] = 10


class RecordSortField(StrEnum):
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    QUALITY_SCORE = "quality_score"


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"


@dataclass(slots=True, kw_only=True)
class RecordQuery:
    """Filter for master records. ``status=None`` excludes deleted records."""

    entity_type: str | None = None
    status: RecordStatus | None = None
    source_id: str | None = None
    search: str | None = None
    min_quality_score: int | None = None
    tags: tuple[str, ...] = ()
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0
    sort_by: RecordSortField = RecordSortField.UPDATED_AT
    sort_order: SortOrder = SortOrder.DESC


@dataclass(slots=True, kw_only=True)
class ConflictQuery:
    """Filter for conflicts, always ordered newest detection first."""

    master_record_id: UUID | None = None
    source_id: str | None = None
    status: ConflictStatus | Collection[ConflictStatus] | None = None
    conflict_type: ConflictType | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0


@dataclass(slots=True)
class RecordStats:
    total: int
    by_entity_type: dict[str, int] = field(default_factory=dict[str, int])
    by_status: dict[str, int] = field(default_factory=dict[str, int])
    avg_quality_score: float = 0.0
    distinct_source_count: int = 0


@dataclass(slots=True)
class ConflictStats:
    total: int
    by_status: dict[str, int] = field(default_factory=dict[str, int])
    by_source: dict[str, int] = field(default_factory=dict[str, int])
    by_type: dict[str, int] = field(default_factory=dict[str, int])
    avg_resolution_time_seconds: float = 0.0


@dataclass(slots=True, kw_only=True)
class ChangeQuery:
    """Filter for tracked changes, always ordered newest first."""

    master_record_id: UUID | None = None
    change_type: ChangeType | None = None
    changed_by: str | None = None
    source: str | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    limit: int = DEFAULT_PAGE_SIZE
    offset: int = 0


@dataclass(slots=True)
class ChangeStats:
    """Change counts within a date window.

    ``by_user`` holds the most active actors only. ``timeline`` lists
    ``(ISO day, count)`` pairs in ascending day order for days with changes.
    """

    total: int
    by_type: dict[str, int] = field(default_factory=dict[str, int])
    by_user: dict[str, int] = field(default_factory=dict[str, int])
    by_source: dict[str, int] = field(default_factory=dict[str, int])
    timeline: list[tuple[str, int]] = field(default_factory=list[tuple[str, int]])
