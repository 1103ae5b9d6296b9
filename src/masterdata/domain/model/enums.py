"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityType(StrEnum):
    """Entity types with a configured completeness schema.

    Master records may carry other entity type strings; those are simply
    unscored.
    """

    COMPANY = "company"
    PERSON = "person"
    ADDRESS = "address"
    PRODUCT = "product"
    CONTACT = "contact"


class RecordStatus(StrEnum):
    ACTIVE = "active"
    PENDING = "pending"
    ARCHIVED = "archived"
    DELETED = "deleted"


class SyncStatus(StrEnum):
    SYNCED = "synced"
    PENDING = "pending"
    ERROR = "error"


class ConflictType(StrEnum):
    FIELD_VALUE = "field_value"
    RECORD_EXISTENCE = "record_existence"
    RELATIONSHIP = "relationship"
    SCHEMA = "schema"


class ConflictStatus(StrEnum):
    PENDING = "pending"
    RESOLVED = "resolved"
    IGNORED = "ignored"
    ESCALATED = "escalated"


OPEN_CONFLICT_STATUSES: frozenset[ConflictStatus] = frozenset(
    {ConflictStatus.PENDING, ConflictStatus.ESCALATED}
)


class ResolutionStrategy(StrEnum):
    KEEP_MASTER = "keep_master"
    ACCEPT_SOURCE = "accept_source"
    MERGE = "merge"
    MANUAL = "manual"


class AutoResolutionPolicy(StrEnum):
    """Organization-wide rule used to pick a strategy without a reviewer."""

    NEWEST_WINS = "newest_wins"
    SOURCE_PRIORITY = "source_priority"
    MANUAL_REVIEW = "manual_review"


class ChangeType(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    MERGE = "merge"
    SYNC = "sync"


class FieldChangeKind(StrEnum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"
