"""Typed failures raised by the reconciliation core.

Every error here is an expected, recoverable condition; callers either retry
(``VersionConflictError``) or correct their input.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID


class ReconciliationError(Exception):
    """Base class for reconciliation failures."""


class NotFoundError(ReconciliationError):
    """Raised when a record or conflict id is unknown within an organization."""

    def __init__(self, kind: str, identifier: UUID | str) -> None:
        super().__init__(f"{kind} not found: {identifier}")
        self.kind = kind
        self.identifier = identifier


class FeatureDisabledError(ReconciliationError):
    """Raised when reconciliation is not enabled for an organization."""

    def __init__(self, organization_id: str) -> None:
        super().__init__(f"Reconciliation is not enabled for organization {organization_id}")
        self.organization_id = organization_id


class InvalidInputError(ReconciliationError, ValueError):
    """Raised when required input is missing or malformed."""


class AlreadyResolvedError(ReconciliationError):
    """Raised when a conflict is no longer open for resolution."""

    def __init__(self, conflict_id: UUID, status: str) -> None:
        super().__init__(f"Conflict {conflict_id} is already {status}")
        self.conflict_id = conflict_id
        self.status = status


class VersionConflictError(ReconciliationError):
    """Raised when a write was based on a stale master record version."""

    def __init__(self, message: str = "Master record was modified concurrently") -> None:
        super().__init__(message)


class DuplicateKeyError(ReconciliationError):
    """Raised when a write violates a uniqueness constraint."""
