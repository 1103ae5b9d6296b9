"""Domain port definitions for adapters."""

from __future__ import annotations

from .collaborators import ChangeTracker, OrganizationSettingsProvider, UnitOfWorkFactory
from .persistence import (
    ChangeRecordRepository,
    ConflictRepository,
    MasterRecordRepository,
    OrganizationSettingsRepository,
    Repository,
    VersionHistoryRepository,
)
from .unit_of_work import (
    ReconciliationRepositories,
    ReconciliationUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "ChangeRecordRepository",
    "ChangeTracker",
    "ConflictRepository",
    "MasterRecordRepository",
    "OrganizationSettingsProvider",
    "OrganizationSettingsRepository",
    "ReconciliationRepositories",
    "ReconciliationUnitOfWork",
    "Repository",
    "RepositoryCollection",
    "UnitOfWork",
    "UnitOfWorkFactory",
    "VersionHistoryRepository",
]
