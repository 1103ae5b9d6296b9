"""SQLAlchemy adapter package for masterdata."""

from __future__ import annotations

from .mappings import mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyChangeRecordRepository,
    SqlAlchemyConflictRepository,
    SqlAlchemyMasterRecordRepository,
    SqlAlchemyOrganizationSettingsRepository,
    SqlAlchemyVersionHistoryRepository,
)
from .unit_of_work import (
    SqlAlchemyReconciliationUnitOfWork,
    StartupError,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyChangeRecordRepository",
    "SqlAlchemyConflictRepository",
    "SqlAlchemyMasterRecordRepository",
    "SqlAlchemyOrganizationSettingsRepository",
    "SqlAlchemyReconciliationUnitOfWork",
    "SqlAlchemyVersionHistoryRepository",
    "StartupError",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
