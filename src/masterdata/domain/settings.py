"""Organization settings providers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from masterdata.domain.model import AutoResolutionPolicy, OrganizationSettings

if TYPE_CHECKING:
    from masterdata.domain.ports import OrganizationSettingsProvider, UnitOfWorkFactory


@dataclass(slots=True)
class StaticOrganizationSettings:
    """In-memory settings with shared defaults for unknown organizations."""

    overrides: dict[str, OrganizationSettings] = field(
        default_factory=dict[str, OrganizationSettings]
    )
    reconciliation_enabled: bool = False
    conflict_resolution: AutoResolutionPolicy = AutoResolutionPolicy.MANUAL_REVIEW
    source_priority: tuple[str, ...] = ()

    def settings_for(self, organization_id: str) -> OrganizationSettings:
        configured = self.overrides.get(organization_id)
        if configured is not None:
            return configured
        return OrganizationSettings(
            organization_id=organization_id,
            reconciliation_enabled=self.reconciliation_enabled,
            conflict_resolution=self.conflict_resolution,
            source_priority=list(self.source_priority),
        )

    def put(self, settings: OrganizationSettings) -> None:
        self.overrides[settings.organization_id] = settings


@dataclass(slots=True)
class RepositoryOrganizationSettings:
    """Read persisted settings, deferring to ``fallback`` for unknown organizations."""

    unit_of_work_factory: UnitOfWorkFactory
    fallback: OrganizationSettingsProvider

    def settings_for(self, organization_id: str) -> OrganizationSettings:
        with self.unit_of_work_factory() as uow:
            stored = uow.repositories.settings.get(organization_id)
        if stored is not None:
            return stored
        return self.fallback.settings_for(organization_id)

    def save(self, settings: OrganizationSettings) -> OrganizationSettings:
        with self.unit_of_work_factory() as uow:
            repository = uow.repositories.settings
            existing = repository.get(settings.organization_id)
            if existing is None:
                repository.add(settings)
                stored = settings
            else:
                existing.reconciliation_enabled = settings.reconciliation_enabled
                existing.conflict_resolution = settings.conflict_resolution
                existing.source_priority = list(settings.source_priority)
                stored = existing
            uow.commit()
        return stored
