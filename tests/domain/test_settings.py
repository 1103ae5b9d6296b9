from __future__ import annotations

from typing import TYPE_CHECKING

from masterdata.domain.model import AutoResolutionPolicy, OrganizationSettings
from masterdata.domain.settings import RepositoryOrganizationSettings, StaticOrganizationSettings
from tests.helpers.records import ORG, OTHER_ORG

if TYPE_CHECKING:
    from collections.abc import Callable

    from masterdata.adapters.sqlalchemy.unit_of_work import SqlAlchemyReconciliationUnitOfWork


def test_static_settings_fall_back_to_defaults() -> None:
    provider = StaticOrganizationSettings(
        reconciliation_enabled=True,
        conflict_resolution=AutoResolutionPolicy.NEWEST_WINS,
        source_priority=("crm",),
    )
    provider.put(OrganizationSettings(organization_id=OTHER_ORG))

    defaults = provider.settings_for(ORG)
    override = provider.settings_for(OTHER_ORG)

    assert defaults.reconciliation_enabled
    assert defaults.conflict_resolution == AutoResolutionPolicy.NEWEST_WINS
    assert defaults.source_priority == ["crm"]
    assert not override.reconciliation_enabled


def test_repository_settings_persist_and_update(
    sqlite_unit_of_work: Callable[[], SqlAlchemyReconciliationUnitOfWork],
) -> None:
    provider = RepositoryOrganizationSettings(
        sqlite_unit_of_work, StaticOrganizationSettings(reconciliation_enabled=False)
    )

    assert not provider.settings_for(ORG).reconciliation_enabled

    provider.save(
        OrganizationSettings(
            organization_id=ORG,
            reconciliation_enabled=True,
            conflict_resolution=AutoResolutionPolicy.SOURCE_PRIORITY,
            source_priority=["erp", "crm"],
        )
    )
    provider.save(
        OrganizationSettings(
            organization_id=ORG,
            reconciliation_enabled=True,
            conflict_resolution=AutoResolutionPolicy.SOURCE_PRIORITY,
            source_priority=["crm"],
        )
    )

    stored = provider.settings_for(ORG)
    assert stored.reconciliation_enabled
    assert stored.conflict_resolution == AutoResolutionPolicy.SOURCE_PRIORITY
    assert stored.source_priority == ["crm"]
    assert stored.is_top_priority("crm")
    assert not provider.settings_for(OTHER_ORG).reconciliation_enabled
