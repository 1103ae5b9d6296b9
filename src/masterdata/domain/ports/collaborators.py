"""Ports for collaborators outside the reconciliation core."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID

    from masterdata.domain.model import ChangeType, FieldValue, OrganizationSettings
    from masterdata.domain.ports.unit_of_work import ReconciliationUnitOfWork


type UnitOfWorkFactory = Callable[[], ReconciliationUnitOfWork]


@runtime_checkable
class OrganizationSettingsProvider(Protocol):
    """Read-only source of per-organization reconciliation settings."""

    def settings_for(self, organization_id: str) -> OrganizationSettings: ...


@runtime_checkable
class ChangeTracker(Protocol):
    """Receives every applied field change for audit purposes.

    Implementations may fail; callers log and continue.
    """

    def track(
        self,
        organization_id: str,
        master_record_id: UUID,
        change_type: ChangeType,
        previous_data: Mapping[str, FieldValue] | None,
        new_data: Mapping[str, FieldValue],
        actor_id: str,
        *,
        source: str | None = None,
        reason: str | None = None,
        metadata: Mapping[str, object] | None = None,
    ) -> None: ...
