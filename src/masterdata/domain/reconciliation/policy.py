"""Organization-wide auto-resolution of pending conflicts.

Policies map to strategies as follows:
- ``newest_wins`` accepts the source value, assuming the latest detection is
  authoritative (no timestamps are compared)
- ``source_priority`` accepts the source value only for the first source in
  the organization's priority list, otherwise keeps the master value
- ``manual_review`` leaves every conflict pending
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from masterdata.domain.errors import ReconciliationError, VersionConflictError
from masterdata.domain.model import AutoResolutionPolicy, ResolutionStrategy

from .contracts import BulkResolutionResult, ItemError, ResolutionOptions

if TYPE_CHECKING:
    from collections.abc import Collection
    from uuid import UUID

    from masterdata.domain.model import DataConflict, OrganizationSettings
    from masterdata.domain.ports import OrganizationSettingsProvider, UnitOfWorkFactory

    from .resolve import ResolutionEngine

log = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"


def choose_strategy(
    settings: OrganizationSettings, conflict: DataConflict
) -> ResolutionStrategy | None:
    """Return the strategy the organization's policy picks, or ``None`` to skip."""

    policy = settings.conflict_resolution
    if policy == AutoResolutionPolicy.NEWEST_WINS:
        return ResolutionStrategy.ACCEPT_SOURCE
    if policy == AutoResolutionPolicy.SOURCE_PRIORITY:
        if settings.is_top_priority(conflict.source_id):
            return ResolutionStrategy.ACCEPT_SOURCE
        return ResolutionStrategy.KEEP_MASTER
    return None


@dataclass(slots=True)
class AutoResolutionRunner:
    unit_of_work_factory: UnitOfWorkFactory
    settings: OrganizationSettingsProvider
    engine: ResolutionEngine
    actor_id: str = SYSTEM_ACTOR

    def auto_resolve(
        self, organization_id: str, conflict_ids: Collection[UUID] | None = None
    ) -> BulkResolutionResult:
        """Resolve the targeted pending conflicts one by one.

        A failing conflict is reported in ``errors`` and does not stop the run.
        """

        settings = self.settings.settings_for(organization_id)
        policy = settings.conflict_resolution
        result = BulkResolutionResult()
        if policy == AutoResolutionPolicy.MANUAL_REVIEW:
            log.info("Auto-resolution skipped for %s: policy is %s", organization_id, policy)
            return result

        with self.unit_of_work_factory() as uow:
            pending = list(
                uow.repositories.conflicts.list_pending(organization_id, conflict_ids or None)
            )

        notes = f"Auto-resolved using {policy} strategy"
        for conflict in pending:
            strategy = choose_strategy(settings, conflict)
            if strategy is None:
                continue
            try:
                self._resolve_with_retry(organization_id, conflict.id, strategy, notes)
            except Exception as exc:  # noqa: BLE001
                log.warning(
                    "Auto-resolution of conflict %s failed: %s",
                    conflict.id,
                    exc,
                    exc_info=not isinstance(exc, ReconciliationError),
                )
                result.failed += 1
                result.errors.append(ItemError(item_id=conflict.id, error=str(exc)))
            else:
                result.resolved += 1

        log.info(
            "Auto-resolution for %s with %s: %d resolved, %d failed",
            organization_id,
            policy,
            result.resolved,
            result.failed,
        )
        return result

    def _resolve_with_retry(
        self,
        organization_id: str,
        conflict_id: UUID,
        strategy: ResolutionStrategy,
        notes: str,
    ) -> None:
        options = ResolutionOptions(notes=notes)
        try:
            self.engine.resolve(organization_id, conflict_id, strategy, self.actor_id, options)
        except VersionConflictError:
            log.info("Record changed while resolving conflict %s, retrying once", conflict_id)
            self.engine.resolve(organization_id, conflict_id, strategy, self.actor_id, options)
