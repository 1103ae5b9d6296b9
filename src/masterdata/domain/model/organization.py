"""Per-organization reconciliation settings."""

from __future__ import annotations

from dataclasses import dataclass, field

from masterdata.domain.model.enums import AutoResolutionPolicy


@dataclass(eq=False, kw_only=True)
class OrganizationSettings:
    organization_id: str
    reconciliation_enabled: bool = False
    conflict_resolution: AutoResolutionPolicy = AutoResolutionPolicy.MANUAL_REVIEW
    source_priority: list[str] = field(default_factory=list[str])

    def is_top_priority(self, source_id: str) -> bool:
        return bool(self.source_priority) and self.source_priority[0] == source_id
