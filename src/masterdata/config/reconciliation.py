"""Reconciliation defaults applied to organizations without stored settings."""

from __future__ import annotations

import os
from dataclasses import dataclass

from masterdata.domain.model import AutoResolutionPolicy
from masterdata.domain.queries import DEFAULT_PAGE_SIZE

from .env import env_flag, env_int, env_list
from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class ReconciliationConfig:
    reconciliation_enabled: bool = False
    conflict_resolution: AutoResolutionPolicy = AutoResolutionPolicy.MANUAL_REVIEW
    source_priority: tuple[str, ...] = ()
    query_limit: int = DEFAULT_PAGE_SIZE


def get_reconciliation_config() -> ReconciliationConfig:
    raw_policy = os.getenv("MASTERDATA_CONFLICT_POLICY")
    try:
        policy = (
            AutoResolutionPolicy(raw_policy.strip())
            if raw_policy and raw_policy.strip()
            else AutoResolutionPolicy.MANUAL_REVIEW
        )
    except ValueError as exc:
        allowed = ", ".join(member.value for member in AutoResolutionPolicy)
        raise ConfigurationError(
            f"MASTERDATA_CONFLICT_POLICY must be one of {allowed}, got {raw_policy!r}",
            setting="MASTERDATA_CONFLICT_POLICY",
        ) from exc

    return ReconciliationConfig(
        reconciliation_enabled=env_flag("MASTERDATA_RECONCILIATION_ENABLED", default=False),
        conflict_resolution=policy,
        source_priority=env_list("MASTERDATA_SOURCE_PRIORITY"),
        query_limit=env_int("MASTERDATA_QUERY_LIMIT", default=DEFAULT_PAGE_SIZE, minimum=1),
    )
