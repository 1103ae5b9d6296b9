"""Conflict reconciliation between source payloads and master records.

Flow:
1) ``ConflictDetector`` compares a linked source payload with the master record
2) ``ConflictStore`` records one open conflict per (record, source, field)
3) ``ResolutionEngine`` closes a conflict, applying the chosen strategy
4) ``AutoResolutionRunner`` picks strategies from the organization's policy
"""

from __future__ import annotations

from .conflicts import ConflictStore
from .contracts import (
    MISSING,
    BatchDetectionResult,
    BulkResolutionResult,
    ConflictInput,
    ItemError,
    ResolutionOptions,
    ResolutionResult,
    SourcePayload,
)
from .detect import ConflictDetector, is_conflicting
from .policy import SYSTEM_ACTOR, AutoResolutionRunner, choose_strategy
from .resolve import ResolutionEngine

__all__ = [
    "MISSING",
    "SYSTEM_ACTOR",
    "AutoResolutionRunner",
    "BatchDetectionResult",
    "BulkResolutionResult",
    "ConflictDetector",
    "ConflictInput",
    "ConflictStore",
    "ItemError",
    "ResolutionEngine",
    "ResolutionOptions",
    "ResolutionResult",
    "SourcePayload",
    "choose_strategy",
    "is_conflicting",
]
