"""Field-level disagreement detection between source payloads and master records."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from masterdata.domain.errors import NotFoundError, ReconciliationError
from masterdata.domain.model import is_blank, stored_value, values_equal

from .contracts import BatchDetectionResult, ConflictInput, ItemError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from masterdata.domain.model import DataConflict, FieldValue
    from masterdata.domain.ports import UnitOfWorkFactory

    from .conflicts import ConflictStore
    from .contracts import SourcePayload

log = logging.getLogger(__name__)


def is_conflicting(master_value: FieldValue, source_value: FieldValue) -> bool:
    """Return whether ``source_value`` disagrees with ``master_value``.

    Equal values never conflict. A blank source value never conflicts with a
    populated master value, since a source omitting a field is not asking to
    erase it. Otherwise both values must be non-null to conflict; a missing
    master value is enrichment, not disagreement.
    """

    if values_equal(stored_value(master_value), stored_value(source_value)):
        return False
    if is_blank(source_value) and not is_blank(master_value):
        return False
    return master_value is not None and source_value is not None


@dataclass(slots=True)
class ConflictDetector:
    unit_of_work_factory: UnitOfWorkFactory
    conflicts: ConflictStore

    def detect(
        self,
        organization_id: str,
        master_record_id: UUID,
        source_id: str,
        source_name: str,
        source_data: object,
    ) -> list[DataConflict]:
        """Record a conflict for every field of ``source_data`` that disagrees.

        Returns the conflicts created or refreshed by this call. Detection never
        writes to the master record.
        """

        with self.unit_of_work_factory() as uow:
            record = uow.repositories.records.get(organization_id, master_record_id)
        if record is None:
            raise NotFoundError("Master record", master_record_id)
        if not isinstance(source_data, Mapping) or not source_data:
            return []

        master_data = record.data
        detected: list[DataConflict] = []
        for field_name, raw_value in source_data.items():  # pyright: ignore[reportUnknownVariableType]
            master_value = master_data.get(str(field_name))  # pyright: ignore[reportUnknownArgumentType]
            source_value = stored_value(raw_value)
            if not is_conflicting(master_value, source_value):  # pyright: ignore[reportUnknownArgumentType]
                continue
            detected.append(
                self.conflicts.create(
                    organization_id,
                    ConflictInput(
                        master_record_id=master_record_id,
                        source_id=source_id,
                        source_name=source_name,
                        field=str(field_name),  # pyright: ignore[reportUnknownArgumentType]
                        master_value=master_value,
                        source_value=source_value,  # pyright: ignore[reportUnknownArgumentType]
                    ),
                )
            )

        if detected:
            log.info(
                "Detected %d conflict(s) on record %s from source %s",
                len(detected),
                master_record_id,
                source_id,
            )
        return detected

    def detect_batch(
        self, organization_id: str, payloads: Iterable[SourcePayload]
    ) -> BatchDetectionResult:
        """Run ``detect`` for each payload in order, isolating per-item failures."""

        result = BatchDetectionResult()
        for payload in payloads:
            try:
                conflicts = self.detect(
                    organization_id,
                    payload.master_record_id,
                    payload.source_id,
                    payload.source_name,
                    payload.data,
                )
            except Exception as exc:  # noqa: BLE001
                log.warning(
                    "Detection failed for record %s from source %s: %s",
                    payload.master_record_id,
                    payload.source_id,
                    exc,
                    exc_info=not isinstance(exc, ReconciliationError),
                )
                result.failed += 1
                result.errors.append(ItemError(item_id=payload.master_record_id, error=str(exc)))
                continue
            result.conflicts.extend(conflicts)
        return result
