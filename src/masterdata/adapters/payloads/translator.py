"""Translate validated payload models into domain inputs."""

from __future__ import annotations

from typing import TYPE_CHECKING

from masterdata.domain.model import RecordSource
from masterdata.domain.reconciliation import SourcePayload
from masterdata.domain.records import RecordInput

if TYPE_CHECKING:
    from .schema import RecordInputModel, RecordSourceModel, SourcePayloadModel


def to_source_payload(model: SourcePayloadModel) -> SourcePayload:
    return SourcePayload(
        master_record_id=model.master_record_id,
        source_id=model.source_id,
        source_name=model.source_name,
        data=model.data,
    )


def to_record_source(model: RecordSourceModel) -> RecordSource:
    return RecordSource(
        source_id=model.source_id,
        source_name=model.source_name,
        source_type=model.source_type,
        external_id=model.external_id,
        last_synced_at=model.last_synced_at,
        sync_status=model.sync_status,
        field_contributions=dict(model.field_contributions),
    )


def to_record_input(model: RecordInputModel) -> RecordInput:
    return RecordInput(
        entity_type=model.entity_type,
        external_id=model.external_id,
        data=dict(model.data),
        metadata=model.metadata.model_dump() if model.metadata is not None else None,
        sources=tuple(to_record_source(source) for source in model.sources),
    )
