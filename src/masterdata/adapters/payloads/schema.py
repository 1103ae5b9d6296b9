"""JSON file schemas for source payloads and record imports."""

from __future__ import annotations

import logging
from datetime import datetime  # noqa: TC003
from typing import ClassVar
from uuid import UUID  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field, JsonValue

from masterdata.domain.model import SyncStatus

log = logging.getLogger(__name__)


class PayloadBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow")
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.warning(
            "%s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class SourcePayloadModel(PayloadBaseModel):
    master_record_id: UUID
    source_id: str = Field(min_length=1)
    source_name: str
    data: dict[str, JsonValue] | None = None


class DetectionBatchFile(PayloadBaseModel):
    payloads: list[SourcePayloadModel] = Field(default_factory=list[SourcePayloadModel])


class RecordSourceModel(PayloadBaseModel):
    source_id: str = Field(min_length=1)
    source_name: str
    source_type: str
    external_id: str = Field(min_length=1)
    last_synced_at: datetime | None = None
    sync_status: SyncStatus = SyncStatus.PENDING
    field_contributions: dict[str, bool] = Field(default_factory=dict[str, bool])


class RecordMetadataModel(PayloadBaseModel):
    source_system: str | None = None
    tags: list[str] = Field(default_factory=list[str])
    custom: dict[str, JsonValue] = Field(default_factory=dict[str, JsonValue])


class RecordInputModel(PayloadBaseModel):
    entity_type: str = Field(min_length=1)
    external_id: str | None = None
    data: dict[str, JsonValue] = Field(default_factory=dict[str, JsonValue])
    metadata: RecordMetadataModel | None = None
    sources: list[RecordSourceModel] = Field(default_factory=list[RecordSourceModel])


class RecordImportFile(PayloadBaseModel):
    records: list[RecordInputModel] = Field(default_factory=list[RecordInputModel])
