"""Read JSON payload files into domain inputs.

Detection files hold ``{"payloads": [...]}``; record import files hold
``{"records": [...]}``. Invalid files raise ``pydantic.ValidationError``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .schema import DetectionBatchFile, RecordImportFile
from .translator import to_record_input, to_source_payload

if TYPE_CHECKING:
    from pathlib import Path

    from masterdata.domain.reconciliation import SourcePayload
    from masterdata.domain.records import RecordInput

log = logging.getLogger(__name__)


def read_detection_batch(path: Path) -> list[SourcePayload]:
    document = DetectionBatchFile.model_validate_json(path.read_bytes())
    log.debug("Read %d source payload(s) from %s", len(document.payloads), path)
    return [to_source_payload(payload) for payload in document.payloads]


def read_record_inputs(path: Path) -> list[RecordInput]:
    document = RecordImportFile.model_validate_json(path.read_bytes())
    log.debug("Read %d record(s) from %s", len(document.records), path)
    return [to_record_input(record) for record in document.records]
