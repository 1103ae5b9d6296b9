"""Public interface for the JSON payload adapter."""

from __future__ import annotations

from .reader import read_detection_batch, read_record_inputs
from .schema import (
    DetectionBatchFile,
    RecordImportFile,
    RecordInputModel,
    RecordSourceModel,
    SourcePayloadModel,
)
from .translator import to_record_input, to_record_source, to_source_payload

__all__ = [
    "DetectionBatchFile",
    "RecordImportFile",
    "RecordInputModel",
    "RecordSourceModel",
    "SourcePayloadModel",
    "read_detection_batch",
    "read_record_inputs",
    "to_record_input",
    "to_record_source",
    "to_source_payload",
]
