from __future__ import annotations

import json
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest
from pydantic import ValidationError

from masterdata.adapters.payloads import read_detection_batch, read_record_inputs
from masterdata.domain.model import SyncStatus

if TYPE_CHECKING:
    from pathlib import Path


def _write(path: Path, document: object) -> Path:
    path.write_text(json.dumps(document))
    return path


def test_read_detection_batch(tmp_path: Path) -> None:
    record_id = uuid4()
    path = _write(
        tmp_path / "payloads.json",
        {
            "payloads": [
                {
                    "master_record_id": str(record_id),
                    "source_id": "crm",
                    "source_name": "CRM",
                    "data": {"name": "Acme Corp", "address": {"city": "Berlin"}, "vip": True},
                },
                {"master_record_id": str(record_id), "source_id": "erp", "source_name": "ERP"},
            ]
        },
    )

    payloads = read_detection_batch(path)

    assert [payload.source_id for payload in payloads] == ["crm", "erp"]
    assert payloads[0].master_record_id == record_id
    assert payloads[0].data == {"name": "Acme Corp", "address": {"city": "Berlin"}, "vip": True}
    assert payloads[1].data is None


def test_read_detection_batch_rejects_invalid_ids(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "payloads.json",
        {"payloads": [{"master_record_id": "nope", "source_id": "crm", "source_name": "CRM"}]},
    )

    with pytest.raises(ValidationError):
        read_detection_batch(path)


def test_read_record_inputs(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = _write(
        tmp_path / "records.json",
        {
            "records": [
                {
                    "entity_type": "company",
                    "external_id": "ACME-1",
                    "data": {"name": "Acme"},
                    "metadata": {"source_system": "crm", "tags": ["vip"]},
                    "sources": [
                        {
                            "source_id": "crm",
                            "source_name": "CRM",
                            "source_type": "api",
                            "external_id": "42",
                            "last_synced_at": "2025-01-01T12:00:00Z",
                            "sync_status": "synced",
                        }
                    ],
                    "owner": "someone",
                },
                {"entity_type": "person"},
            ]
        },
    )

    inputs = read_record_inputs(path)

    acme, person = inputs
    assert acme.external_id == "ACME-1"
    assert acme.data == {"name": "Acme"}
    assert acme.metadata is not None
    assert acme.metadata["tags"] == ["vip"]
    (source,) = acme.sources
    assert source.key == ("crm", "42")
    assert source.sync_status == SyncStatus.SYNCED
    assert source.last_synced_at is not None
    assert person.metadata is None
    assert person.sources == ()
    assert "unmodeled keys: owner" in caplog.text
