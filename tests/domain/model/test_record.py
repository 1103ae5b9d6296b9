from __future__ import annotations

from datetime import UTC, date, datetime

from masterdata.domain.model import EntityType, MasterRecord, RecordStatus, SyncStatus
from tests.helpers.records import make_source

NOW = datetime(2025, 1, 1, tzinfo=UTC)
LATER = datetime(2025, 1, 2, tzinfo=UTC)


def _record() -> MasterRecord:
    return MasterRecord(
        organization_id="org-1",
        entity_type=EntityType.COMPANY,
        data={"name": "Acme", "address": {"city": "Berlin", "zip": "10115"}},
        _metadata={"tags": ["vip"]},
    )


def test_new_record_is_scored_and_at_version_one() -> None:
    record = _record()

    assert record.version == 1
    assert record.quality_score == 50
    assert record.tags == ("vip",)


def test_apply_update_merges_shallowly_and_bumps_version() -> None:
    record = _record()

    record.apply_update(
        actor_id="user-2",
        now=LATER,
        data={"email": "a@acme.test", "address": {"city": "Hamburg"}},
    )

    assert record.version == 2
    assert record.data == {
        "name": "Acme",
        "email": "a@acme.test",
        "address": {"city": "Hamburg"},
    }
    assert record.quality_score == 75
    assert record.metadata["last_modified_by"] == "user-2"
    assert record.updated_at == LATER


def test_date_values_are_kept_in_stored_form() -> None:
    record = MasterRecord(
        organization_id="org-1",
        entity_type=EntityType.COMPANY,
        data={"founded": date(2020, 1, 1)},
    )

    record.apply_update(actor_id="user-2", now=LATER, data={"renamed": date(2024, 6, 30)})

    assert record.data == {"founded": "2020-01-01", "renamed": "2024-06-30"}


def test_snapshot_captures_state_before_mutation() -> None:
    record = _record()

    snapshot = record.snapshot(changed_by="user-1", now=NOW)
    record.apply_update(actor_id="user-1", now=LATER, data={"name": "Acme Corp"})

    assert snapshot.version == 1
    assert snapshot.data["name"] == "Acme"
    assert snapshot.master_record_id == record.id


def test_mark_deleted_and_restore() -> None:
    record = _record()
    snapshot = record.snapshot(changed_by="user-1", now=NOW)

    record.mark_deleted(actor_id="user-1", now=NOW)
    assert record.is_deleted
    assert record.version == 2

    record.apply_update(actor_id="user-1", now=LATER, data={"name": "Gone"})
    record.restore_from(snapshot, actor_id="user-3", now=LATER)

    assert record.version == 4
    assert record.data["name"] == "Acme"
    assert record.metadata["restored_from_version"] == 1
    assert record.metadata["last_modified_by"] == "user-3"
    # restore brings back data and metadata only
    assert record.status == RecordStatus.DELETED


def test_sources_are_keyed_by_source_and_external_id() -> None:
    record = _record()

    record.upsert_source(make_source("crm", "1"), now=NOW)
    record.upsert_source(make_source("crm", "2"), now=NOW)
    record.upsert_source(make_source("crm", "1", source_name="CRM v2"), now=LATER)

    assert len(record.sources) == 2
    source = record.get_source("crm", "1")
    assert source is not None
    assert source.source_name == "CRM v2"
    assert record.last_synced_at == LATER
    assert record.version == 1


def test_remove_source_reports_missing_keys() -> None:
    record = _record()
    record.upsert_source(make_source("crm", "1"), now=NOW)

    assert record.remove_source("crm", "1", now=LATER)
    assert not record.remove_source("crm", "1", now=LATER)
    assert record.sources == ()


def test_mark_source_synced_updates_every_attribution_of_source() -> None:
    record = _record()
    record.upsert_source(make_source("crm", "1"), now=NOW)
    record.upsert_source(make_source("crm", "2"), now=NOW)
    record.upsert_source(make_source("erp", "9"), now=NOW)

    assert record.mark_source_synced("crm", now=LATER)
    assert not record.mark_source_synced("billing", now=LATER)

    statuses = {source.key: source.sync_status for source in record.sources}
    assert statuses == {
        ("crm", "1"): SyncStatus.SYNCED,
        ("crm", "2"): SyncStatus.SYNCED,
        ("erp", "9"): SyncStatus.PENDING,
    }
