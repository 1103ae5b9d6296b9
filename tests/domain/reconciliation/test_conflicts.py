from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from masterdata.domain.errors import AlreadyResolvedError, DuplicateKeyError, NotFoundError
from masterdata.domain.model import (
    ConflictStatus,
    ConflictType,
    DataConflict,
    ResolutionStrategy,
)
from masterdata.domain.queries import ConflictQuery
from masterdata.domain.reconciliation import ConflictInput
from tests.helpers.records import ACTOR, ORG, OTHER_ORG, company_input

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from masterdata.adapters.sqlalchemy.unit_of_work import SqlAlchemyReconciliationUnitOfWork
    from masterdata.app import ReconciliationServices
    from tests.helpers.records import FakeClock


def _input(
    record_id: UUID,
    *,
    source_id: str = "crm",
    field: str | None = "name",
    source_value: str = "Acme Corp",
    conflict_type: ConflictType = ConflictType.FIELD_VALUE,
) -> ConflictInput:
    return ConflictInput(
        master_record_id=record_id,
        source_id=source_id,
        source_name=source_id.upper(),
        field=field,
        master_value="Acme",
        source_value=source_value,
        conflict_type=conflict_type,
        metadata={"batch": "b-1"},
    )


@pytest.fixture
def record_id(services: ReconciliationServices) -> UUID:
    return services.records.create(ORG, company_input("Acme"), ACTOR).id


def test_create_keeps_one_open_conflict_per_key(
    services: ReconciliationServices, record_id: UUID
) -> None:
    first = services.conflicts.create(ORG, _input(record_id))
    second = services.conflicts.create(ORG, _input(record_id, source_value="Acme Inc"))
    other_source = services.conflicts.create(ORG, _input(record_id, source_id="erp"))

    assert second.id == first.id
    assert other_source.id != first.id
    stored = services.conflicts.require(ORG, first.id)
    assert stored.source_value == "Acme Inc"
    assert stored.metadata == {"batch": "b-1"}


def test_refresh_keeps_escalated_status(
    services: ReconciliationServices, record_id: UUID
) -> None:
    conflict = services.conflicts.create(ORG, _input(record_id))
    services.conflicts.escalate_conflict(ORG, conflict.id, "reviewer", "needs a look")

    refreshed = services.conflicts.create(ORG, _input(record_id, source_value="Acme Inc"))

    assert refreshed.id == conflict.id
    assert refreshed.status == ConflictStatus.ESCALATED
    assert refreshed.source_value == "Acme Inc"


def test_closed_conflicts_do_not_block_new_ones(
    services: ReconciliationServices, record_id: UUID
) -> None:
    conflict = services.conflicts.create(ORG, _input(record_id))
    services.conflicts.mark_resolved(ORG, conflict.id, ResolutionStrategy.KEEP_MASTER, ACTOR)

    fresh = services.conflicts.create(ORG, _input(record_id))

    assert fresh.id != conflict.id
    assert fresh.status == ConflictStatus.PENDING


def test_record_level_conflicts_deduplicate_without_field(
    services: ReconciliationServices, record_id: UUID
) -> None:
    first = services.conflicts.create(
        ORG, _input(record_id, field=None, conflict_type=ConflictType.RECORD_EXISTENCE)
    )
    second = services.conflicts.create(
        ORG, _input(record_id, field=None, conflict_type=ConflictType.RECORD_EXISTENCE)
    )

    assert first.id == second.id


def test_unique_index_rejects_second_open_conflict(
    sqlite_unit_of_work: Callable[[], SqlAlchemyReconciliationUnitOfWork],
    services: ReconciliationServices,
    record_id: UUID,
    clock: FakeClock,
) -> None:
    services.conflicts.create(ORG, _input(record_id))

    with sqlite_unit_of_work() as uow:
        uow.repositories.conflicts.add(
            DataConflict(
                organization_id=ORG,
                master_record_id=record_id,
                source_id="crm",
                source_name="CRM",
                field="name",
                master_value="Acme",
                source_value="Other",
                detected_at=clock(),
            )
        )
        with pytest.raises(DuplicateKeyError):
            uow.commit()


def test_transitions_follow_lifecycle(
    services: ReconciliationServices, record_id: UUID
) -> None:
    conflict = services.conflicts.create(ORG, _input(record_id))

    escalated = services.conflicts.escalate_conflict(ORG, conflict.id, "reviewer")
    assert escalated.status == ConflictStatus.ESCALATED

    pending = services.conflicts.deescalate_conflict(ORG, conflict.id, "lead", "clear now")
    assert pending.status == ConflictStatus.PENDING

    ignored = services.conflicts.ignore_conflict(ORG, conflict.id, "lead")
    assert ignored.status == ConflictStatus.IGNORED
    assert ignored.resolution_notes == "Ignored by user"
    assert ignored.resolved_by == "lead"

    with pytest.raises(AlreadyResolvedError):
        services.conflicts.mark_resolved(ORG, conflict.id, ResolutionStrategy.MANUAL, ACTOR)
    with pytest.raises(AlreadyResolvedError):
        services.conflicts.escalate_conflict(ORG, conflict.id, "reviewer")


def test_transitions_require_conflict_in_organization(
    services: ReconciliationServices, record_id: UUID
) -> None:
    conflict = services.conflicts.create(ORG, _input(record_id))

    assert services.conflicts.get_by_id(OTHER_ORG, conflict.id) is None
    with pytest.raises(NotFoundError):
        services.conflicts.ignore_conflict(OTHER_ORG, conflict.id, ACTOR)
    with pytest.raises(NotFoundError):
        services.conflicts.require(ORG, uuid4())


def test_query_filters_and_orders_newest_first(
    services: ReconciliationServices, record_id: UUID, clock: FakeClock
) -> None:
    start = clock.current
    crm = services.conflicts.create(ORG, _input(record_id))
    erp = services.conflicts.create(ORG, _input(record_id, source_id="erp"))
    billing = services.conflicts.create(ORG, _input(record_id, source_id="billing"))
    services.conflicts.ignore_conflict(ORG, billing.id, ACTOR)

    everything, total = services.conflicts.query(ORG)
    assert total == 3
    assert [conflict.id for conflict in everything] == [billing.id, erp.id, crm.id]

    open_only, _ = services.conflicts.query(
        ORG, ConflictQuery(status=[ConflictStatus.PENDING, ConflictStatus.ESCALATED])
    )
    assert {conflict.id for conflict in open_only} == {crm.id, erp.id}

    by_source, _ = services.conflicts.query(ORG, ConflictQuery(source_id="erp"))
    assert [conflict.id for conflict in by_source] == [erp.id]

    ignored, _ = services.conflicts.query(ORG, ConflictQuery(status=ConflictStatus.IGNORED))
    assert [conflict.id for conflict in ignored] == [billing.id]

    early, _ = services.conflicts.query(
        ORG, ConflictQuery(from_date=start, to_date=crm.detected_at + timedelta(microseconds=1))
    )
    assert [conflict.id for conflict in early] == [crm.id]

    page, page_total = services.conflicts.query(ORG, ConflictQuery(limit=1, offset=1))
    assert page_total == 3
    assert [conflict.id for conflict in page] == [erp.id]

    _, other_total = services.conflicts.query(OTHER_ORG)
    assert other_total == 0


def test_stats_average_only_resolved_conflicts(
    services: ReconciliationServices, record_id: UUID, clock: FakeClock
) -> None:
    resolved = services.conflicts.create(ORG, _input(record_id))
    ignored = services.conflicts.create(ORG, _input(record_id, source_id="erp"))
    services.conflicts.create(
        ORG, _input(record_id, source_id="erp", field="email", conflict_type=ConflictType.SCHEMA)
    )

    clock.current += timedelta(seconds=60)
    services.conflicts.mark_resolved(ORG, resolved.id, ResolutionStrategy.KEEP_MASTER, ACTOR)
    services.conflicts.ignore_conflict(ORG, ignored.id, ACTOR)

    stats = services.conflicts.stats(ORG)

    assert stats.total == 3
    assert stats.by_status == {"resolved": 1, "ignored": 1, "pending": 1}
    assert stats.by_source == {"crm": 1, "erp": 2}
    assert stats.by_type == {"field_value": 2, "schema": 1}
    stored = services.conflicts.require(ORG, resolved.id)
    assert stored.resolved_at is not None
    expected = stored.resolved_at - resolved.detected_at
    assert stats.avg_resolution_time_seconds == pytest.approx(expected.total_seconds())
    assert stats.avg_resolution_time_seconds > 60
