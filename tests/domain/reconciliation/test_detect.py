from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from masterdata.domain.errors import NotFoundError
from masterdata.domain.model import ConflictStatus, ConflictType
from masterdata.domain.reconciliation import SourcePayload, is_conflicting
from tests.helpers.records import ACTOR, ORG, OTHER_ORG, company_input

if TYPE_CHECKING:
    from uuid import UUID

    from masterdata.app import ReconciliationServices
    from masterdata.domain.model import FieldValue


@pytest.mark.parametrize(
    ("master", "source", "expected"),
    [
        ("Acme", "Acme Corp", True),
        ("Acme", "Acme", False),
        ({"city": "Berlin"}, {"city": "Berlin"}, False),
        ({"city": "Berlin"}, {"city": "Hamburg"}, True),
        ("Acme", "", False),
        ("Acme", None, False),
        (None, "Acme", False),
        (1, True, True),
        ("", "Acme", True),
    ],
)
def test_is_conflicting(master: object, source: object, expected: bool) -> None:
    assert is_conflicting(master, source) is expected  # pyright: ignore[reportArgumentType]


def test_detect_records_one_conflict_per_disagreeing_field(
    services: ReconciliationServices,
) -> None:
    record = services.records.create(
        ORG, company_input("Acme", email="a@acme.test", phone="1"), ACTOR
    )

    conflicts = services.detector.detect(
        ORG,
        record.id,
        "crm",
        "CRM",
        {"name": "Acme Corp", "email": "a@acme.test", "phone": "", "website": "acme.test"},
    )

    assert len(conflicts) == 1
    conflict = conflicts[0]
    assert conflict.field == "name"
    assert conflict.master_value == "Acme"
    assert conflict.source_value == "Acme Corp"
    assert conflict.conflict_type == ConflictType.FIELD_VALUE
    assert conflict.status == ConflictStatus.PENDING
    # detection never touches the record
    assert services.records.require(ORG, record.id).version == 1


def test_detect_ignores_empty_or_non_mapping_payloads(services: ReconciliationServices) -> None:
    record = services.records.create(ORG, company_input(), ACTOR)

    assert services.detector.detect(ORG, record.id, "crm", "CRM", {}) == []
    assert services.detector.detect(ORG, record.id, "crm", "CRM", None) == []
    assert services.detector.detect(ORG, record.id, "crm", "CRM", ["name"]) == []


def test_detect_requires_record_in_organization(services: ReconciliationServices) -> None:
    record = services.records.create(ORG, company_input(), ACTOR)

    with pytest.raises(NotFoundError):
        services.detector.detect(OTHER_ORG, record.id, "crm", "CRM", {"name": "X"})
    with pytest.raises(NotFoundError):
        services.detector.detect(ORG, uuid4(), "crm", "CRM", {})


def test_repeated_detection_refreshes_open_conflict(services: ReconciliationServices) -> None:
    record = services.records.create(ORG, company_input("Acme"), ACTOR)

    first = services.detector.detect(ORG, record.id, "crm", "CRM", {"name": "Acme Corp"})
    second = services.detector.detect(ORG, record.id, "crm", "CRM", {"name": "Acme Inc"})

    assert first[0].id == second[0].id
    assert second[0].source_value == "Acme Inc"
    assert second[0].detected_at > first[0].detected_at
    _, total = services.conflicts.query(ORG)
    assert total == 1


def test_detect_batch_isolates_failures(services: ReconciliationServices) -> None:
    record = services.records.create(ORG, company_input("Acme"), ACTOR)
    missing = uuid4()

    result = services.detector.detect_batch(
        ORG,
        [
            _payload(missing, "crm", {"name": "X"}),
            _payload(record.id, "crm", {"name": "Acme Corp"}),
            _payload(record.id, "erp", {"name": "ACME"}),
        ],
    )

    assert result.failed == 1
    assert result.errors[0].item_id == missing
    assert [conflict.source_id for conflict in result.conflicts] == ["crm", "erp"]


def test_equal_date_values_do_not_conflict(services: ReconciliationServices) -> None:
    record = services.records.create(ORG, company_input("Acme", founded=date(2020, 1, 1)), ACTOR)
    assert record.data["founded"] == "2020-01-01"

    same = services.detector.detect(ORG, record.id, "crm", "CRM", {"founded": date(2020, 1, 1)})
    assert same == []

    (conflict,) = services.detector.detect(
        ORG, record.id, "crm", "CRM", {"founded": date(2021, 3, 4)}
    )
    assert conflict.master_value == "2020-01-01"
    assert conflict.source_value == "2021-03-04"


def test_detect_batch_continues_after_storage_failure(services: ReconciliationServices) -> None:
    priced = services.records.create(ORG, company_input("Acme", price=2), ACTOR)
    other = services.records.create(ORG, company_input("Initech"), ACTOR)

    result = services.detector.detect_batch(
        ORG,
        [
            _payload(priced.id, "crm", {"price": Decimal("1.5")}),  # pyright: ignore[reportArgumentType]
            _payload(other.id, "crm", {"name": "Initrode"}),
        ],
    )

    assert result.failed == 1
    assert result.errors[0].item_id == priced.id
    assert [conflict.master_record_id for conflict in result.conflicts] == [other.id]
    _, total = services.conflicts.query(ORG)
    assert total == 1


def _payload(record_id: UUID, source_id: str, data: dict[str, FieldValue]) -> SourcePayload:
    return SourcePayload(
        master_record_id=record_id,
        source_id=source_id,
        source_name=source_id.upper(),
        data=data,
    )
