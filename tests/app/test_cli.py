from __future__ import annotations

from datetime import UTC, datetime
from types import SimpleNamespace
from uuid import uuid4

import pytest

from masterdata.app import OrganizationStats
from masterdata.domain.model import AutoResolutionPolicy, ConflictStatus, ResolutionStrategy
from masterdata.domain.queries import ChangeStats, ConflictStats, RecordStats
from masterdata.domain.reconciliation import MISSING, BulkResolutionResult, ResolutionOptions
from masterdata.ui import cli as cli_module


def _capture(
    monkeypatch: pytest.MonkeyPatch, name: str, result: object = None
) -> dict[str, object]:
    captured: dict[str, object] = {}

    def fake(*args: object, **kwargs: object) -> object:
        captured["args"] = args
        captured.update(kwargs)
        return result

    monkeypatch.setattr(cli_module, name, fake)
    return captured


def test_configure_parses_priority(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture(monkeypatch, "configure_organization")

    cli_module.main(
        [
            "--org",
            "org-1",
            "configure",
            "--enable",
            "--policy",
            "source_priority",
            "--priority",
            "erp, crm,",
        ]
    )

    assert captured["args"] == ("org-1",)
    assert captured["enabled"] is True
    assert captured["policy"] == AutoResolutionPolicy.SOURCE_PRIORITY
    assert captured["source_priority"] == ["erp", "crm"]


def test_resolve_decodes_merged_value(monkeypatch: pytest.MonkeyPatch) -> None:
    conflict_id = uuid4()
    outcome = SimpleNamespace(
        conflict=SimpleNamespace(id=conflict_id, resolution=ResolutionStrategy.MERGE),
        applied_changes=True,
    )
    captured = _capture(monkeypatch, "resolve_conflict", outcome)

    cli_module.main(
        [
            "--org",
            "org-1",
            "--actor",
            "reviewer",
            "resolve",
            "--conflict-id",
            str(conflict_id),
            "--strategy",
            "merge",
            "--merged-value",
            '{"city": "Berlin"}',
            "--notes",
            "checked",
        ]
    )

    assert captured["args"] == ("org-1", conflict_id, ResolutionStrategy.MERGE)
    assert captured["actor_id"] == "reviewer"
    options = captured["options"]
    assert isinstance(options, ResolutionOptions)
    assert options.merged_value == {"city": "Berlin"}
    assert options.notes == "checked"


def test_resolve_without_merged_value_leaves_it_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    conflict_id = uuid4()
    outcome = SimpleNamespace(
        conflict=SimpleNamespace(id=conflict_id, resolution=ResolutionStrategy.KEEP_MASTER),
        applied_changes=False,
    )
    captured = _capture(monkeypatch, "resolve_conflict", outcome)

    cli_module.main(
        [
            "--org",
            "org-1",
            "resolve",
            "--conflict-id",
            str(conflict_id),
            "--strategy",
            "keep_master",
        ]
    )

    options = captured["options"]
    assert isinstance(options, ResolutionOptions)
    assert options.merged_value is MISSING
    assert captured["actor_id"] == "system"


def test_auto_resolve_collects_conflict_ids(monkeypatch: pytest.MonkeyPatch) -> None:
    first, second = uuid4(), uuid4()
    captured = _capture(monkeypatch, "auto_resolve_conflicts", BulkResolutionResult(resolved=2))

    cli_module.main(
        [
            "--org",
            "org-1",
            "auto-resolve",
            "--conflict-id",
            str(first),
            "--conflict-id",
            str(second),
        ]
    )

    assert captured["args"] == ("org-1", [first, second])


def test_auto_resolve_without_ids_targets_everything(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture(monkeypatch, "auto_resolve_conflicts", BulkResolutionResult())

    cli_module.main(["--org", "org-1", "auto-resolve"])

    assert captured["args"] == ("org-1", None)


def test_conflicts_and_stats_commands(monkeypatch: pytest.MonkeyPatch) -> None:
    listed = _capture(monkeypatch, "list_conflicts", ([], 0))
    stats = _capture(
        monkeypatch,
        "organization_stats",
        OrganizationStats(records=RecordStats(total=0), conflicts=ConflictStats(total=0)),
    )

    cli_module.main(["--org", "org-1", "conflicts", "--status", "pending", "--limit", "5"])
    cli_module.main(["--org", "org-1", "stats"])

    assert listed["status"] == ConflictStatus.PENDING
    assert listed["limit"] == 5
    assert stats["args"] == ("org-1",)


def test_organization_falls_back_to_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MASTERDATA_ORGANIZATION_ID", "org-env")
    listed = _capture(monkeypatch, "list_conflicts", ([], 0))

    cli_module.main(["conflicts"])

    assert listed["args"] == ("org-env",)



@pytest.mark.parametrize(
    ("command", "function", "status"),
    [
        ("ignore", "ignore_conflict", ConflictStatus.IGNORED),
        ("escalate", "escalate_conflict", ConflictStatus.ESCALATED),
    ],
)
def test_triage_commands_pass_actor_and_reason(
    monkeypatch: pytest.MonkeyPatch, command: str, function: str, status: ConflictStatus
) -> None:
    conflict_id = uuid4()
    captured = _capture(monkeypatch, function, SimpleNamespace(id=conflict_id, status=status))

    cli_module.main(
        [
            "--org",
            "org-1",
            "--actor",
            "reviewer",
            command,
            "--conflict-id",
            str(conflict_id),
            "--reason",
            "needs a second look",
        ]
    )

    assert captured["args"] == ("org-1", conflict_id)
    assert captured["actor_id"] == "reviewer"
    assert captured["reason"] == "needs a second look"


def test_change_stats_parses_date_window(monkeypatch: pytest.MonkeyPatch) -> None:
    stats = ChangeStats(total=1, by_type={"create": 1}, timeline=[("2025-01-01", 1)])
    captured = _capture(monkeypatch, "change_stats", stats)

    cli_module.main(
        [
            "--org",
            "org-1",
            "change-stats",
            "--from-date",
            "2025-01-01",
            "--to-date",
            "2025-01-31T23:59:59+00:00",
        ]
    )

    assert captured["args"] == ("org-1",)
    assert captured["from_date"] == datetime(2025, 1, 1, tzinfo=UTC)
    assert captured["to_date"] == datetime(2025, 1, 31, 23, 59, 59, tzinfo=UTC)


@pytest.mark.parametrize(
    "argv",
    [
        ["conflicts"],
        ["--org", "org-1", "conflicts", "--limit", "0"],
        ["--org", "org-1", "resolve", "--conflict-id", "not-a-uuid", "--strategy", "merge"],
        ["--org", "org-1", "resolve", "--conflict-id", "x", "--strategy", "overwrite"],
        ["--org", "org-1", "auto-resolve", "--conflict-id", "nope"],
        ["--org", "org-1", "ignore", "--conflict-id", "nope"],
        ["--org", "org-1", "escalate"],
        ["--org", "org-1", "change-stats", "--from-date", "yesterday"],
        [
            "--org",
            "org-1",
            "change-stats",
            "--from-date",
            "2025-02-01",
            "--to-date",
            "2025-01-01",
        ],
        [
            "--org",
            "org-1",
            "resolve",
            "--conflict-id",
            str(uuid4()),
            "--strategy",
            "merge",
            "--merged-value",
            "{broken",
        ],
    ],
)
def test_invalid_arguments_exit_with_two(
    monkeypatch: pytest.MonkeyPatch, argv: list[str]
) -> None:
    monkeypatch.delenv("MASTERDATA_ORGANIZATION_ID", raising=False)
    listed = _capture(monkeypatch, "list_conflicts", ([], 0))
    resolved = _capture(monkeypatch, "resolve_conflict")

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(argv)

    assert excinfo.value.code == 2
    assert listed == {}
    assert resolved == {}


def test_fatal_errors_exit_with_one(monkeypatch: pytest.MonkeyPatch) -> None:
    def explode(*_: object, **__: object) -> None:
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(cli_module, "organization_stats", explode)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["--org", "org-1", "stats"])

    assert excinfo.value.code == 1
