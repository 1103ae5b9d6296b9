from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from masterdata.app import (
    auto_resolve_conflicts,
    change_stats,
    configure_organization,
    detect_conflicts_from_file,
    escalate_conflict,
    ignore_conflict,
    import_records,
    list_conflicts,
    organization_stats,
    resolve_conflict,
)
from masterdata.config import ConfigurationError, configure_logging, require_env_vars
from masterdata.domain.model import AutoResolutionPolicy, ConflictStatus, ResolutionStrategy
from masterdata.domain.reconciliation import SYSTEM_ACTOR, ResolutionOptions

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

ORGANIZATION_ENV_VAR = "MASTERDATA_ORGANIZATION_ID"


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile master data across sources")
    parser.add_argument(
        "--org",
        type=str,
        help=f"Organization id (defaults to ${ORGANIZATION_ENV_VAR})",
    )
    parser.add_argument(
        "--actor",
        type=str,
        default=SYSTEM_ACTOR,
        help="Actor id recorded on changes (default: %(default)s)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    configure = subparsers.add_parser("configure", help="Store reconciliation settings")
    enabled = configure.add_mutually_exclusive_group(required=True)
    enabled.add_argument("--enable", dest="enabled", action="store_true")
    enabled.add_argument("--disable", dest="enabled", action="store_false")
    configure.add_argument(
        "--policy",
        type=AutoResolutionPolicy,
        choices=list(AutoResolutionPolicy),
        default=AutoResolutionPolicy.MANUAL_REVIEW,
        help="Auto-resolution policy (default: %(default)s)",
    )
    configure.add_argument(
        "--priority",
        type=str,
        default="",
        help="Comma separated source ids, highest priority first",
    )

    records = subparsers.add_parser("import-records", help="Create master records from a file")
    records.add_argument("--file", type=Path, required=True, help="JSON record import file")

    detect = subparsers.add_parser("detect", help="Detect conflicts from source payloads")
    detect.add_argument("--payloads", type=Path, required=True, help="JSON payload file")

    conflicts = subparsers.add_parser("conflicts", help="List conflicts")
    conflicts.add_argument(
        "--status",
        type=ConflictStatus,
        choices=list(ConflictStatus),
        help="Only list conflicts in this status",
    )
    conflicts.add_argument("--limit", type=int, help="Maximum number of conflicts to list")

    resolve = subparsers.add_parser("resolve", help="Resolve one conflict")
    resolve.add_argument("--conflict-id", type=str, required=True)
    resolve.add_argument(
        "--strategy",
        type=ResolutionStrategy,
        choices=list(ResolutionStrategy),
        required=True,
    )
    resolve.add_argument(
        "--merged-value",
        type=str,
        help="JSON encoded value for the merge strategy",
    )
    resolve.add_argument("--notes", type=str, help="Resolution notes")

    auto = subparsers.add_parser("auto-resolve", help="Apply the organization's policy")
    auto.add_argument(
        "--conflict-id",
        dest="conflict_ids",
        action="append",
        default=[],
        help="Restrict to this conflict (repeatable)",
    )

    for name, verb in (("ignore", "Ignore"), ("escalate", "Escalate")):
        triage = subparsers.add_parser(name, help=f"{verb} one conflict")
        triage.add_argument("--conflict-id", type=str, required=True)
        triage.add_argument("--reason", type=str, help="Reason recorded on the conflict")

    subparsers.add_parser("stats", help="Show record and conflict statistics")

    changes = subparsers.add_parser("change-stats", help="Show change statistics")
    changes.add_argument("--from-date", type=str, help="ISO date or datetime, inclusive")
    changes.add_argument("--to-date", type=str, help="ISO date or datetime, inclusive")

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _parse_datetime(value: str | None, option: str) -> datetime | None:
    if value is None:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"{option} is not an ISO date: {value}") from exc
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


def _resolve_organization(args: argparse.Namespace) -> str:
    if args.org:
        return args.org
    return require_env_vars((ORGANIZATION_ENV_VAR,))[ORGANIZATION_ENV_VAR]


def _resolution_options(args: argparse.Namespace) -> ResolutionOptions:
    if args.merged_value is None:
        return ResolutionOptions(notes=args.notes)
    try:
        merged = json.loads(args.merged_value)
    except json.JSONDecodeError as exc:
        raise ValueError(f"--merged-value is not valid JSON: {args.merged_value}") from exc
    return ResolutionOptions(merged_value=merged, notes=args.notes)


def _validate(args: argparse.Namespace) -> None:
    """Convert raw string options in place, raising ``ValueError`` on bad input."""

    if args.command in {"resolve", "ignore", "escalate"}:
        args.conflict_id = _parse_uuid(args.conflict_id)
    if args.command == "resolve":
        args.options = _resolution_options(args)
    elif args.command == "auto-resolve":
        args.conflict_ids = [_parse_uuid(value) for value in args.conflict_ids]
    elif args.command == "conflicts" and args.limit is not None and args.limit < 1:
        raise ValueError("--limit must be positive")
    elif args.command == "change-stats":
        args.from_date = _parse_datetime(args.from_date, "--from-date")
        args.to_date = _parse_datetime(args.to_date, "--to-date")
        if args.from_date and args.to_date and args.from_date > args.to_date:
            raise ValueError("--from-date must not be after --to-date")


def _run(args: argparse.Namespace, organization_id: str) -> None:
    if args.command == "configure":
        priority = [item.strip() for item in args.priority.split(",") if item.strip()]
        configure_organization(
            organization_id,
            enabled=args.enabled,
            policy=args.policy,
            source_priority=priority,
        )
    elif args.command == "import-records":
        created = import_records(organization_id, args.file, actor_id=args.actor)
        for record in created:
            log.info("Created %s %s (quality=%s)", record.entity_type, record.id, record.quality_score)
    elif args.command == "detect":
        result = detect_conflicts_from_file(organization_id, args.payloads)
        for conflict in result.conflicts:
            log.info(
                "Conflict %s on %s.%s: %r vs %r",
                conflict.id,
                conflict.master_record_id,
                conflict.field,
                conflict.master_value,
                conflict.source_value,
            )
        for error in result.errors:
            log.warning("Payload for %s failed: %s", error.item_id, error.error)
    elif args.command == "conflicts":
        conflicts, total = list_conflicts(organization_id, status=args.status, limit=args.limit)
        log.info("Listing %d of %d conflict(s)", len(conflicts), total)
        for conflict in conflicts:
            log.info(
                "%s [%s] %s.%s from %s",
                conflict.id,
                conflict.status,
                conflict.master_record_id,
                conflict.field,
                conflict.source_id,
            )
    elif args.command == "resolve":
        outcome = resolve_conflict(
            organization_id,
            args.conflict_id,
            args.strategy,
            actor_id=args.actor,
            options=args.options,
        )
        log.info(
            "Conflict %s resolved with %s (applied_changes=%s)",
            outcome.conflict.id,
            outcome.conflict.resolution,
            outcome.applied_changes,
        )
    elif args.command == "auto-resolve":
        result = auto_resolve_conflicts(organization_id, args.conflict_ids or None)
        log.info("Auto-resolution: resolved=%d, failed=%d", result.resolved, result.failed)
        for error in result.errors:
            log.warning("Conflict %s failed: %s", error.item_id, error.error)
    elif args.command == "stats":
        stats = organization_stats(organization_id)
        log.info(
            "Records: total=%d, avg_quality=%.1f, sources=%d, by_type=%s, by_status=%s",
            stats.records.total,
            stats.records.avg_quality_score,
            stats.records.distinct_source_count,
            stats.records.by_entity_type,
            stats.records.by_status,
        )
        log.info(
            "Conflicts: total=%d, by_status=%s, by_source=%s, avg_resolution=%.1fs",
            stats.conflicts.total,
            stats.conflicts.by_status,
            stats.conflicts.by_source,
            stats.conflicts.avg_resolution_time_seconds,
        )
    elif args.command == "ignore":
        conflict = ignore_conflict(
            organization_id, args.conflict_id, actor_id=args.actor, reason=args.reason
        )
        log.info("Conflict %s is now %s", conflict.id, conflict.status)
    elif args.command == "escalate":
        conflict = escalate_conflict(
            organization_id, args.conflict_id, actor_id=args.actor, reason=args.reason
        )
        log.info("Conflict %s is now %s", conflict.id, conflict.status)
    elif args.command == "change-stats":
        changes = change_stats(organization_id, from_date=args.from_date, to_date=args.to_date)
        log.info(
            "Changes: total=%d, by_type=%s, by_source=%s, by_user=%s",
            changes.total,
            changes.by_type,
            changes.by_source,
            changes.by_user,
        )
        for day, count in changes.timeline:
            log.info("%s: %d change(s)", day, count)
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
        organization_id = _resolve_organization(parsed_args)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        _run(parsed_args, organization_id)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
