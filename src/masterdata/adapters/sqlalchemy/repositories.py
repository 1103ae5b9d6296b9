"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from collections import Counter
from collections.abc import Collection
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select

from masterdata.adapters.sqlalchemy.mappings import (
    change_record_table,
    data_conflict_table,
    master_record_table,
    master_record_version_table,
)
from masterdata.domain.model import (
    OPEN_CONFLICT_STATUSES,
    ChangeRecord,
    ConflictStatus,
    DataConflict,
    MasterRecord,
    MasterRecordVersion,
    OrganizationSettings,
    RecordStatus,
)
from masterdata.domain.queries import (
    TOP_CHANGE_ACTORS,
    ChangeStats,
    ConflictStats,
    RecordStats,
    SortOrder,
)

if TYPE_CHECKING:
    import uuid
    from collections.abc import Sequence
    from datetime import datetime

    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.orm import Session

    from masterdata.domain.model import ConflictKey
    from masterdata.domain.queries import ChangeQuery, ConflictQuery, RecordQuery


def _count(session: Session, stmt: Select[Any]) -> int:
    subquery = stmt.order_by(None).subquery()
    return session.execute(select(func.count()).select_from(subquery)).scalar_one()


def _grouped_counts(
    session: Session, column: ColumnElement[Any], *criteria: ColumnElement[bool]
) -> dict[str, int]:
    stmt = select(column, func.count()).where(*criteria).group_by(column)
    return {str(key): count for key, count in session.execute(stmt).tuples()}


class SqlAlchemyMasterRecordRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: MasterRecord) -> None:
        self.session.add(entity)

    def get(self, organization_id: str, record_id: uuid.UUID) -> MasterRecord | None:
        stmt = (
            select(MasterRecord)
            .where(master_record_table.c.organization_id == organization_id)
            .where(master_record_table.c.id == record_id)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def get_by_external_id(
        self, organization_id: str, entity_type: str, external_id: str
    ) -> MasterRecord | None:
        stmt = (
            select(MasterRecord)
            .where(master_record_table.c.organization_id == organization_id)
            .where(master_record_table.c.entity_type == entity_type)
            .where(master_record_table.c.external_id == external_id)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def query(
        self, organization_id: str, criteria: RecordQuery
    ) -> tuple[Sequence[MasterRecord], int]:
        table = master_record_table
        stmt = select(MasterRecord).where(table.c.organization_id == organization_id)
        if criteria.entity_type:
            stmt = stmt.where(table.c.entity_type == criteria.entity_type)
        if criteria.status is not None:
            stmt = stmt.where(table.c.status == criteria.status)
        else:
            stmt = stmt.where(table.c.status != RecordStatus.DELETED)
        if criteria.min_quality_score is not None:
            stmt = stmt.where(table.c.quality_score >= criteria.min_quality_score)

        sort_column = table.c[str(criteria.sort_by)]
        ordering = sort_column.asc() if criteria.sort_order == SortOrder.ASC else sort_column.desc()
        stmt = stmt.order_by(ordering, table.c.id)

        if _needs_document_filter(criteria):
            # Search, source and tag filters look inside JSON documents.
            matching = [
                record
                for record in self.session.execute(stmt).scalars()
                if _matches_document_filters(record, criteria)
            ]
            page = matching[criteria.offset : criteria.offset + criteria.limit]
            return page, len(matching)

        total = _count(self.session, stmt)
        page_stmt = stmt.limit(criteria.limit).offset(criteria.offset)
        return list(self.session.execute(page_stmt).scalars()), total

    def stats(self, organization_id: str) -> RecordStats:
        table = master_record_table
        in_org = table.c.organization_id == organization_id
        live = table.c.status != RecordStatus.DELETED

        total = self.session.execute(
            select(func.count()).select_from(table).where(in_org, live)
        ).scalar_one()
        average = self.session.execute(
            select(func.avg(table.c.quality_score)).where(in_org, live)
        ).scalar_one()

        sources_column = table.c._sources  # noqa: SLF001
        source_ids: set[str] = set()
        for sources in self.session.execute(select(sources_column).where(in_org, live)).scalars():
            source_ids.update(source_id for source_id, _external_id in sources)

        return RecordStats(
            total=total,
            by_entity_type=_grouped_counts(self.session, table.c.entity_type, in_org, live),
            by_status=_grouped_counts(self.session, table.c.status, in_org),
            avg_quality_score=float(average or 0.0),
            distinct_source_count=len(source_ids),
        )


def _needs_document_filter(criteria: RecordQuery) -> bool:
    return bool(criteria.search or criteria.source_id or criteria.tags)


def _matches_document_filters(record: MasterRecord, criteria: RecordQuery) -> bool:
    if criteria.source_id and not any(
        source.source_id == criteria.source_id for source in record.sources
    ):
        return False
    if criteria.tags and not set(criteria.tags).issubset(record.tags):
        return False
    if criteria.search:
        needle = criteria.search.casefold()
        haystacks = (record.external_id, record.data.get("name"), record.data.get("email"))
        if not any(isinstance(value, str) and needle in value.casefold() for value in haystacks):
            return False
    return True


class SqlAlchemyVersionHistoryRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: MasterRecordVersion) -> None:
        self.session.add(entity)

    def get(
        self, organization_id: str, master_record_id: uuid.UUID, version: int
    ) -> MasterRecordVersion | None:
        table = master_record_version_table
        stmt = (
            select(MasterRecordVersion)
            .where(table.c.organization_id == organization_id)
            .where(table.c.master_record_id == master_record_id)
            .where(table.c.version == version)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def list_for_record(
        self, organization_id: str, master_record_id: uuid.UUID
    ) -> Sequence[MasterRecordVersion]:
        table = master_record_version_table
        stmt = (
            select(MasterRecordVersion)
            .where(table.c.organization_id == organization_id)
            .where(table.c.master_record_id == master_record_id)
            .order_by(table.c.version.desc())
        )
        return list(self.session.execute(stmt).scalars())


class SqlAlchemyConflictRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: DataConflict) -> None:
        self.session.add(entity)

    def get(self, organization_id: str, conflict_id: uuid.UUID) -> DataConflict | None:
        stmt = (
            select(DataConflict)
            .where(data_conflict_table.c.organization_id == organization_id)
            .where(data_conflict_table.c.id == conflict_id)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def find_open(self, organization_id: str, key: ConflictKey) -> DataConflict | None:
        table = data_conflict_table
        master_record_id, source_id, field = key
        field_clause = table.c.field.is_(None) if field is None else table.c.field == field
        stmt = (
            select(DataConflict)
            .where(table.c.organization_id == organization_id)
            .where(table.c.master_record_id == master_record_id)
            .where(table.c.source_id == source_id)
            .where(field_clause)
            .where(table.c.status.in_(sorted(OPEN_CONFLICT_STATUSES)))
            .order_by(table.c.detected_at.desc())
        )
        return self.session.execute(stmt).scalars().first()

    def list_pending(
        self, organization_id: str, conflict_ids: Collection[uuid.UUID] | None = None
    ) -> Sequence[DataConflict]:
        table = data_conflict_table
        stmt = (
            select(DataConflict)
            .where(table.c.organization_id == organization_id)
            .where(table.c.status == ConflictStatus.PENDING)
            .order_by(table.c.detected_at, table.c.id)
        )
        if conflict_ids:
            stmt = stmt.where(table.c.id.in_(list(conflict_ids)))
        return list(self.session.execute(stmt).scalars())

    def query(
        self, organization_id: str, criteria: ConflictQuery
    ) -> tuple[Sequence[DataConflict], int]:
        table = data_conflict_table
        stmt = select(DataConflict).where(table.c.organization_id == organization_id)
        if criteria.master_record_id is not None:
            stmt = stmt.where(table.c.master_record_id == criteria.master_record_id)
        if criteria.source_id:
            stmt = stmt.where(table.c.source_id == criteria.source_id)
        if isinstance(criteria.status, str):
            stmt = stmt.where(table.c.status == criteria.status)
        elif isinstance(criteria.status, Collection):
            stmt = stmt.where(table.c.status.in_(list(criteria.status)))
        if criteria.conflict_type is not None:
            stmt = stmt.where(table.c.conflict_type == criteria.conflict_type)
        if criteria.from_date is not None:
            stmt = stmt.where(table.c.detected_at >= criteria.from_date)
        if criteria.to_date is not None:
            stmt = stmt.where(table.c.detected_at <= criteria.to_date)
        stmt = stmt.order_by(table.c.detected_at.desc(), table.c.id)

        total = _count(self.session, stmt)
        page_stmt = stmt.limit(criteria.limit).offset(criteria.offset)
        return list(self.session.execute(page_stmt).scalars()), total

    def stats(self, organization_id: str) -> ConflictStats:
        table = data_conflict_table
        in_org = table.c.organization_id == organization_id

        total = self.session.execute(
            select(func.count()).select_from(table).where(in_org)
        ).scalar_one()

        durations = [
            (resolved_at - detected_at).total_seconds()
            for detected_at, resolved_at in self.session.execute(
                select(table.c.detected_at, table.c.resolved_at).where(
                    in_org,
                    table.c.status == ConflictStatus.RESOLVED,
                    table.c.resolved_at.is_not(None),
                )
            ).tuples()
        ]

        return ConflictStats(
            total=total,
            by_status=_grouped_counts(self.session, table.c.status, in_org),
            by_source=_grouped_counts(self.session, table.c.source_id, in_org),
            by_type=_grouped_counts(self.session, table.c.conflict_type, in_org),
            avg_resolution_time_seconds=sum(durations) / len(durations) if durations else 0.0,
        )


class SqlAlchemyChangeRecordRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: ChangeRecord) -> None:
        self.session.add(entity)

    def history(
        self,
        organization_id: str,
        master_record_id: uuid.UUID,
        *,
        limit: int,
        offset: int,
    ) -> Sequence[ChangeRecord]:
        table = change_record_table
        stmt = (
            select(ChangeRecord)
            .where(table.c.organization_id == organization_id)
            .where(table.c.master_record_id == master_record_id)
            .order_by(table.c.created_at.desc(), table.c.version.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(self.session.execute(stmt).scalars())

    def query(
        self, organization_id: str, criteria: ChangeQuery
    ) -> tuple[Sequence[ChangeRecord], int]:
        table = change_record_table
        stmt = select(ChangeRecord).where(
            *_change_window(organization_id, criteria.from_date, criteria.to_date)
        )
        if criteria.master_record_id is not None:
            stmt = stmt.where(table.c.master_record_id == criteria.master_record_id)
        if criteria.change_type is not None:
            stmt = stmt.where(table.c.change_type == criteria.change_type)
        if criteria.changed_by:
            stmt = stmt.where(table.c.changed_by == criteria.changed_by)
        if criteria.source:
            stmt = stmt.where(table.c.source == criteria.source)
        stmt = stmt.order_by(table.c.created_at.desc(), table.c.id)

        total = _count(self.session, stmt)
        page_stmt = stmt.limit(criteria.limit).offset(criteria.offset)
        return list(self.session.execute(page_stmt).scalars()), total

    def stats(
        self,
        organization_id: str,
        *,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> ChangeStats:
        table = change_record_table
        window = _change_window(organization_id, from_date, to_date)

        change_count = func.count().label("change_count")
        top_users = (
            select(table.c.changed_by, change_count)
            .where(*window)
            .group_by(table.c.changed_by)
            .order_by(change_count.desc(), table.c.changed_by)
            .limit(TOP_CHANGE_ACTORS)
        )
        per_day = Counter(
            created_at.date().isoformat()
            for created_at in self.session.execute(
                select(table.c.created_at).where(*window)
            ).scalars()
        )

        return ChangeStats(
            total=sum(per_day.values()),
            by_type=_grouped_counts(self.session, table.c.change_type, *window),
            by_user=dict(self.session.execute(top_users).tuples()),
            by_source=_grouped_counts(
                self.session, table.c.source, *window, table.c.source.is_not(None)
            ),
            timeline=sorted(per_day.items()),
        )


def _change_window(
    organization_id: str, from_date: datetime | None, to_date: datetime | None
) -> list[ColumnElement[bool]]:
    table = change_record_table
    criteria: list[ColumnElement[bool]] = [table.c.organization_id == organization_id]
    if from_date is not None:
        criteria.append(table.c.created_at >= from_date)
    if to_date is not None:
        criteria.append(table.c.created_at <= to_date)
    return criteria


class SqlAlchemyOrganizationSettingsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: OrganizationSettings) -> None:
        self.session.add(entity)

    def get(self, organization_id: str) -> OrganizationSettings | None:
        return self.session.get(OrganizationSettings, organization_id)
