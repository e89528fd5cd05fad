"""
Data-access boundary of the budget engine.

BudgetRepository is the contract the engine depends on; SqlBudgetRepository
implements it on the SQLAlchemy models. Each call opens its own short
session so concurrent per-worker fetches never share one.
"""
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from phasebudget.models.attendance import Attendance
from phasebudget.models.project import Milestone, MilestoneMember, Project, Task
from phasebudget.models.wage_config import WageConfig as WageConfigRow
from phasebudget.models.worker import Worker
from phasebudget.services.budget_records import (
    DEFAULT_WORKING_DAYS_PER_MONTH,
    ZERO,
    AttendanceEntry,
    AttendanceStatus,
    DateRange,
    PhaseRecord,
    PhaseScope,
    WageConfig,
    WageType,
)


class BudgetRepository(Protocol):

    async def get_wage_config(
        self, worker_id: uuid.UUID, phase_id: uuid.UUID | None = None
    ) -> WageConfig | None:
        """Phase override if present, otherwise the worker default."""
        ...

    async def find_wage_config(
        self, worker_id: uuid.UUID, phase_id: uuid.UUID | None = None
    ) -> WageConfig | None:
        """Exact scope only, no fallback."""
        ...

    async def save_wage_config(self, config: WageConfig) -> WageConfig: ...

    async def worker_exists(self, worker_id: uuid.UUID) -> bool: ...

    async def get_worker_names(self, worker_ids: list[uuid.UUID]) -> dict[uuid.UUID, str]: ...

    async def get_phase(self, phase_id: uuid.UUID) -> PhaseRecord | None: ...

    async def get_roster(self, phase_id: uuid.UUID) -> list[uuid.UUID]: ...

    async def get_attendance(
        self,
        phase_id: uuid.UUID,
        worker_id: uuid.UUID | None = None,
        date_range: DateRange | None = None,
    ) -> list[AttendanceEntry]: ...

    async def get_attendance_entry(self, entry_id: uuid.UUID) -> AttendanceEntry | None: ...

    async def add_attendance(
        self,
        worker_id: uuid.UUID,
        task_id: uuid.UUID,
        status: AttendanceStatus,
        day: date,
    ) -> AttendanceEntry: ...

    async def set_attendance_approved(
        self, entry_id: uuid.UUID, approved: bool
    ) -> AttendanceEntry | None: ...

    async def set_attendance_status(
        self, entry_id: uuid.UUID, status: AttendanceStatus
    ) -> AttendanceEntry | None: ...

    async def get_task_phase(self, task_id: uuid.UUID) -> uuid.UUID | None: ...


# ── Row → Record ──────────────────────────────────────────────────────────────

def _to_wage_config(row: WageConfigRow) -> WageConfig:
    return WageConfig(
        worker_id=row.worker_id,
        wage_type=WageType(row.wage_type),
        daily_rate=Decimal(row.daily_rate) if row.daily_rate is not None else None,
        monthly_salary=Decimal(row.monthly_salary) if row.monthly_salary is not None else None,
        default_working_days_per_month=row.default_working_days_per_month or DEFAULT_WORKING_DAYS_PER_MONTH,
        phase_id=row.phase_id,
    )


def _to_entry(row: Attendance, task_title: str | None = None) -> AttendanceEntry:
    return AttendanceEntry(
        id=row.id,
        worker_id=row.worker_id,
        task_id=row.task_id,
        status=AttendanceStatus(row.status) if row.status else AttendanceStatus.UNRECORDED,
        date=row.work_date,
        approved=bool(row.approved),
        task_title=task_title,
    )


class SqlBudgetRepository:

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        scope: PhaseScope = PhaseScope.MILESTONE,
    ):
        self.session_factory = session_factory
        self.scope = PhaseScope(scope)

    # ── Wage configuration ───────────────────────────────────────────────────

    async def _find_wage_row(
        self, db: AsyncSession, worker_id: uuid.UUID, phase_id: uuid.UUID | None
    ) -> WageConfigRow | None:
        query = select(WageConfigRow).where(WageConfigRow.worker_id == worker_id)
        if phase_id is None:
            query = query.where(WageConfigRow.phase_id.is_(None))
        else:
            query = query.where(WageConfigRow.phase_id == phase_id)
        result = await db.execute(query.limit(1))
        return result.scalar_one_or_none()

    async def get_wage_config(
        self, worker_id: uuid.UUID, phase_id: uuid.UUID | None = None
    ) -> WageConfig | None:
        async with self.session_factory() as db:
            if phase_id is not None:
                override = await self._find_wage_row(db, worker_id, phase_id)
                if override is not None:
                    return _to_wage_config(override)
            default = await self._find_wage_row(db, worker_id, None)
            return _to_wage_config(default) if default is not None else None

    async def find_wage_config(
        self, worker_id: uuid.UUID, phase_id: uuid.UUID | None = None
    ) -> WageConfig | None:
        async with self.session_factory() as db:
            row = await self._find_wage_row(db, worker_id, phase_id)
            return _to_wage_config(row) if row is not None else None

    async def save_wage_config(self, config: WageConfig) -> WageConfig:
        async with self.session_factory() as db:
            row = await self._find_wage_row(db, config.worker_id, config.phase_id)
            if row is None:
                row = WageConfigRow(worker_id=config.worker_id, phase_id=config.phase_id)
                db.add(row)
            row.wage_type = WageType(config.wage_type).value
            row.daily_rate = config.daily_rate
            row.monthly_salary = config.monthly_salary
            row.default_working_days_per_month = config.default_working_days_per_month
            await db.commit()
            await db.refresh(row)
            return _to_wage_config(row)

    # ── Workers / phases / rosters ───────────────────────────────────────────

    async def worker_exists(self, worker_id: uuid.UUID) -> bool:
        async with self.session_factory() as db:
            result = await db.execute(select(Worker.id).where(Worker.id == worker_id))
            return result.scalar_one_or_none() is not None

    async def get_worker_names(self, worker_ids: list[uuid.UUID]) -> dict[uuid.UUID, str]:
        if not worker_ids:
            return {}
        async with self.session_factory() as db:
            result = await db.execute(
                select(Worker.id, Worker.full_name).where(Worker.id.in_(worker_ids))
            )
            return {worker_id: name for worker_id, name in result.all()}

    async def get_phase(self, phase_id: uuid.UUID) -> PhaseRecord | None:
        model = Milestone if self.scope == PhaseScope.MILESTONE else Project
        async with self.session_factory() as db:
            result = await db.execute(select(model).where(model.id == phase_id))
            row = result.scalar_one_or_none()
        if row is None:
            return None
        return PhaseRecord(
            id=row.id,
            name=row.name,
            start_date=row.start_date,
            end_date=row.end_date,
            allocated_budget=Decimal(row.budget) if row.budget is not None else ZERO,
        )

    async def get_roster(self, phase_id: uuid.UUID) -> list[uuid.UUID]:
        if self.scope == PhaseScope.MILESTONE:
            query = (
                select(MilestoneMember.worker_id)
                .where(MilestoneMember.milestone_id == phase_id)
                .order_by(MilestoneMember.joined_at)
            )
        else:
            query = (
                select(MilestoneMember.worker_id)
                .join(Milestone, Milestone.id == MilestoneMember.milestone_id)
                .where(Milestone.project_id == phase_id)
                .distinct()
            )
        async with self.session_factory() as db:
            result = await db.execute(query)
            return list(result.scalars().all())

    async def get_task_phase(self, task_id: uuid.UUID) -> uuid.UUID | None:
        if self.scope == PhaseScope.MILESTONE:
            query = select(Task.milestone_id).where(Task.id == task_id)
        else:
            query = (
                select(Milestone.project_id)
                .join(Task, Task.milestone_id == Milestone.id)
                .where(Task.id == task_id)
            )
        async with self.session_factory() as db:
            result = await db.execute(query)
            return result.scalar_one_or_none()

    # ── Attendance ───────────────────────────────────────────────────────────

    def _attendance_query(self):
        query = select(Attendance, Task.title).join(Task, Task.id == Attendance.task_id)
        if self.scope == PhaseScope.PROJECT:
            query = query.join(Milestone, Milestone.id == Task.milestone_id)
        return query

    def _phase_filter(self, phase_id: uuid.UUID):
        if self.scope == PhaseScope.MILESTONE:
            return Task.milestone_id == phase_id
        return Milestone.project_id == phase_id

    async def get_attendance(
        self,
        phase_id: uuid.UUID,
        worker_id: uuid.UUID | None = None,
        date_range: DateRange | None = None,
    ) -> list[AttendanceEntry]:
        query = self._attendance_query().where(self._phase_filter(phase_id))
        if worker_id is not None:
            query = query.where(Attendance.worker_id == worker_id)
        if date_range is not None:
            query = query.where(
                Attendance.work_date >= date_range.start,
                Attendance.work_date <= date_range.end,
            )
        query = query.order_by(Attendance.work_date, Attendance.created_at)

        async with self.session_factory() as db:
            result = await db.execute(query)
            return [_to_entry(row, title) for row, title in result.all()]

    async def _load_entry(self, db: AsyncSession, entry_id: uuid.UUID) -> AttendanceEntry | None:
        result = await db.execute(
            select(Attendance, Task.title)
            .join(Task, Task.id == Attendance.task_id)
            .where(Attendance.id == entry_id)
        )
        found = result.one_or_none()
        if found is None:
            return None
        row, title = found
        return _to_entry(row, title)

    async def get_attendance_entry(self, entry_id: uuid.UUID) -> AttendanceEntry | None:
        async with self.session_factory() as db:
            return await self._load_entry(db, entry_id)

    async def add_attendance(
        self,
        worker_id: uuid.UUID,
        task_id: uuid.UUID,
        status: AttendanceStatus,
        day: date,
    ) -> AttendanceEntry:
        async with self.session_factory() as db:
            row = Attendance(
                worker_id=worker_id,
                task_id=task_id,
                status=AttendanceStatus(status).value,
                work_date=day,
                approved=False,
            )
            db.add(row)
            await db.commit()
            return await self._load_entry(db, row.id)

    async def set_attendance_approved(
        self, entry_id: uuid.UUID, approved: bool
    ) -> AttendanceEntry | None:
        async with self.session_factory() as db:
            row = await db.get(Attendance, entry_id)
            if row is None:
                return None
            row.approved = approved
            row.approved_at = datetime.now(timezone.utc) if approved else None
            await db.commit()
            return await self._load_entry(db, entry_id)

    async def set_attendance_status(
        self, entry_id: uuid.UUID, status: AttendanceStatus
    ) -> AttendanceEntry | None:
        async with self.session_factory() as db:
            row = await db.get(Attendance, entry_id)
            if row is None:
                return None
            row.status = AttendanceStatus(status).value
            await db.commit()
            return await self._load_entry(db, entry_id)
