"""
Shared pytest fixtures for the phase budget tests.

Uses SQLite in-memory with StaticPool so all sessions share one connection,
meaning data written in one session is visible to others (important for the
repository, which opens a fresh session per call, and for HTTP client tests).
"""
import asyncio
import uuid
from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

import phasebudget.models  # noqa – registers all SQLAlchemy models with Base.metadata
from phasebudget.core.config import settings
from phasebudget.core.database import Base, get_session_factory
from phasebudget.main import app
from phasebudget.models.project import Milestone, MilestoneMember, Project, Task
from phasebudget.models.worker import Worker
from phasebudget.services.budget_records import (
    AttendanceEntry,
    AttendanceStatus,
    DateRange,
    PhaseRecord,
    WageConfig,
    WageType,
)
from phasebudget.services.budget_repository import SqlBudgetRepository
from phasebudget.services.fetch_policy import FetchPolicy

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ── Shared engine (function-scoped: fresh DB per test) ───────────────────────

@pytest_asyncio.fixture
async def engine():
    """Creates a fresh in-memory SQLite engine per test with a shared connection pool."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,          # single shared connection → all sessions see same data
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncSession:
    """Async DB session for setting up and inspecting data inside tests."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def sql_repo(session_factory) -> SqlBudgetRepository:
    return SqlBudgetRepository(session_factory)


# ── HTTP client fixture ───────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def client(session_factory, monkeypatch) -> AsyncClient:
    """
    FastAPI test client with the session factory overridden to use the test
    engine. Every repository call opens its own session on the shared connection,
    so reports run one worker at a time.
    """
    monkeypatch.setattr(settings, "BUDGET_MAX_CONCURRENCY", 1)
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


# ── Database scenario ─────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def site(db):
    """
    Project with one milestone (2025-09-01 … 2025-09-13), one task and three
    rostered workers. Wage configs and attendance are left to the tests.
    """
    project = Project(name="Harbour Warehouse", budget=Decimal("50000.00"),
                      start_date=date(2025, 9, 1), end_date=date(2025, 12, 31))
    db.add(project)
    await db.flush()

    milestone = Milestone(project_id=project.id, name="Foundations",
                          start_date=date(2025, 9, 1), end_date=date(2025, 9, 13),
                          budget=Decimal("12000.00"))
    db.add(milestone)
    await db.flush()

    task = Task(milestone_id=milestone.id, title="Pour slab")
    workers = [Worker(full_name=name) for name in ("Ada Builder", "Ben Mason", "Cleo Rigger")]
    db.add(task)
    db.add_all(workers)
    await db.flush()

    for w in workers:
        db.add(MilestoneMember(milestone_id=milestone.id, worker_id=w.id))
    await db.commit()

    return {"project": project, "milestone": milestone, "task": task, "workers": workers}


# ── Fetch policy ──────────────────────────────────────────────────────────────

@pytest.fixture
def fast_policy() -> FetchPolicy:
    return FetchPolicy(timeout_seconds=0.5, retries=1, backoff_seconds=0)


# ── In-memory repository ──────────────────────────────────────────────────────

class InMemoryBudgetRepository:
    """
    Dict-backed BudgetRepository for engine tests. Supports failure
    injection per worker plus artificial latency, and tracks calls in flight.
    """

    def __init__(self):
        self.wage_configs: dict[tuple[uuid.UUID, uuid.UUID | None], WageConfig] = {}
        self.phases: dict[uuid.UUID, PhaseRecord] = {}
        self.rosters: dict[uuid.UUID, list[uuid.UUID]] = {}
        self.names: dict[uuid.UUID, str] = {}
        self.tasks: dict[uuid.UUID, tuple[uuid.UUID, str]] = {}
        self.entries: dict[uuid.UUID, AttendanceEntry] = {}

        self.failing_workers: set[uuid.UUID] = set()
        self.slow_workers: set[uuid.UUID] = set()
        self.fail_roster = False
        self.latency = 0.0
        self.write_delay = 0.0
        self.in_flight = 0
        self.max_in_flight = 0
        self.calls: list[str] = []

    # ── Setup helpers ────────────────────────────────────────────────────────

    def add_phase(self, start=date(2025, 9, 1), end=date(2025, 9, 13),
                  budget="10000", name="Phase 1") -> uuid.UUID:
        phase_id = uuid.uuid4()
        self.phases[phase_id] = PhaseRecord(phase_id, name, start, end, Decimal(budget))
        self.rosters[phase_id] = []
        self.tasks[uuid.uuid4()] = (phase_id, f"{name} task")
        return phase_id

    def task_of(self, phase_id: uuid.UUID) -> uuid.UUID:
        return next(t for t, (p, _) in self.tasks.items() if p == phase_id)

    def add_worker(self, phase_id: uuid.UUID | None = None, name: str = "Worker") -> uuid.UUID:
        worker_id = uuid.uuid4()
        self.names[worker_id] = name
        if phase_id is not None:
            self.rosters[phase_id].append(worker_id)
        return worker_id

    def set_wage(self, worker_id, wage_type="daily", daily_rate=None, monthly_salary=None,
                 working_days=26, phase_id=None) -> WageConfig:
        config = WageConfig(
            worker_id=worker_id,
            wage_type=WageType(wage_type),
            daily_rate=Decimal(daily_rate) if daily_rate is not None else None,
            monthly_salary=Decimal(monthly_salary) if monthly_salary is not None else None,
            default_working_days_per_month=working_days,
            phase_id=phase_id,
        )
        self.wage_configs[(worker_id, phase_id)] = config
        return config

    def add_entry(self, phase_id, worker_id, status="full_day", day=date(2025, 9, 2),
                  approved=True) -> AttendanceEntry:
        task_id = self.task_of(phase_id)
        entry = AttendanceEntry(
            id=uuid.uuid4(), worker_id=worker_id, task_id=task_id,
            status=AttendanceStatus(status), date=day, approved=approved,
            task_title=self.tasks[task_id][1],
        )
        self.entries[entry.id] = entry
        return entry

    # ── Instrumentation ──────────────────────────────────────────────────────

    async def _enter(self, call: str, worker_id: uuid.UUID | None = None):
        self.calls.append(call)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if worker_id in self.slow_workers:
                await asyncio.sleep(5)
            await asyncio.sleep(self.latency)
            if worker_id in self.failing_workers:
                raise ConnectionError(f"connection reset while loading {worker_id}")
        finally:
            self.in_flight -= 1

    # ── BudgetRepository ─────────────────────────────────────────────────────

    async def get_wage_config(self, worker_id, phase_id=None):
        await self._enter("get_wage_config", worker_id)
        if phase_id is not None and (worker_id, phase_id) in self.wage_configs:
            return self.wage_configs[(worker_id, phase_id)]
        return self.wage_configs.get((worker_id, None))

    async def find_wage_config(self, worker_id, phase_id=None):
        return self.wage_configs.get((worker_id, phase_id))

    async def save_wage_config(self, config):
        self.wage_configs[(config.worker_id, config.phase_id)] = config
        return config

    async def worker_exists(self, worker_id):
        return worker_id in self.names

    async def get_worker_names(self, worker_ids):
        await self._enter("get_worker_names")
        return {w: self.names[w] for w in worker_ids if w in self.names}

    async def get_phase(self, phase_id):
        await self._enter("get_phase")
        return self.phases.get(phase_id)

    async def get_roster(self, phase_id):
        await self._enter("get_roster")
        if self.fail_roster:
            raise ConnectionError("roster unavailable")
        return list(self.rosters.get(phase_id, []))

    async def get_attendance(self, phase_id, worker_id=None, date_range: DateRange | None = None):
        await self._enter("get_attendance", worker_id)
        return [
            e for e in self.entries.values()
            if self.tasks[e.task_id][0] == phase_id
            and (worker_id is None or e.worker_id == worker_id)
            and (date_range is None or date_range.contains(e.date))
        ]

    async def get_attendance_entry(self, entry_id):
        return self.entries.get(entry_id)

    async def add_attendance(self, worker_id, task_id, status, day):
        await asyncio.sleep(self.write_delay)
        entry = AttendanceEntry(
            id=uuid.uuid4(), worker_id=worker_id, task_id=task_id,
            status=AttendanceStatus(status), date=day, approved=False,
            task_title=self.tasks[task_id][1],
        )
        self.entries[entry.id] = entry
        return entry

    async def set_attendance_approved(self, entry_id, approved):
        await asyncio.sleep(self.write_delay)
        if entry_id not in self.entries:
            return None
        self.entries[entry_id] = replace(self.entries[entry_id], approved=approved)
        return self.entries[entry_id]

    async def set_attendance_status(self, entry_id, status):
        await asyncio.sleep(self.write_delay)
        if entry_id not in self.entries:
            return None
        self.entries[entry_id] = replace(self.entries[entry_id], status=AttendanceStatus(status))
        return self.entries[entry_id]

    async def get_task_phase(self, task_id):
        found = self.tasks.get(task_id)
        return found[0] if found else None


@pytest.fixture
def fake_repo() -> InMemoryBudgetRepository:
    return InMemoryBudgetRepository()
