"""
Tests für SqlBudgetRepository gegen SQLite – Vorrang Override/Default,
Phasen- und Datumsfilter der Anwesenheit, Freigabe, Projekt-Scope.
"""
import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from phasebudget.models.attendance import Attendance
from phasebudget.models.project import Milestone, MilestoneMember, Task
from phasebudget.models.wage_config import WageConfig as WageConfigRow
from phasebudget.services.budget_records import (
    AttendanceStatus,
    DateRange,
    PhaseScope,
    ReportFilters,
    WageConfig,
    WageType,
)
from phasebudget.services.budget_repository import SqlBudgetRepository
from phasebudget.services.budget_service import ProjectBudgetReportBuilder


def attendance(worker, task, day, status="full_day", approved=True):
    return Attendance(worker_id=worker.id, task_id=task.id, work_date=day,
                      status=status, approved=approved)


# ── Wage configuration ────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_override_wins_over_default(db, site, sql_repo):
    worker = site["workers"][0]
    milestone = site["milestone"]
    db.add(WageConfigRow(worker_id=worker.id, wage_type="monthly", monthly_salary=Decimal("2600")))
    db.add(WageConfigRow(worker_id=worker.id, phase_id=milestone.id, wage_type="daily",
                         daily_rate=Decimal("140.00")))
    await db.commit()

    resolved = await sql_repo.get_wage_config(worker.id, milestone.id)
    default = await sql_repo.get_wage_config(worker.id)

    assert resolved.wage_type == WageType.DAILY
    assert resolved.daily_rate == Decimal("140.00")
    assert resolved.monthly_salary is None
    assert default.wage_type == WageType.MONTHLY
    assert default.phase_id is None


@pytest.mark.asyncio
async def test_default_used_when_no_override(db, site, sql_repo):
    worker = site["workers"][1]
    db.add(WageConfigRow(worker_id=worker.id, wage_type="daily", daily_rate=Decimal("90.00"),
                         default_working_days_per_month=22))
    await db.commit()

    config = await sql_repo.get_wage_config(worker.id, site["milestone"].id)

    assert config.daily_rate == Decimal("90.00")
    assert config.default_working_days_per_month == 22


@pytest.mark.asyncio
async def test_missing_wage_config_is_none(site, sql_repo):
    assert await sql_repo.get_wage_config(site["workers"][2].id, site["milestone"].id) is None


@pytest.mark.asyncio
async def test_second_default_violates_unique_index(db, site):
    worker = site["workers"][0]
    db.add(WageConfigRow(worker_id=worker.id, wage_type="daily", daily_rate=Decimal("90")))
    await db.commit()

    db.add(WageConfigRow(worker_id=worker.id, wage_type="daily", daily_rate=Decimal("95")))
    with pytest.raises(IntegrityError):
        await db.commit()
    await db.rollback()


@pytest.mark.asyncio
async def test_save_wage_config_upserts_by_scope(site, sql_repo):
    worker = site["workers"][0]
    await sql_repo.save_wage_config(WageConfig(worker.id, WageType.DAILY, daily_rate=Decimal("80")))
    await sql_repo.save_wage_config(WageConfig(worker.id, WageType.DAILY, daily_rate=Decimal("85")))
    await sql_repo.save_wage_config(
        WageConfig(worker.id, WageType.MONTHLY, monthly_salary=Decimal("3000"),
                   phase_id=site["milestone"].id)
    )

    default = await sql_repo.find_wage_config(worker.id)
    override = await sql_repo.find_wage_config(worker.id, site["milestone"].id)

    assert default.daily_rate == Decimal("85")
    assert override.monthly_salary == Decimal("3000")


# ── Phase, roster, names ──────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_get_phase_and_roster(site, sql_repo):
    milestone = site["milestone"]

    phase = await sql_repo.get_phase(milestone.id)
    roster = await sql_repo.get_roster(milestone.id)
    names = await sql_repo.get_worker_names(roster)

    assert phase.name == "Foundations"
    assert phase.start_date == date(2025, 9, 1)
    assert phase.allocated_budget == Decimal("12000.00")
    assert set(roster) == {w.id for w in site["workers"]}
    assert sorted(names.values()) == ["Ada Builder", "Ben Mason", "Cleo Rigger"]
    assert await sql_repo.get_phase(uuid.uuid4()) is None


# ── Attendance ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_attendance_filtered_by_phase_worker_and_range(db, site, sql_repo):
    ada, ben, _ = site["workers"]
    task = site["task"]
    other_ms = Milestone(project_id=site["project"].id, name="Framing",
                         start_date=date(2025, 9, 14), end_date=date(2025, 9, 30))
    db.add(other_ms)
    await db.flush()
    other_task = Task(milestone_id=other_ms.id, title="Raise walls")
    db.add(other_task)
    await db.flush()
    db.add_all([
        attendance(ada, task, date(2025, 9, 1)),
        attendance(ada, task, date(2025, 9, 13), approved=False),
        attendance(ada, task, date(2025, 9, 14)),
        attendance(ben, task, date(2025, 9, 2)),
        attendance(ada, other_task, date(2025, 9, 5)),
    ])
    await db.commit()

    entries = await sql_repo.get_attendance(
        site["milestone"].id, ada.id, DateRange(date(2025, 9, 1), date(2025, 9, 13))
    )

    assert [e.date for e in entries] == [date(2025, 9, 1), date(2025, 9, 13)]
    assert [e.approved for e in entries] == [True, False]
    assert entries[0].task_title == "Pour slab"
    assert len(await sql_repo.get_attendance(site["milestone"].id)) == 4


@pytest.mark.asyncio
async def test_status_defaults_to_unrecorded(db, site, sql_repo):
    db.add(Attendance(worker_id=site["workers"][0].id, task_id=site["task"].id, work_date=date(2025, 9, 3)))
    await db.commit()

    entries = await sql_repo.get_attendance(site["milestone"].id)

    assert entries[0].status == AttendanceStatus.UNRECORDED


@pytest.mark.asyncio
async def test_add_approve_and_correct_attendance(site, sql_repo):
    ada = site["workers"][0]

    entry = await sql_repo.add_attendance(ada.id, site["task"].id, AttendanceStatus.FULL_DAY, date(2025, 9, 4))
    assert entry.approved is False

    approved = await sql_repo.set_attendance_approved(entry.id, True)
    corrected = await sql_repo.set_attendance_status(entry.id, AttendanceStatus.HALF_DAY)

    assert approved.approved is True
    assert corrected.status == AttendanceStatus.HALF_DAY
    assert corrected.approved is True
    assert await sql_repo.set_attendance_approved(uuid.uuid4(), True) is None
    assert await sql_repo.get_task_phase(site["task"].id) == site["milestone"].id


# ── End-to-end over SQL ───────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_report_over_sql(db, site, sql_repo, fast_policy):
    ada, ben, cleo = site["workers"]
    task = site["task"]
    db.add(WageConfigRow(worker_id=ada.id, wage_type="daily", daily_rate=Decimal("100.00")))
    db.add(WageConfigRow(worker_id=ben.id, wage_type="monthly", monthly_salary=Decimal("2600.00"),
                         default_working_days_per_month=26))
    db.add_all([
        attendance(ada, task, date(2025, 9, 2), "full_day"),
        attendance(ada, task, date(2025, 9, 3), "half_day"),
        attendance(ben, task, date(2025, 9, 4), "full_day", approved=False),
    ])
    await db.commit()

    builder = ProjectBudgetReportBuilder(sql_repo, fast_policy, max_concurrency=1)
    report = await builder.build(site["milestone"].id)

    by_worker = {m.worker_id: m for m in report.member_summaries}
    assert by_worker[ada.id].final_budget == Decimal("150")
    assert by_worker[ben.id].final_budget == Decimal("1300")
    assert by_worker[ben.id].pending_entries == 1
    assert cleo.id not in by_worker
    assert report.total_budget_spent == Decimal("1450")
    assert report.total_budget_allocated == Decimal("12000.00")
    assert len(report.task_budgets) == 2


@pytest.mark.asyncio
async def test_project_scope_rolls_up_milestones(db, site, session_factory, fast_policy):
    ada = site["workers"][0]
    project = site["project"]
    second = Milestone(project_id=project.id, name="Framing",
                       start_date=date(2025, 9, 14), end_date=date(2025, 9, 30))
    db.add(second)
    await db.flush()
    second_task = Task(milestone_id=second.id, title="Raise walls")
    db.add(second_task)
    await db.flush()
    db.add(MilestoneMember(milestone_id=second.id, worker_id=ada.id))
    db.add(WageConfigRow(worker_id=ada.id, wage_type="daily", daily_rate=Decimal("100.00")))
    db.add_all([
        attendance(ada, site["task"], date(2025, 9, 2)),
        attendance(ada, second_task, date(2025, 9, 20)),
    ])
    await db.commit()

    repo = SqlBudgetRepository(session_factory, scope=PhaseScope.PROJECT)
    builder = ProjectBudgetReportBuilder(repo, fast_policy, max_concurrency=1)
    report = await builder.build(project.id, ReportFilters(worker_id=ada.id))

    assert report.phase_name == "Harbour Warehouse"
    assert len(await repo.get_roster(project.id)) == 3
    assert report.member_summaries[0].total_full_days == 2
    assert report.total_budget_spent == Decimal("200")
    assert await repo.get_task_phase(second_task.id) == project.id
