"""
Budget API – labour cost reports per phase
"""
import uuid
from datetime import date

from fastapi import APIRouter, HTTPException

from phasebudget.api.deps import Policy, Repository, service_unavailable
from phasebudget.core.config import settings
from phasebudget.core.exceptions import PhaseNotFoundError, TransientFetchError
from phasebudget.schemas.attendance import AttendanceOut
from phasebudget.schemas.budget import MemberBudgetSummaryOut, ProjectBudgetReportOut
from phasebudget.services.attendance_service import AttendanceService
from phasebudget.services.budget_records import ReportFilters, WageType
from phasebudget.services.budget_service import ProjectBudgetReportBuilder

router = APIRouter(prefix="/phases", tags=["budget"])


@router.get("/{phase_id}/budget-report", response_model=ProjectBudgetReportOut)
async def get_budget_report(
    phase_id: uuid.UUID,
    repository: Repository,
    policy: Policy,
    worker_id: uuid.UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    wage_type: WageType | None = None,
):
    """
    Labour cost report of a phase. An unknown phase yields a zero report
    with found=false instead of a 404 so dashboards keep rendering.
    """
    builder = ProjectBudgetReportBuilder(
        repository, policy, max_concurrency=settings.BUDGET_MAX_CONCURRENCY
    )
    filters = ReportFilters(
        worker_id=worker_id, start_date=start_date, end_date=end_date, wage_type=wage_type
    )
    try:
        report = await builder.build(phase_id, filters)
    except TransientFetchError as exc:
        raise service_unavailable(exc)
    return ProjectBudgetReportOut.model_validate(report)


@router.get("/{phase_id}/members/{worker_id}/budget", response_model=MemberBudgetSummaryOut)
async def get_member_budget(
    phase_id: uuid.UUID,
    worker_id: uuid.UUID,
    repository: Repository,
    policy: Policy,
    start_date: date | None = None,
    end_date: date | None = None,
):
    builder = ProjectBudgetReportBuilder(repository, policy)
    try:
        summary = await builder.summarize_member(phase_id, worker_id, start_date, end_date)
    except PhaseNotFoundError:
        raise HTTPException(status_code=404, detail="Phase not found")
    except TransientFetchError as exc:
        raise service_unavailable(exc)

    if summary is None:
        raise HTTPException(status_code=404, detail="No wage configuration for this worker")
    return MemberBudgetSummaryOut.model_validate(summary)


@router.get("/{phase_id}/attendance/pending", response_model=list[AttendanceOut])
async def list_pending_attendance(phase_id: uuid.UUID, repository: Repository, policy: Policy):
    """Unapproved attendance entries awaiting a supervisor."""
    service = AttendanceService(repository, policy)
    try:
        entries = await service.pending(phase_id)
    except TransientFetchError as exc:
        raise service_unavailable(exc)
    return [AttendanceOut.model_validate(e) for e in entries]
