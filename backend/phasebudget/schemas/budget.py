from pydantic import BaseModel
import uuid
from datetime import date
from decimal import Decimal

from phasebudget.services.budget_records import AttendanceStatus, ExclusionReason, WageType


class TaskBudgetLineOut(BaseModel):
    task_id: uuid.UUID
    task_title: str
    worker_id: uuid.UUID
    worker_name: str
    wage_type: WageType
    status: AttendanceStatus
    daily_rate: Decimal
    calculated_amount: Decimal
    date: date

    model_config = {"from_attributes": True}


class MemberBudgetSummaryOut(BaseModel):
    worker_id: uuid.UUID
    worker_name: str
    wage_type: WageType
    daily_rate: Decimal | None
    monthly_salary: Decimal | None
    effective_daily_rate: Decimal
    total_full_days: int
    total_half_days: int
    total_absent_days: int
    pending_entries: int
    total_task_budget: Decimal
    monthly_budget: Decimal
    final_budget: Decimal
    has_attendance_data: bool

    model_config = {"from_attributes": True}


class ExcludedWorkerOut(BaseModel):
    worker_id: uuid.UUID
    reason: ExclusionReason
    detail: str | None

    model_config = {"from_attributes": True}


class ProjectBudgetReportOut(BaseModel):
    phase_id: uuid.UUID
    phase_name: str
    phase_start_date: date | None
    phase_end_date: date | None
    total_budget_allocated: Decimal
    total_budget_spent: Decimal
    budget_remaining: Decimal
    member_summaries: list[MemberBudgetSummaryOut]
    task_budgets: list[TaskBudgetLineOut]
    excluded_workers: list[ExcludedWorkerOut]
    warnings: list[str]
    found: bool

    model_config = {"from_attributes": True}
