"""
Typed records crossing the repository boundary, plus the derived report
structures. ORM rows and raw query results never reach the calculators.
"""
import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

DEFAULT_WORKING_DAYS_PER_MONTH = 26
ZERO = Decimal("0")


class WageType(str, Enum):
    DAILY = "daily"
    MONTHLY = "monthly"


class AttendanceStatus(str, Enum):
    FULL_DAY = "full_day"
    HALF_DAY = "half_day"
    ABSENT = "absent"
    UNRECORDED = "unrecorded"


class PhaseScope(str, Enum):
    MILESTONE = "milestone"
    PROJECT = "project"


class ExclusionReason(str, Enum):
    MISSING_WAGE_CONFIG = "missing_wage_config"
    FETCH_FAILED = "fetch_failed"


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class WageConfig:
    worker_id: uuid.UUID
    wage_type: WageType
    daily_rate: Decimal | None = None
    monthly_salary: Decimal | None = None
    default_working_days_per_month: int = DEFAULT_WORKING_DAYS_PER_MONTH
    phase_id: uuid.UUID | None = None  # None = worker default

    @property
    def is_override(self) -> bool:
        return self.phase_id is not None

    @property
    def working_days(self) -> int:
        if self.default_working_days_per_month and self.default_working_days_per_month > 0:
            return self.default_working_days_per_month
        return DEFAULT_WORKING_DAYS_PER_MONTH

    @property
    def effective_daily_rate(self) -> Decimal:
        """Daily-equivalent rate; the only rate consumed after resolution."""
        if self.wage_type == WageType.DAILY:
            return self.daily_rate or ZERO
        if not self.monthly_salary:
            return ZERO
        return self.monthly_salary / Decimal(self.working_days)


@dataclass(frozen=True)
class AttendanceEntry:
    id: uuid.UUID
    worker_id: uuid.UUID
    task_id: uuid.UUID
    status: AttendanceStatus
    date: date
    approved: bool
    task_title: str | None = None


@dataclass(frozen=True)
class PhaseRecord:
    id: uuid.UUID
    name: str
    start_date: date | None
    end_date: date | None
    allocated_budget: Decimal = ZERO


@dataclass(frozen=True)
class ReportFilters:
    worker_id: uuid.UUID | None = None
    start_date: date | None = None
    end_date: date | None = None
    wage_type: WageType | None = None


@dataclass
class TaskBudgetLine:
    task_id: uuid.UUID
    task_title: str
    worker_id: uuid.UUID
    worker_name: str
    wage_type: WageType
    status: AttendanceStatus
    daily_rate: Decimal
    calculated_amount: Decimal
    date: date


@dataclass
class MemberBudgetSummary:
    worker_id: uuid.UUID
    worker_name: str
    wage_type: WageType
    daily_rate: Decimal | None
    monthly_salary: Decimal | None
    effective_daily_rate: Decimal
    total_full_days: int = 0
    total_half_days: int = 0
    total_absent_days: int = 0
    pending_entries: int = 0
    total_task_budget: Decimal = ZERO
    monthly_budget: Decimal = ZERO
    final_budget: Decimal = ZERO
    has_attendance_data: bool = False


@dataclass(frozen=True)
class ExcludedWorker:
    worker_id: uuid.UUID
    reason: ExclusionReason
    detail: str | None = None


@dataclass
class ProjectBudgetReport:
    phase_id: uuid.UUID
    phase_name: str
    phase_start_date: date | None
    phase_end_date: date | None
    total_budget_allocated: Decimal = ZERO
    total_budget_spent: Decimal = ZERO
    member_summaries: list[MemberBudgetSummary] = field(default_factory=list)
    task_budgets: list[TaskBudgetLine] = field(default_factory=list)
    excluded_workers: list[ExcludedWorker] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    found: bool = True

    @property
    def budget_remaining(self) -> Decimal:
        return self.total_budget_allocated - self.total_budget_spent
