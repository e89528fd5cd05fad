from phasebudget.schemas.budget import (
    TaskBudgetLineOut, MemberBudgetSummaryOut, ExcludedWorkerOut, ProjectBudgetReportOut,
)
from phasebudget.schemas.attendance import (
    AttendanceOut, AttendanceCreate, AttendanceStatusUpdate, AttendanceBudgetOut,
)
from phasebudget.schemas.wage_config import WageConfigIn, WageConfigOut

__all__ = [
    "TaskBudgetLineOut", "MemberBudgetSummaryOut", "ExcludedWorkerOut", "ProjectBudgetReportOut",
    "AttendanceOut", "AttendanceCreate", "AttendanceStatusUpdate", "AttendanceBudgetOut",
    "WageConfigIn", "WageConfigOut",
]
