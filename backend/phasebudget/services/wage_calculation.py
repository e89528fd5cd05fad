"""
Pure wage arithmetic: task-level amounts from attendance and the prorated
monthly fallback. No I/O, no rounding; rounding belongs to presentation.
"""
import calendar
from datetime import date
from decimal import Decimal

from phasebudget.services.budget_records import (
    DEFAULT_WORKING_DAYS_PER_MONTH,
    ZERO,
    AttendanceStatus,
    WageType,
)

DAY_FRACTIONS = {
    AttendanceStatus.FULL_DAY: Decimal("1"),
    AttendanceStatus.HALF_DAY: Decimal("0.5"),
    AttendanceStatus.ABSENT: ZERO,
    AttendanceStatus.UNRECORDED: ZERO,
}


def calculate_task_budget(daily_rate: Decimal, status: AttendanceStatus | None) -> Decimal:
    """Amount one attendance entry contributes at the given effective daily rate."""
    if status is None:
        return ZERO
    return daily_rate * DAY_FRACTIONS.get(AttendanceStatus(status), ZERO)


def phase_length_days(phase_start: date, phase_end: date) -> int:
    """Inclusive day count; an end before the start counts as a single day."""
    return max((phase_end - phase_start).days + 1, 1)


def days_in_month(day: date) -> int:
    return calendar.monthrange(day.year, day.month)[1]


def calculate_monthly_budget(
    wage_type: WageType,
    phase_start: date,
    phase_end: date,
    daily_rate: Decimal | None = None,
    monthly_salary: Decimal | None = None,
    working_days_per_month: int = DEFAULT_WORKING_DAYS_PER_MONTH,
) -> Decimal:
    """
    Prorated budget for a worker without attendance evidence.

    monthly: salary × phase_days / min(days of the start month, working days)
    daily:   daily_rate × phase_days
    """
    phase_days = Decimal(phase_length_days(phase_start, phase_end))

    if wage_type == WageType.MONTHLY and monthly_salary:
        if not working_days_per_month or working_days_per_month <= 0:
            working_days_per_month = DEFAULT_WORKING_DAYS_PER_MONTH
        working_days_in_month = min(days_in_month(phase_start), working_days_per_month)
        return monthly_salary * phase_days / Decimal(working_days_in_month)

    if wage_type == WageType.DAILY and daily_rate:
        return daily_rate * phase_days

    return ZERO
