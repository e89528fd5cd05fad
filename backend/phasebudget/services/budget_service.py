"""
Budget engine: labour cost per worker and per phase.

For every worker on a phase the engine picks one of two strategies:
approved attendance entries priced at the worker's effective daily rate, or,
when the worker has no approved attendance in the window, a prorated
monthly fallback. Attendance evidence always wins over proration.

Nothing is cached between calls; each report is recomputed from the
repository on demand.
"""
import asyncio
import logging
import uuid
from collections import Counter
from datetime import date
from decimal import Decimal

from phasebudget.core.exceptions import PhaseNotFoundError, TransientFetchError
from phasebudget.services.budget_records import (
    ZERO,
    AttendanceEntry,
    AttendanceStatus,
    DateRange,
    ExcludedWorker,
    ExclusionReason,
    MemberBudgetSummary,
    PhaseRecord,
    ProjectBudgetReport,
    ReportFilters,
    TaskBudgetLine,
    WageConfig,
)
from phasebudget.services.budget_repository import BudgetRepository
from phasebudget.services.fetch_policy import FetchPolicy
from phasebudget.services.wage_calculation import calculate_monthly_budget, calculate_task_budget

logger = logging.getLogger(__name__)

UNKNOWN_WORKER = "Unknown"
UNKNOWN_TASK = "Unknown Task"

EXCLUSION_LABELS = {
    ExclusionReason.MISSING_WAGE_CONFIG: "missing wage configuration",
    ExclusionReason.FETCH_FAILED: "data could not be fetched",
}


class WageConfigResolver:

    def __init__(self, repository: BudgetRepository, policy: FetchPolicy | None = None):
        self.repository = repository
        self.policy = policy or FetchPolicy()

    async def resolve(
        self, worker_id: uuid.UUID, phase_id: uuid.UUID | None = None
    ) -> WageConfig | None:
        """Phase override first, then the worker default; None if neither exists."""
        config = await self.policy.run(
            f"get_wage_config({worker_id})",
            lambda: self.repository.get_wage_config(worker_id, phase_id),
        )
        if config is None:
            logger.debug("No wage configuration for worker %s", worker_id)
        return config


class AttendanceAggregator:

    def __init__(self, repository: BudgetRepository, policy: FetchPolicy | None = None):
        self.repository = repository
        self.policy = policy or FetchPolicy()

    async def fetch(
        self,
        phase_id: uuid.UUID,
        worker_id: uuid.UUID | None = None,
        date_range: DateRange | None = None,
    ) -> list[AttendanceEntry]:
        """All entries of the phase's tasks, approved or not."""
        entries = await self.policy.run(
            f"get_attendance({phase_id}, worker={worker_id})",
            lambda: self.repository.get_attendance(phase_id, worker_id, date_range),
        )
        if date_range is not None:
            entries = [e for e in entries if date_range.contains(e.date)]
        if worker_id is not None:
            entries = [e for e in entries if e.worker_id == worker_id]
        return entries

    @staticmethod
    def approved(entries: list[AttendanceEntry]) -> list[AttendanceEntry]:
        return [e for e in entries if e.approved]

    @staticmethod
    def pending(entries: list[AttendanceEntry]) -> list[AttendanceEntry]:
        return [e for e in entries if not e.approved]


class MemberBudgetSummarizer:

    def __init__(self, resolver: WageConfigResolver, aggregator: AttendanceAggregator):
        self.resolver = resolver
        self.aggregator = aggregator

    async def summarize(
        self,
        worker_id: uuid.UUID,
        phase_id: uuid.UUID,
        date_range: DateRange,
        worker_name: str = UNKNOWN_WORKER,
    ) -> MemberBudgetSummary | None:
        """
        Budget summary of one worker over ``date_range``.

        Returns None when the worker has no wage configuration at all, so
        the caller can tell "no data" apart from "zero cost".
        """
        config = await self.resolver.resolve(worker_id, phase_id)
        if config is None:
            return None

        entries = await self.aggregator.fetch(phase_id, worker_id, date_range)
        approved = self.aggregator.approved(entries)
        rate = config.effective_daily_rate

        day_counts = Counter(e.status for e in approved)
        total_task_budget = sum(
            (calculate_task_budget(rate, e.status) for e in approved), ZERO
        )
        has_attendance_data = len(approved) > 0

        # Computed even when attendance exists; it is the fallback otherwise
        monthly_budget = calculate_monthly_budget(
            config.wage_type,
            date_range.start,
            date_range.end,
            daily_rate=config.daily_rate,
            monthly_salary=config.monthly_salary,
            working_days_per_month=config.working_days,
        )

        return MemberBudgetSummary(
            worker_id=worker_id,
            worker_name=worker_name,
            wage_type=config.wage_type,
            daily_rate=config.daily_rate,
            monthly_salary=config.monthly_salary,
            effective_daily_rate=rate,
            total_full_days=day_counts[AttendanceStatus.FULL_DAY],
            total_half_days=day_counts[AttendanceStatus.HALF_DAY],
            total_absent_days=day_counts[AttendanceStatus.ABSENT],
            pending_entries=len(entries) - len(approved),
            total_task_budget=total_task_budget,
            monthly_budget=monthly_budget,
            final_budget=total_task_budget if has_attendance_data else monthly_budget,
            has_attendance_data=has_attendance_data,
        )


class ProjectBudgetReportBuilder:

    def __init__(
        self,
        repository: BudgetRepository,
        policy: FetchPolicy | None = None,
        max_concurrency: int = 4,
    ):
        self.repository = repository
        self.policy = policy or FetchPolicy()
        self.max_concurrency = max(max_concurrency, 1)
        self.resolver = WageConfigResolver(repository, self.policy)
        self.aggregator = AttendanceAggregator(repository, self.policy)
        self.summarizer = MemberBudgetSummarizer(self.resolver, self.aggregator)

    @staticmethod
    def report_range(phase: PhaseRecord, filters: ReportFilters | None = None) -> DateRange:
        """Filter dates win over phase dates; missing phase dates mean today."""
        today = date.today()
        start = (filters.start_date if filters else None) or phase.start_date or today
        end = (filters.end_date if filters else None) or phase.end_date or today
        return DateRange(start, end)

    async def build(
        self, phase_id: uuid.UUID, filters: ReportFilters | None = None
    ) -> ProjectBudgetReport:
        filters = filters or ReportFilters()

        # Phase and roster failures propagate: no meaningful report without them
        phase = await self.policy.run(
            f"get_phase({phase_id})", lambda: self.repository.get_phase(phase_id)
        )
        if phase is None:
            logger.warning("Budget report requested for unknown phase %s", phase_id)
            return ProjectBudgetReport(
                phase_id=phase_id,
                phase_name=f"Phase not found ({phase_id})",
                phase_start_date=None,
                phase_end_date=None,
                warnings=[f"Phase {phase_id} does not exist"],
                found=False,
            )

        roster = await self.policy.run(
            f"get_roster({phase_id})", lambda: self.repository.get_roster(phase_id)
        )
        if filters.worker_id is not None:
            roster = [w for w in roster if w == filters.worker_id]

        date_range = self.report_range(phase, filters)
        semaphore = asyncio.Semaphore(self.max_concurrency)
        warnings: list[str] = []

        task_entries = await self._approved_entries(phase_id, filters, date_range, warnings)
        names = await self._worker_names(
            list(dict.fromkeys([*roster, *(e.worker_id for e in task_entries)])), warnings
        )

        outcomes = await asyncio.gather(
            *(
                self._summarize_bounded(semaphore, worker_id, phase_id, date_range, names)
                for worker_id in roster
            )
        )

        summaries: list[MemberBudgetSummary] = []
        excluded: list[ExcludedWorker] = []
        for outcome in outcomes:
            if isinstance(outcome, ExcludedWorker):
                excluded.append(outcome)
            elif filters.wage_type is None or outcome.wage_type == filters.wage_type:
                summaries.append(outcome)

        warnings.extend(self._exclusion_warnings(excluded, len(roster)))

        task_budgets = await self._task_budget_lines(
            semaphore, phase_id, task_entries, names, filters, warnings
        )

        report = ProjectBudgetReport(
            phase_id=phase.id,
            phase_name=phase.name,
            phase_start_date=phase.start_date,
            phase_end_date=phase.end_date,
            total_budget_allocated=phase.allocated_budget,
            total_budget_spent=sum((s.final_budget for s in summaries), ZERO),
            member_summaries=summaries,
            task_budgets=task_budgets,
            excluded_workers=excluded,
            warnings=warnings,
        )
        logger.info(
            "Budget report for phase %s: %d member(s), %d excluded, spent %s of %s",
            phase_id, len(summaries), len(excluded),
            report.total_budget_spent, report.total_budget_allocated,
        )
        return report

    async def _summarize_bounded(
        self,
        semaphore: asyncio.Semaphore,
        worker_id: uuid.UUID,
        phase_id: uuid.UUID,
        date_range: DateRange,
        names: dict[uuid.UUID, str],
    ) -> MemberBudgetSummary | ExcludedWorker:
        async with semaphore:
            try:
                summary = await self.summarizer.summarize(
                    worker_id, phase_id, date_range, names.get(worker_id, UNKNOWN_WORKER)
                )
            except TransientFetchError as exc:
                logger.warning("Excluding worker %s from phase %s: %s", worker_id, phase_id, exc)
                return ExcludedWorker(worker_id, ExclusionReason.FETCH_FAILED, str(exc))
        if summary is None:
            logger.warning("Excluding worker %s from phase %s: no wage configuration", worker_id, phase_id)
            return ExcludedWorker(worker_id, ExclusionReason.MISSING_WAGE_CONFIG)
        return summary

    @staticmethod
    def _exclusion_warnings(excluded: list[ExcludedWorker], roster_size: int) -> list[str]:
        counts = Counter(e.reason for e in excluded)
        return [
            f"{count} of {roster_size} workers excluded: {EXCLUSION_LABELS[reason]}"
            for reason, count in counts.items()
        ]

    async def _approved_entries(
        self,
        phase_id: uuid.UUID,
        filters: ReportFilters,
        date_range: DateRange,
        warnings: list[str],
    ) -> list[AttendanceEntry]:
        try:
            entries = await self.aggregator.fetch(phase_id, filters.worker_id, date_range)
        except TransientFetchError as exc:
            logger.warning("Task budget lines unavailable for phase %s: %s", phase_id, exc)
            warnings.append("Task budget lines unavailable: attendance could not be fetched")
            return []
        return self.aggregator.approved(entries)

    async def _worker_names(
        self, worker_ids: list[uuid.UUID], warnings: list[str]
    ) -> dict[uuid.UUID, str]:
        try:
            return await self.policy.run(
                "get_worker_names", lambda: self.repository.get_worker_names(worker_ids)
            )
        except TransientFetchError:
            warnings.append("Worker names unavailable")
            return {}

    async def _task_budget_lines(
        self,
        semaphore: asyncio.Semaphore,
        phase_id: uuid.UUID,
        entries: list[AttendanceEntry],
        names: dict[uuid.UUID, str],
        filters: ReportFilters,
        warnings: list[str],
    ) -> list[TaskBudgetLine]:
        """One audit line per approved entry, priced at its worker's resolved rate."""
        worker_ids = list(dict.fromkeys(e.worker_id for e in entries))
        unresolved: list[uuid.UUID] = []

        async def resolve(worker_id: uuid.UUID) -> WageConfig | None:
            async with semaphore:
                try:
                    return await self.resolver.resolve(worker_id, phase_id)
                except TransientFetchError as exc:
                    logger.warning(
                        "Task lines of worker %s in phase %s skipped: %s", worker_id, phase_id, exc
                    )
                    unresolved.append(worker_id)
                    return None

        configs = dict(zip(worker_ids, await asyncio.gather(*(resolve(w) for w in worker_ids))))
        if unresolved:
            warnings.append(
                f"Task budget lines incomplete: {len(unresolved)} worker(s) could not be resolved"
            )

        lines: list[TaskBudgetLine] = []
        for entry in entries:
            config = configs.get(entry.worker_id)
            if config is None:
                continue
            if filters.wage_type is not None and config.wage_type != filters.wage_type:
                continue
            rate = config.effective_daily_rate
            lines.append(
                TaskBudgetLine(
                    task_id=entry.task_id,
                    task_title=entry.task_title or UNKNOWN_TASK,
                    worker_id=entry.worker_id,
                    worker_name=names.get(entry.worker_id, UNKNOWN_WORKER),
                    wage_type=config.wage_type,
                    status=entry.status,
                    daily_rate=rate,
                    calculated_amount=calculate_task_budget(rate, entry.status),
                    date=entry.date,
                )
            )
        return lines

    async def summarize_member(
        self,
        phase_id: uuid.UUID,
        worker_id: uuid.UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> MemberBudgetSummary | None:
        """Single-worker view. None when the worker has no wage configuration."""
        phase = await self.policy.run(
            f"get_phase({phase_id})", lambda: self.repository.get_phase(phase_id)
        )
        if phase is None:
            raise PhaseNotFoundError(phase_id)
        names = await self._worker_names([worker_id], [])
        date_range = self.report_range(phase, ReportFilters(start_date=start_date, end_date=end_date))
        return await self.summarizer.summarize(
            worker_id, phase_id, date_range, names.get(worker_id, UNKNOWN_WORKER)
        )
