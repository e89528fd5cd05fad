"""
AttendanceService: recording, correcting and approving attendance entries.

Approval only flips a flag; its effect on budgets shows up the next time a
report is built. Writes are not retried, only bounded by the fetch timeout,
and every lookup a write depends on happens before the write.
"""
import asyncio
import logging
import uuid
from datetime import date
from decimal import Decimal

from phasebudget.core.exceptions import (
    AttendanceEntryNotFoundError,
    TaskNotFoundError,
    TransientFetchError,
    WorkerNotFoundError,
)
from phasebudget.services.budget_records import ZERO, AttendanceEntry, AttendanceStatus
from phasebudget.services.budget_repository import BudgetRepository
from phasebudget.services.budget_service import AttendanceAggregator, WageConfigResolver
from phasebudget.services.fetch_policy import FetchPolicy
from phasebudget.services.wage_calculation import calculate_task_budget

logger = logging.getLogger(__name__)


class AttendanceService:

    def __init__(self, repository: BudgetRepository, policy: FetchPolicy | None = None):
        self.repository = repository
        self.policy = policy or FetchPolicy()
        self.resolver = WageConfigResolver(repository, self.policy)
        self.aggregator = AttendanceAggregator(repository, self.policy)

    async def _write(self, operation: str, awaitable):
        try:
            return await asyncio.wait_for(awaitable, timeout=self.policy.timeout_seconds)
        except asyncio.TimeoutError as exc:
            logger.error("%s timed out after %ss", operation, self.policy.timeout_seconds)
            raise TransientFetchError(operation, 1, exc) from exc

    # ── Approval gate ────────────────────────────────────────────────────────

    async def set_approved(self, entry_id: uuid.UUID, approved: bool) -> AttendanceEntry:
        entry = await self._write(
            f"set_attendance_approved({entry_id})",
            self.repository.set_attendance_approved(entry_id, approved),
        )
        if entry is None:
            raise AttendanceEntryNotFoundError(entry_id)
        logger.info("Attendance %s %s", entry_id, "approved" if approved else "rejected")
        return entry

    async def approve(self, entry_id: uuid.UUID) -> AttendanceEntry:
        return await self.set_approved(entry_id, True)

    async def reject(self, entry_id: uuid.UUID) -> AttendanceEntry:
        return await self.set_approved(entry_id, False)

    async def pending(self, phase_id: uuid.UUID) -> list[AttendanceEntry]:
        """Unapproved entries of the phase, for the supervisor's queue."""
        entries = await self.aggregator.fetch(phase_id)
        return self.aggregator.pending(entries)

    # ── Recording / corrections ──────────────────────────────────────────────

    async def _projected_amount(
        self, worker_id: uuid.UUID, phase_id: uuid.UUID | None, status: AttendanceStatus
    ) -> Decimal:
        """What the entry contributes once approved; 0 without a wage configuration."""
        config = await self.resolver.resolve(worker_id, phase_id)
        if config is None:
            return ZERO
        return calculate_task_budget(config.effective_daily_rate, status)

    async def record(
        self,
        worker_id: uuid.UUID,
        task_id: uuid.UUID,
        status: AttendanceStatus,
        day: date | None = None,
    ) -> tuple[AttendanceEntry, Decimal]:
        """Logs attendance against a task. New entries always await approval."""
        phase_id = await self.policy.run(
            f"get_task_phase({task_id})", lambda: self.repository.get_task_phase(task_id)
        )
        if phase_id is None:
            raise TaskNotFoundError(task_id)
        worker_known = await self.policy.run(
            f"worker_exists({worker_id})", lambda: self.repository.worker_exists(worker_id)
        )
        if not worker_known:
            raise WorkerNotFoundError(worker_id)

        amount = await self._projected_amount(worker_id, phase_id, AttendanceStatus(status))
        entry = await self._write(
            f"add_attendance({worker_id}, {task_id})",
            self.repository.add_attendance(worker_id, task_id, status, day or date.today()),
        )
        return entry, amount

    async def correct_status(
        self, entry_id: uuid.UUID, status: AttendanceStatus
    ) -> tuple[AttendanceEntry, Decimal]:
        current = await self.policy.run(
            f"get_attendance_entry({entry_id})",
            lambda: self.repository.get_attendance_entry(entry_id),
        )
        if current is None:
            raise AttendanceEntryNotFoundError(entry_id)
        phase_id = await self.policy.run(
            f"get_task_phase({current.task_id})",
            lambda: self.repository.get_task_phase(current.task_id),
        )
        amount = await self._projected_amount(current.worker_id, phase_id, AttendanceStatus(status))

        entry = await self._write(
            f"set_attendance_status({entry_id})",
            self.repository.set_attendance_status(entry_id, status),
        )
        if entry is None:
            raise AttendanceEntryNotFoundError(entry_id)
        logger.info("Attendance %s corrected to %s", entry_id, entry.status.value)
        return entry, amount
