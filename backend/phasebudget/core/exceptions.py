"""
Exception taxonomy for the budget engine.

Missing wage configurations and missing phases are not exceptions: the
report builder turns them into exclusions and diagnostic reports. The
classes here cover what callers actually have to handle.
"""
import uuid


class BudgetEngineError(Exception):
    """Base class; every subclass has a machine-readable ``code``."""

    code: str = "BUDGET_ENGINE_ERROR"


class TransientFetchError(BudgetEngineError):
    """A repository fetch timed out or lost connectivity after all retries."""

    code: str = "TRANSIENT_FETCH_FAILURE"

    def __init__(self, operation: str, attempts: int, cause: BaseException | None = None):
        self.operation = operation
        self.attempts = attempts
        self.cause = cause
        reason = type(cause).__name__ if cause is not None else "unknown"
        super().__init__(f"{operation} failed after {attempts} attempt(s): {reason}")


class PhaseNotFoundError(BudgetEngineError):
    code: str = "PHASE_NOT_FOUND"

    def __init__(self, phase_id: uuid.UUID):
        self.phase_id = phase_id
        super().__init__(f"Phase not found: {phase_id}")


class AttendanceEntryNotFoundError(BudgetEngineError):
    code: str = "ATTENDANCE_NOT_FOUND"

    def __init__(self, entry_id: uuid.UUID):
        self.entry_id = entry_id
        super().__init__(f"Attendance entry not found: {entry_id}")


class TaskNotFoundError(BudgetEngineError):
    code: str = "TASK_NOT_FOUND"

    def __init__(self, task_id: uuid.UUID):
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")


class WorkerNotFoundError(BudgetEngineError):
    code: str = "WORKER_NOT_FOUND"

    def __init__(self, worker_id: uuid.UUID):
        self.worker_id = worker_id
        super().__init__(f"Worker not found: {worker_id}")


class InvalidWageConfigError(BudgetEngineError):
    """The wage type's required rate is missing or working days are not positive."""

    code: str = "INVALID_WAGE_CONFIG"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid wage configuration: {reason}")
