"""
Attendance API – recording, corrections and approval
"""
import uuid

from fastapi import APIRouter, HTTPException, status

from phasebudget.api.deps import Policy, Repository, service_unavailable
from phasebudget.core.exceptions import (
    AttendanceEntryNotFoundError,
    TaskNotFoundError,
    TransientFetchError,
    WorkerNotFoundError,
)
from phasebudget.schemas.attendance import (
    AttendanceBudgetOut,
    AttendanceCreate,
    AttendanceOut,
    AttendanceStatusUpdate,
)
from phasebudget.services.attendance_service import AttendanceService

router = APIRouter(prefix="/attendance", tags=["attendance"])

ENTRY_NOT_FOUND = "Attendance entry not found"


@router.post("", response_model=AttendanceBudgetOut, status_code=status.HTTP_201_CREATED)
async def record_attendance(payload: AttendanceCreate, repository: Repository, policy: Policy):
    """Creates an unapproved entry and returns what it will cost once approved."""
    service = AttendanceService(repository, policy)
    try:
        entry, amount = await service.record(
            payload.worker_id, payload.task_id, payload.status, payload.date
        )
    except TaskNotFoundError:
        raise HTTPException(status_code=404, detail="Task not found")
    except WorkerNotFoundError:
        raise HTTPException(status_code=404, detail="Worker not found")
    except TransientFetchError as exc:
        raise service_unavailable(exc)
    return AttendanceBudgetOut(entry=AttendanceOut.model_validate(entry), calculated_budget=amount)


@router.patch("/{entry_id}/status", response_model=AttendanceBudgetOut)
async def update_attendance_status(
    entry_id: uuid.UUID,
    payload: AttendanceStatusUpdate,
    repository: Repository,
    policy: Policy,
):
    service = AttendanceService(repository, policy)
    try:
        entry, amount = await service.correct_status(entry_id, payload.status)
    except AttendanceEntryNotFoundError:
        raise HTTPException(status_code=404, detail=ENTRY_NOT_FOUND)
    except TransientFetchError as exc:
        raise service_unavailable(exc)
    return AttendanceBudgetOut(entry=AttendanceOut.model_validate(entry), calculated_budget=amount)


@router.post("/{entry_id}/approve", response_model=AttendanceOut)
async def approve_attendance(entry_id: uuid.UUID, repository: Repository, policy: Policy):
    service = AttendanceService(repository, policy)
    try:
        entry = await service.approve(entry_id)
    except AttendanceEntryNotFoundError:
        raise HTTPException(status_code=404, detail=ENTRY_NOT_FOUND)
    except TransientFetchError as exc:
        raise service_unavailable(exc)
    return AttendanceOut.model_validate(entry)


@router.post("/{entry_id}/reject", response_model=AttendanceOut)
async def reject_attendance(entry_id: uuid.UUID, repository: Repository, policy: Policy):
    service = AttendanceService(repository, policy)
    try:
        entry = await service.reject(entry_id)
    except AttendanceEntryNotFoundError:
        raise HTTPException(status_code=404, detail=ENTRY_NOT_FOUND)
    except TransientFetchError as exc:
        raise service_unavailable(exc)
    return AttendanceOut.model_validate(entry)
