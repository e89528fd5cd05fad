from pydantic import BaseModel
import uuid
from datetime import date as date_type
from decimal import Decimal

from phasebudget.services.budget_records import AttendanceStatus


class AttendanceOut(BaseModel):
    id: uuid.UUID
    worker_id: uuid.UUID
    task_id: uuid.UUID
    task_title: str | None
    status: AttendanceStatus
    date: date_type
    approved: bool

    model_config = {"from_attributes": True}


class AttendanceCreate(BaseModel):
    worker_id: uuid.UUID
    task_id: uuid.UUID
    status: AttendanceStatus
    date: date_type | None = None  # default: heute


class AttendanceStatusUpdate(BaseModel):
    status: AttendanceStatus


class AttendanceBudgetOut(BaseModel):
    """Entry plus the amount it contributes once approved."""
    entry: AttendanceOut
    calculated_budget: Decimal
