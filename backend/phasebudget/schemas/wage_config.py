from pydantic import BaseModel, Field
import uuid
from decimal import Decimal

from phasebudget.core.config import settings
from phasebudget.services.budget_records import WageType


class WageConfigIn(BaseModel):
    wage_type: WageType
    daily_rate: Decimal | None = Field(default=None, ge=0)
    monthly_salary: Decimal | None = Field(default=None, ge=0)
    default_working_days_per_month: int = Field(default=settings.DEFAULT_WORKING_DAYS_PER_MONTH, gt=0, le=31)


class WageConfigOut(BaseModel):
    worker_id: uuid.UUID
    phase_id: uuid.UUID | None
    wage_type: WageType
    daily_rate: Decimal | None
    monthly_salary: Decimal | None
    default_working_days_per_month: int
    effective_daily_rate: Decimal
    is_override: bool

    model_config = {"from_attributes": True}
