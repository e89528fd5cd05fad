"""
WageConfigService: maintains worker defaults and phase-scoped overrides.
"""
import logging
import uuid
from decimal import Decimal

from phasebudget.core.exceptions import InvalidWageConfigError, WorkerNotFoundError
from phasebudget.services.budget_records import DEFAULT_WORKING_DAYS_PER_MONTH, WageConfig, WageType
from phasebudget.services.budget_repository import BudgetRepository

logger = logging.getLogger(__name__)


def validate_wage_config(config: WageConfig) -> None:
    if config.wage_type == WageType.DAILY and config.daily_rate is None:
        raise InvalidWageConfigError("daily_rate is required for daily wages")
    if config.wage_type == WageType.MONTHLY and config.monthly_salary is None:
        raise InvalidWageConfigError("monthly_salary is required for monthly wages")
    for name, value in (("daily_rate", config.daily_rate), ("monthly_salary", config.monthly_salary)):
        if value is not None and value < 0:
            raise InvalidWageConfigError(f"{name} must not be negative")
    if config.default_working_days_per_month <= 0:
        raise InvalidWageConfigError("default_working_days_per_month must be positive")


class WageConfigService:

    def __init__(self, repository: BudgetRepository):
        self.repository = repository

    async def get(self, worker_id: uuid.UUID, phase_id: uuid.UUID | None = None) -> WageConfig | None:
        """The row of exactly this scope, without falling back to the default."""
        return await self.repository.find_wage_config(worker_id, phase_id)

    async def save(
        self,
        worker_id: uuid.UUID,
        wage_type: WageType,
        daily_rate: Decimal | None = None,
        monthly_salary: Decimal | None = None,
        default_working_days_per_month: int = DEFAULT_WORKING_DAYS_PER_MONTH,
        phase_id: uuid.UUID | None = None,
    ) -> WageConfig:
        """Creates or replaces the configuration of one scope (default or phase override)."""
        config = WageConfig(
            worker_id=worker_id,
            wage_type=WageType(wage_type),
            daily_rate=daily_rate,
            monthly_salary=monthly_salary,
            default_working_days_per_month=default_working_days_per_month,
            phase_id=phase_id,
        )
        validate_wage_config(config)

        if not await self.repository.worker_exists(worker_id):
            raise WorkerNotFoundError(worker_id)

        saved = await self.repository.save_wage_config(config)
        logger.info(
            "Saved %s wage config for worker %s (%s)",
            "override" if saved.is_override else "default", worker_id, saved.wage_type.value,
        )
        return saved
